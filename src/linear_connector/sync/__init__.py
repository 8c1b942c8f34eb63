"""Sync runner and checkpointing."""

from .runner import SyncResult, SyncRunner
from .state import SyncCheckpoint

__all__ = ["SyncCheckpoint", "SyncResult", "SyncRunner"]
