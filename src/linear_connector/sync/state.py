"""Sync checkpoint persistence, so an interrupted sync can resume."""

import json
import logging
import os
import shutil
import sys
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def secure_file(path: Path) -> None:
    """Set owner-only read/write permissions on *path* (no-op on Windows)."""
    if sys.platform != "win32":
        try:
            os.chmod(path, 0o600)
        except OSError as e:
            logger.debug(f"Could not restrict permissions on {path}: {e}")


class SyncCheckpoint(BaseModel):
    """
    Resume tokens of an in-progress sync.

    ``tokens`` maps a listing key (see :meth:`key`) to the token of the next
    page to fetch; ``completed`` holds the keys of listings already done.
    """

    version: str = "1.0"
    created: datetime = Field(default_factory=_now)
    last_modified: datetime = Field(default_factory=_now)
    tokens: dict[str, str] = Field(default_factory=dict)
    completed: list[str] = Field(default_factory=list)

    model_config = {"populate_by_name": True}

    @staticmethod
    def key(operation: str, resource_type_id: str, resource_id: str = "") -> str:
        """Key of one listing, e.g. ``grants:team:abc``."""
        return f"{operation}:{resource_type_id}:{resource_id}"

    @classmethod
    def load(cls, path: Path) -> "SyncCheckpoint":
        """
        Load a checkpoint with corruption detection and recovery.

        Args:
            path: Path to checkpoint file

        Returns:
            Loaded checkpoint, or an empty one if the file doesn't exist or
            neither it nor its backup can be parsed
        """
        if not path.exists():
            return cls()

        try:
            with open(path) as f:
                data = json.load(f)
            return cls.model_validate(data)
        except (json.JSONDecodeError, ValidationError) as e:
            logger.error(f"Checkpoint file corrupted: {e}")

            backup_path = path.with_suffix(".json.backup")
            if backup_path.exists():
                logger.info("Attempting recovery from backup...")
                try:
                    with open(backup_path) as f:
                        data = json.load(f)
                    checkpoint = cls.model_validate(data)
                    logger.info("Recovery from backup successful")
                    return checkpoint
                except (json.JSONDecodeError, ValidationError) as backup_err:
                    logger.error(f"Backup also corrupted: {backup_err}")

            logger.warning("Starting from an empty checkpoint")
            return cls()

    def save(self, path: Path) -> None:
        """
        Save the checkpoint with atomic write and backup.

        Args:
            path: Path to checkpoint file
        """
        self.last_modified = _now()
        path.parent.mkdir(parents=True, exist_ok=True)

        if path.exists():
            backup_path = path.with_suffix(".json.backup")
            try:
                shutil.copy2(path, backup_path)
            except OSError as e:
                logger.warning(f"Failed to create backup: {e}")

        temp_path = path.with_suffix(".json.tmp")
        with open(temp_path, "w") as f:
            json.dump(self.model_dump(mode="json"), f, indent=2)
        # Path.replace is atomic and overwrites on every platform
        temp_path.replace(path)
        secure_file(path)

    @staticmethod
    def clear(path: Path) -> None:
        """Delete the checkpoint and its backup."""
        for candidate in (path, path.with_suffix(".json.backup")):
            candidate.unlink(missing_ok=True)

    def token_for(self, key: str) -> str:
        return self.tokens.get(key, "")

    def is_completed(self, key: str) -> bool:
        return key in self.completed

    def record(self, key: str, next_token: str) -> None:
        """Store the token for the next page of *key*; ``""`` marks it complete."""
        if next_token:
            self.tokens[key] = next_token
            return
        self.tokens.pop(key, None)
        if key not in self.completed:
            self.completed.append(key)
