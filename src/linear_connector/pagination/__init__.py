"""Pagination state carried across stateless sync calls."""

from .bag import Bag, PageState
from .cursors import DEFAULT_PAGE_SIZE, CursorSet

__all__ = [
    "Bag",
    "CursorSet",
    "DEFAULT_PAGE_SIZE",
    "PageState",
]
