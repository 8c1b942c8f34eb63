"""Named cursor sets for listings that page several sub-collections at once.

A cursor set is stored as the sub-token of a :class:`~.bag.PageState`, which
is itself stored inside the bag token, so a raw token is unwrapped twice:

    bag token -> current_state.token -> {"cursors": {...}, "page_size": N}
"""

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from pydantic import BaseModel, Field, ValidationError

from ..errors import CursorDecodeError
from ..linear_client.models import PageInfo
from .bag import Bag

DEFAULT_PAGE_SIZE = 50


class _SerializedCursors(BaseModel):
    """Wire form of a :class:`CursorSet`."""

    cursors: dict[str, str] = Field(default_factory=dict)
    page_size: int | None = None


@dataclass
class CursorSet:
    """
    One cursor per named sub-collection plus a shared page size.

    A non-empty cursor means the collection has a further page; an empty one
    means it is exhausted. A *fresh* set (decoded from an empty sub-token)
    has not fetched anything yet, so every collection is still active.
    """

    cursors: dict[str, str]
    page_size: int = DEFAULT_PAGE_SIZE
    fresh: bool = field(default=False, compare=False)

    @classmethod
    def start(cls, names: Iterable[str], page_size: int = DEFAULT_PAGE_SIZE) -> "CursorSet":
        """Create a fresh cursor set for *names*."""
        return cls(cursors={name: "" for name in names}, page_size=page_size, fresh=True)

    @classmethod
    def decode(
        cls,
        sub_token: str,
        names: Iterable[str],
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> "CursorSet":
        """
        Decode a cursor set from a frame sub-token.

        Args:
            sub_token: Encoded cursor set, or ``""`` for a first call
            names: Sub-collection names the caller pages through
            page_size: Page size injected when the token carries none

        Returns:
            Decoded cursor set with every name present

        Raises:
            CursorDecodeError: If the sub-token is malformed or names an
                unknown collection
        """
        names = list(names)
        if not sub_token:
            return cls.start(names, page_size)

        try:
            data = _SerializedCursors.model_validate(json.loads(sub_token))
        except (json.JSONDecodeError, ValidationError, TypeError) as e:
            raise CursorDecodeError(f"invalid cursor token: {e}") from e

        unknown = set(data.cursors) - set(names)
        if unknown:
            raise CursorDecodeError(f"cursor token has unknown collections: {sorted(unknown)}")

        cursors = {name: data.cursors.get(name, "") for name in names}
        return cls(cursors=cursors, page_size=data.page_size or page_size)

    @classmethod
    def from_token(
        cls,
        token: str,
        names: Iterable[str],
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> "CursorSet":
        """Decode a cursor set straight from a bag token (both layers)."""
        return cls.decode(Bag.unmarshal(token).page_token(), names, page_size)

    @property
    def pending(self) -> list[str]:
        """Names of collections with a further page."""
        return [name for name, cursor in self.cursors.items() if cursor]

    @property
    def exhausted(self) -> bool:
        return not self.fresh and not self.pending

    def is_active(self, name: str) -> bool:
        """Whether *name* should be fetched on this call."""
        return self.fresh or bool(self.cursors.get(name))

    def after(self, name: str) -> str | None:
        """Cursor to pass as the ``after`` variable for *name*."""
        return self.cursors.get(name) or None

    def encode(self) -> str:
        """Encode the set; ``""`` once every collection is exhausted."""
        pending = {name: cursor for name, cursor in self.cursors.items() if cursor}
        if not pending:
            return ""
        return _SerializedCursors(cursors=pending, page_size=self.page_size).model_dump_json()

    def merge(self, page_infos: Mapping[str, PageInfo | None]) -> "CursorSet":
        """
        Compute the next cursor set from one fetch's page info.

        A collection with a further page takes its end cursor; a collection
        that is exhausted or was not fetched gets an empty cursor.
        """
        cursors: dict[str, str] = {}
        for name in self.cursors:
            info = page_infos.get(name)
            if info is not None and info.has_next_page and info.end_cursor:
                cursors[name] = info.end_cursor
            else:
                cursors[name] = ""
        return CursorSet(cursors=cursors, page_size=self.page_size)
