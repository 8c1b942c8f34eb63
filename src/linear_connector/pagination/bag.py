"""Page-state stack threaded through paginated calls as a single token."""

import json
import logging

from pydantic import BaseModel, Field, ValidationError

from ..errors import TokenCorruptError

logger = logging.getLogger(__name__)


class PageState(BaseModel):
    """One frame of pagination context."""

    token: str = ""
    resource_type_id: str = ""
    resource_id: str = ""

    model_config = {"populate_by_name": True}


class _SerializedBag(BaseModel):
    """Wire form of a :class:`Bag`."""

    states: list[PageState] = Field(default_factory=list)
    current_state: PageState | None = None


class Bag:
    """
    Ordered stack of :class:`PageState` frames.

    The bag never persists between calls: it is rebuilt from the incoming
    token and re-serialized into the outgoing one.
    """

    def __init__(self) -> None:
        self._states: list[PageState] = []
        self._current: PageState | None = None

    def __len__(self) -> int:
        if self._current is None:
            return 0
        return len(self._states) + 1

    @classmethod
    def unmarshal(cls, token: str) -> "Bag":
        """
        Parse a bag from its token form.

        Args:
            token: Serialized bag; empty means an empty bag

        Returns:
            Parsed bag

        Raises:
            TokenCorruptError: If the token is not a valid bag
        """
        bag = cls()
        if not token:
            return bag

        try:
            data = _SerializedBag.model_validate(json.loads(token))
        except (json.JSONDecodeError, ValidationError, TypeError) as e:
            raise TokenCorruptError(f"invalid page token: {e}") from e

        bag._states = list(data.states)
        bag._current = data.current_state
        return bag

    @classmethod
    def from_token(cls, token: str, fallback: PageState) -> "Bag":
        """Parse *token*, seeding the bag with *fallback* when it has no current frame."""
        bag = cls.unmarshal(token)
        if bag.current() is None:
            bag.push(fallback.model_copy())
        return bag

    def current(self) -> PageState | None:
        """Return the top frame, or None if the bag is empty."""
        return self._current

    def push(self, state: PageState) -> None:
        """Make *state* the current frame, keeping the previous one beneath it."""
        if self._current is not None:
            self._states.append(self._current)
        self._current = state

    def pop(self) -> PageState | None:
        """Remove and return the current frame."""
        if self._current is None:
            return None
        popped = self._current
        self._current = self._states.pop() if self._states else None
        return popped

    def page_token(self) -> str:
        """Return the sub-token of the current frame."""
        if self._current is None:
            return ""
        return self._current.token

    def next(self, sub_token: str) -> None:
        """Advance the current frame, or pop it when *sub_token* is empty."""
        if self._current is None:
            raise TokenCorruptError("no active page state")
        if sub_token:
            self._current.token = sub_token
            return
        self.pop()

    def marshal(self) -> str:
        """Serialize the bag; an empty bag serializes to ``""``."""
        if self._current is None:
            return ""
        data = _SerializedBag(states=self._states, current_state=self._current)
        return data.model_dump_json()

    def next_token(self, sub_token: str) -> str:
        """
        Advance the current frame and serialize the whole bag.

        An empty *sub_token* drops the current frame, so a single-frame bag
        yields ``""`` while ancestor frames of a deeper bag are kept.
        """
        self.next(sub_token)
        token = self.marshal()
        logger.debug(f"Next page token has {len(self)} frame(s)")
        return token
