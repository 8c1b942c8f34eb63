"""Shared resource types and pagination plumbing for the resource syncers."""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping

from ..errors import ConnectorError, with_context
from ..linear_client import LinearClient, PageInfo, User
from ..pagination import DEFAULT_PAGE_SIZE, Bag, CursorSet, PageState
from .resources import (
    Annotations,
    Entitlement,
    Grant,
    Page,
    Resource,
    ResourceId,
    ResourceTrait,
    ResourceType,
    UserProfile,
    UserStatus,
)

logger = logging.getLogger(__name__)

MEMBERSHIP = "member"
ASSOCIATED = "associated"

RESOURCE_TYPE_USER = ResourceType(id="user", display_name="User", traits=(ResourceTrait.USER,))
RESOURCE_TYPE_TEAM = ResourceType(id="team", display_name="Team", traits=(ResourceTrait.GROUP,))
RESOURCE_TYPE_PROJECT = ResourceType(
    id="project", display_name="Project", traits=(ResourceTrait.GROUP,)
)
RESOURCE_TYPE_ORG = ResourceType(id="org", display_name="Org")
RESOURCE_TYPE_ROLE = ResourceType(id="role", display_name="Role", traits=(ResourceTrait.ROLE,))


def title_case(value: str) -> str:
    return value[:1].upper() + value[1:].lower()


def parse_page_token(token: str, resource_type_id: str, resource_id: str = "") -> Bag:
    """Decode the bag for *token*, seeding a frame for the resource being listed."""
    return Bag.from_token(
        token, PageState(resource_type_id=resource_type_id, resource_id=resource_id)
    )


def advance(bag: Bag, cursors: CursorSet, page_infos: Mapping[str, PageInfo | None]) -> str:
    """Merge one fetch's page info into *cursors* and return the next outer token."""
    merged = cursors.merge(page_infos)
    if merged.pending:
        logger.debug(f"Pending sub-collections: {', '.join(merged.pending)}")
    return bag.next_token(merged.encode())


def fail(err: ConnectorError, context: str, annotations: Annotations | None = None) -> ConnectorError:
    """Prefix *err* with *context*, adding the annotations gathered before it."""
    wrapped = with_context(err, context)
    if annotations:
        wrapped.annotations = Annotations(annotations).merge(*(wrapped.annotations or []))
    return wrapped


def user_resource(user: User, parent_id: ResourceId | None) -> Resource:
    """Create a connector resource for a Linear user."""
    first_name, _, last_name = user.name.partition(" ")
    return Resource(
        id=ResourceId(resource_type=RESOURCE_TYPE_USER.id, resource=user.id),
        display_name=user.name or user.display_name or user.email,
        parent_resource_id=parent_id,
        profile=UserProfile(
            user_id=user.id,
            first_name=first_name,
            last_name=last_name,
            login=user.email,
        ),
        email=user.email or None,
        status=UserStatus.ENABLED if user.active else UserStatus.DISABLED,
    )


class ResourceSyncer(ABC):
    """
    Base for the per-resource-type list/entitlements/grants operations.

    Every call performs at most one request against the API; all state that
    crosses calls travels in the returned token.
    """

    resource_type: ResourceType

    def __init__(self, client: LinearClient, page_size: int = DEFAULT_PAGE_SIZE):
        self.client = client
        self.page_size = page_size

    def cursors(self, bag: Bag, names: Iterable[str]) -> CursorSet:
        """Decode the cursor set stored in the bag's current frame."""
        return CursorSet.decode(bag.page_token(), names, self.page_size)

    @abstractmethod
    async def list(self, parent_id: ResourceId | None, token: str) -> Page[Resource]:
        """List one page of resources of this type beneath *parent_id*."""

    async def entitlements(self, resource: Resource, token: str) -> Page[Entitlement]:
        return Page()

    async def grants(self, resource: Resource, token: str) -> Page[Grant]:
        return Page()
