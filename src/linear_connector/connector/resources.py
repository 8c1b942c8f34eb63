"""Resource, entitlement and grant types exchanged with the sync framework."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, Field

from ..annotations import Annotations, ChildResourceType, RateLimitDescription

T = TypeVar("T")

__all__ = [
    "Annotations",
    "ChildResourceType",
    "Entitlement",
    "Grant",
    "Page",
    "ProjectProfile",
    "RateLimitDescription",
    "Resource",
    "ResourceId",
    "ResourceTrait",
    "ResourceType",
    "RoleProfile",
    "TeamProfile",
    "UserProfile",
    "UserStatus",
]


class ResourceTrait(str, Enum):
    """Capability a resource type exposes to the framework."""

    USER = "user"
    GROUP = "group"
    ROLE = "role"
    APP = "app"


class ResourceType(BaseModel):
    """Descriptor of one kind of synced resource."""

    id: str
    display_name: str
    traits: tuple[ResourceTrait, ...] = ()

    model_config = {"frozen": True}


class ResourceId(BaseModel):
    """Type-qualified resource identifier."""

    resource_type: str
    resource: str

    model_config = {"frozen": True}


class UserStatus(str, Enum):
    ENABLED = "enabled"
    DISABLED = "disabled"


class UserProfile(BaseModel):
    kind: Literal["user"] = "user"
    user_id: str
    first_name: str = ""
    last_name: str = ""
    login: str = ""


class TeamProfile(BaseModel):
    kind: Literal["team"] = "team"
    team_id: str
    team_name: str = ""


class ProjectProfile(BaseModel):
    kind: Literal["project"] = "project"
    project_id: str
    project_slug: str = ""


class RoleProfile(BaseModel):
    kind: Literal["role"] = "role"
    role_id: str
    role_name: str = ""


Profile = UserProfile | TeamProfile | ProjectProfile | RoleProfile


class Resource(BaseModel):
    """A synced resource."""

    id: ResourceId
    display_name: str
    parent_resource_id: ResourceId | None = None
    profile: Profile | None = None
    email: str | None = None
    status: UserStatus | None = None
    annotations: Annotations = Field(default_factory=Annotations)

    model_config = {"arbitrary_types_allowed": True}

    def profile_dict(self) -> dict[str, Any]:
        """Profile as the framework's generic key/value form."""
        if self.profile is None:
            return {}
        return self.profile.model_dump(exclude={"kind"})


class Entitlement(BaseModel):
    """Something a principal can be granted on a resource."""

    resource: Resource
    slug: str
    display_name: str = ""
    description: str = ""
    grantable_to: tuple[str, ...] = ()
    purpose: Literal["assignment", "permission"] = "assignment"

    @property
    def id(self) -> str:
        rid = self.resource.id
        return f"{rid.resource_type}:{rid.resource}:{self.slug}"

    @classmethod
    def assignment(
        cls,
        resource: Resource,
        slug: str,
        grantable_to: tuple[ResourceType, ...],
        display_name: str = "",
        description: str = "",
    ) -> "Entitlement":
        return cls(
            resource=resource,
            slug=slug,
            display_name=display_name,
            description=description,
            grantable_to=tuple(rt.id for rt in grantable_to),
        )


class Grant(BaseModel):
    """A principal holding an entitlement."""

    entitlement: Entitlement
    principal: Resource

    @property
    def id(self) -> str:
        pid = self.principal.id
        return f"{self.entitlement.id}:{pid.resource_type}:{pid.resource}"

    @classmethod
    def new(cls, resource: Resource, slug: str, principal: Resource) -> "Grant":
        return cls(entitlement=Entitlement(resource=resource, slug=slug), principal=principal)


@dataclass
class Page(Generic[T]):
    """One page of results plus the token for the next call (``""`` when done)."""

    items: list[T] = field(default_factory=list)
    next_token: str = ""
    annotations: Annotations = field(default_factory=Annotations)