"""Pydantic models for Linear GraphQL entities."""

from datetime import datetime
from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class PageInfo(BaseModel):
    """Relay-style pagination info."""

    end_cursor: str | None = Field(default=None, alias="endCursor")
    has_next_page: bool = Field(default=False, alias="hasNextPage")
    has_previous_page: bool = Field(default=False, alias="hasPreviousPage")
    start_cursor: str | None = Field(default=None, alias="startCursor")

    model_config = {"populate_by_name": True}


class Connection(BaseModel, Generic[T]):
    """A page of nodes plus its pagination info."""

    nodes: list[T] = Field(default_factory=list)
    page_info: PageInfo = Field(default_factory=PageInfo, alias="pageInfo")

    model_config = {"populate_by_name": True}

    @property
    def next_cursor(self) -> str:
        """End cursor if another page exists, else ``""``."""
        if self.page_info.has_next_page and self.page_info.end_cursor:
            return self.page_info.end_cursor
        return ""


class OrganizationRef(BaseModel):
    """Minimal organization reference."""

    id: str

    model_config = {"populate_by_name": True}


class User(BaseModel):
    """Linear user."""

    id: str
    name: str = ""
    display_name: str = Field(default="", alias="displayName")
    email: str = ""
    active: bool = True
    admin: bool = False
    guest: bool = False
    owner: bool = False
    is_me: bool = Field(default=False, alias="isMe")
    url: str | None = None
    description: str | None = None
    organization: OrganizationRef | None = None

    model_config = {"populate_by_name": True}


class TeamRef(BaseModel):
    """Minimal team reference."""

    id: str
    name: str = ""

    model_config = {"populate_by_name": True}


class TeamMembership(BaseModel):
    """Membership of a user in a team."""

    id: str
    user: User | None = None
    team: TeamRef | None = None

    model_config = {"populate_by_name": True}


class WorkflowType(str, Enum):
    """Workflow state category."""

    BACKLOG = "backlog"
    UNSTARTED = "unstarted"
    STARTED = "started"
    COMPLETED = "completed"
    CANCELED = "canceled"
    TRIAGE = "triage"


class WorkflowState(BaseModel):
    """A team's workflow state (issue status)."""

    id: str
    name: str
    color: str | None = None
    type: WorkflowType | None = None
    position: float = 0.0

    model_config = {"populate_by_name": True}


class Team(BaseModel):
    """Linear team."""

    id: str
    name: str = ""
    key: str | None = None
    description: str | None = None
    memberships: Connection[TeamMembership] | None = None
    states: Connection[WorkflowState] | None = None

    model_config = {"populate_by_name": True}


class Project(BaseModel):
    """Linear project."""

    id: str
    name: str = ""
    description: str | None = None
    slug_id: str = Field(default="", alias="slugId")
    url: str | None = None
    teams: Connection[Team] | None = None
    members: Connection[User] | None = None

    model_config = {"populate_by_name": True}


class Organization(BaseModel):
    """Linear organization (workspace)."""

    id: str
    name: str = ""
    url_key: str | None = Field(default=None, alias="urlKey")
    saml_enabled: bool = Field(default=False, alias="samlEnabled")
    scim_enabled: bool = Field(default=False, alias="scimEnabled")
    user_count: int = Field(default=0, alias="userCount")
    users: Connection[User] | None = None
    teams: Connection[Team] | None = None

    model_config = {"populate_by_name": True}


class ViewerPermissions(BaseModel):
    """Permissions of the user owning the API key."""

    id: str
    admin: bool = False
    guest: bool = False
    owner: bool = False

    model_config = {"populate_by_name": True}


class IssueStateRef(BaseModel):
    """Minimal workflow state reference embedded in an issue."""

    id: str
    name: str = ""

    model_config = {"populate_by_name": True}


class IssueLabel(BaseModel):
    """Issue label."""

    id: str
    name: str

    model_config = {"populate_by_name": True}


class Issue(BaseModel):
    """Linear issue."""

    id: str
    title: str = ""
    description: str | None = None
    state: IssueStateRef | None = None
    labels: Connection[IssueLabel] | None = None
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")
    url: str | None = None

    model_config = {"populate_by_name": True}


class IssueFieldEnumValue(BaseModel):
    """One value of an enum-typed input field."""

    name: str

    model_config = {"populate_by_name": True}


class IssueFieldType(BaseModel):
    """GraphQL introspection type reference."""

    name: str | None = None
    description: str | None = None
    kind: str = ""
    of_type: "IssueFieldType | None" = Field(default=None, alias="ofType")
    enum_values: list[IssueFieldEnumValue] | None = Field(default=None, alias="enumValues")

    model_config = {"populate_by_name": True}


IssueFieldType.model_rebuild()


class IssueField(BaseModel):
    """An input field of ``IssueCreateInput``."""

    name: str
    description: str | None = None
    type: IssueFieldType

    model_config = {"populate_by_name": True}


class CreateIssuePayload(BaseModel):
    """Input for the ``issueCreate`` mutation."""

    team_id: str = Field(alias="teamId")
    title: str
    description: str = ""
    label_ids: list[str] = Field(default_factory=list, alias="labelIds")
    field_options: dict[str, Any] = Field(default_factory=dict, exclude=True)

    model_config = {"populate_by_name": True}

    def to_input(self) -> dict[str, Any]:
        """Build the mutation input, merging custom field values in."""
        data = self.model_dump(by_alias=True)
        if not data["labelIds"]:
            del data["labelIds"]
        data.update(self.field_options)
        return data


class OrganizationInviteRole(str, Enum):
    """Role given to a user invited to the organization."""

    ADMIN = "ADMIN"
    MEMBER = "MEMBER"
    GUEST = "GUEST"


class OrganizationInvite(BaseModel):
    """Invitation to join the organization."""

    id: str
    email: str = ""

    model_config = {"populate_by_name": True}
