"""Linear GraphQL API client."""

from .client import API_ENDPOINT, LinearClient, extract_rate_limit
from .models import (
    Connection,
    CreateIssuePayload,
    Issue,
    IssueField,
    IssueFieldType,
    IssueLabel,
    Organization,
    OrganizationInvite,
    OrganizationInviteRole,
    PageInfo,
    Project,
    Team,
    TeamMembership,
    User,
    ViewerPermissions,
    WorkflowState,
)

__all__ = [
    "API_ENDPOINT",
    "LinearClient",
    "extract_rate_limit",
    "Connection",
    "CreateIssuePayload",
    "Issue",
    "IssueField",
    "IssueFieldType",
    "IssueLabel",
    "Organization",
    "OrganizationInvite",
    "OrganizationInviteRole",
    "PageInfo",
    "Project",
    "Team",
    "TeamMembership",
    "User",
    "ViewerPermissions",
    "WorkflowState",
]
