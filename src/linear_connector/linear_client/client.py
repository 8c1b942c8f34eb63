"""Linear GraphQL API client."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ..annotations import Annotations, RateLimitDescription
from ..errors import DataShapeError, LinearError, RateLimitError, TransientUpstreamError
from . import queries
from .models import (
    Connection,
    CreateIssuePayload,
    Issue,
    IssueField,
    IssueLabel,
    Organization,
    OrganizationInvite,
    OrganizationInviteRole,
    Project,
    Team,
    User,
    ViewerPermissions,
)

logger = logging.getLogger(__name__)

API_ENDPOINT = "https://api.linear.app/graphql"

RATE_LIMIT_STATUS_CODES = {400, 429}
RATE_LIMITED_CODE = "RATELIMITED"

RateLimit = RateLimitDescription | None

M = TypeVar("M", bound=BaseModel)


def extract_rate_limit(headers: httpx.Headers) -> RateLimit:
    """
    Build a rate-limit description from Linear's response headers.

    Args:
        headers: Response headers

    Returns:
        Description, or None when the response carries no rate-limit headers

    Raises:
        LinearError: If a rate-limit header is not an integer
    """
    names = {
        "remaining": "X-RateLimit-Requests-Remaining",
        "limit": "X-RateLimit-Requests-Limit",
        "reset": "X-RateLimit-Requests-Reset",
    }
    values: dict[str, int] = {}
    for key, header in names.items():
        raw = headers.get(header)
        if not raw:
            continue
        try:
            values[key] = int(raw)
        except ValueError:
            raise LinearError(f"failed to parse ratelimit-{key}: {raw!r}") from None

    if not values:
        return None

    reset_at = None
    if "reset" in values:
        reset_at = datetime.fromtimestamp(values["reset"], tz=timezone.utc)

    return RateLimitDescription(
        limit=values.get("limit", 0),
        remaining=values.get("remaining", 0),
        reset_at=reset_at,
    )


def _error_codes(body: Any) -> set[str]:
    """Collect ``extensions.code`` values from a GraphQL error body."""
    codes: set[str] = set()
    if not isinstance(body, dict):
        return codes
    for err in body.get("errors") or []:
        code = (err.get("extensions") or {}).get("code")
        if code:
            codes.add(str(code))
    return codes


def _error_message(body: Any) -> str | None:
    """Return the first GraphQL error message in *body*, if any."""
    if not isinstance(body, dict):
        return None
    if body.get("error"):
        return str(body["error"])
    errors = body.get("errors") or []
    if errors:
        return str(errors[0].get("message", "unknown graphql error"))
    return None


def _annotate(rate_limit: RateLimit) -> Annotations:
    return Annotations().with_rate_limiting(rate_limit)


def _parse(model: type[M], payload: Any, what: str, rate_limit: RateLimit) -> M:
    """
    Validate *payload* as *model*.

    Raises:
        DataShapeError: If the API returned an object of unexpected shape
    """
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise DataShapeError(
            f"unexpected {what} in response: {e.error_count()} validation error(s)",
            _annotate(rate_limit),
        ) from e


class LinearClient:
    """Client for the Linear GraphQL API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = API_ENDPOINT,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the Linear client.

        Args:
            api_key: Personal API key, sent as the Authorization header
            base_url: GraphQL endpoint URL
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used to fake the API in tests)
        """
        self.base_url = base_url
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                headers={
                    "Authorization": self.api_key,
                    "Content-Type": "application/json",
                },
                timeout=self.timeout,
                transport=self.transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> LinearClient:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def _execute(
        self,
        query: str,
        variables: dict[str, Any] | None = None,
    ) -> tuple[dict[str, Any], RateLimit]:
        """
        POST one GraphQL document and return its ``data`` plus rate-limit info.

        Raises:
            RateLimitError: On 429, or 400 caused by rate limiting
            TransientUpstreamError: On network failure, timeout or 5xx
            LinearError: On any other failure, including GraphQL errors
        """
        payload: dict[str, Any] = {"query": query}
        if variables:
            # Drop unset variables so GraphQL defaults apply
            payload["variables"] = {k: v for k, v in variables.items() if v is not None}

        try:
            response = await self.client.post(self.base_url, json=payload)
        except httpx.TimeoutException as e:
            raise TransientUpstreamError(f"Request timed out: {e}") from e
        except httpx.TransportError as e:
            raise TransientUpstreamError(f"Request failed: {e}") from e

        rate_limit = extract_rate_limit(response.headers)
        annotations = _annotate(rate_limit)

        try:
            body = response.json() if response.content else None
        except ValueError:
            body = None

        status = response.status_code
        if status in RATE_LIMIT_STATUS_CODES and (
            status == 429
            or RATE_LIMITED_CODE in _error_codes(body)
            or (rate_limit is not None and rate_limit.remaining == 0)
        ):
            logger.warning(f"Rate limited by Linear API ({status})")
            raise RateLimitError("Rate limited", status, response.text, annotations)
        if status >= 500:
            raise TransientUpstreamError(f"API error: {status}", status, response.text, annotations)
        if status == 401:
            raise LinearError("Unauthorized - check your API key", 401, annotations=annotations)
        if status == 403:
            raise LinearError("Forbidden - insufficient permissions", 403, annotations=annotations)
        if status >= 400:
            message = _error_message(body) or f"API error: {status}"
            raise LinearError(message, status, response.text, annotations)

        if not isinstance(body, dict):
            raise LinearError("Invalid response body", status, response.text, annotations)

        if body.get("errors"):
            if RATE_LIMITED_CODE in _error_codes(body):
                raise RateLimitError("Rate limited", status, response.text, annotations)
            raise LinearError(_error_message(body) or "unknown graphql error", status, annotations=annotations)

        return body.get("data") or {}, rate_limit

    # ==================== Users ====================

    async def get_users(
        self,
        first: int,
        after: str | None = None,
    ) -> tuple[Connection[User], RateLimit]:
        """Get one page of users in the organization."""
        logger.debug(f"Fetching users after={after}")
        data, rate_limit = await self._execute(queries.USERS, {"first": first, "after": after})
        return _parse(Connection[User], data.get("users") or {}, "users", rate_limit), rate_limit

    async def update_user(
        self,
        user_id: str,
        admin: bool | None = None,
        active: bool | None = None,
    ) -> RateLimit:
        """
        Update a user's admin and/or active flags.

        Args:
            user_id: Linear user ID
            admin: New admin flag (unchanged if None)
            active: New active flag (unchanged if None)

        Raises:
            LinearError: If the update is rejected
        """
        update: dict[str, Any] = {}
        if admin is not None:
            update["admin"] = admin
        if active is not None:
            update["active"] = active

        data, rate_limit = await self._execute(queries.USER_UPDATE, {"id": user_id, "input": update})
        result = data.get("userUpdate") or {}
        if not result.get("success"):
            raise LinearError(f"Failed to update user {user_id}", annotations=_annotate(rate_limit))
        return rate_limit

    async def create_organization_invite(
        self,
        email: str,
        role: OrganizationInviteRole = OrganizationInviteRole.MEMBER,
    ) -> tuple[OrganizationInvite, RateLimit]:
        """Invite *email* to the organization with *role*."""
        variables = {"input": {"email": email, "role": role.value}}
        data, rate_limit = await self._execute(queries.ORGANIZATION_INVITE_CREATE, variables)
        result = data.get("organizationInviteCreate") or {}
        invite = result.get("organizationInvite")
        if not result.get("success") or not invite:
            raise LinearError(f"Failed to invite {email}", annotations=_annotate(rate_limit))
        return _parse(OrganizationInvite, invite, "organization invite", rate_limit), rate_limit

    async def authorize(self) -> tuple[ViewerPermissions, RateLimit]:
        """Get permissions of the user owning the API key."""
        data, rate_limit = await self._execute(queries.VIEWER)
        return _parse(ViewerPermissions, data.get("viewer") or {}, "viewer", rate_limit), rate_limit

    # ==================== Teams ====================

    async def get_teams(
        self,
        first: int,
        after: str | None = None,
    ) -> tuple[Connection[Team], RateLimit]:
        """Get one page of teams in the organization."""
        logger.debug(f"Fetching teams after={after}")
        data, rate_limit = await self._execute(queries.TEAMS, {"first": first, "after": after})
        return _parse(Connection[Team], data.get("teams") or {}, "teams", rate_limit), rate_limit

    async def get_team(
        self,
        team_id: str,
        first: int,
        after: str | None = None,
    ) -> tuple[Team, RateLimit]:
        """Get a team with one page of its memberships."""
        logger.debug(f"Fetching team {team_id} memberships after={after}")
        variables = {"teamId": team_id, "first": first, "after": after}
        data, rate_limit = await self._execute(queries.TEAM_MEMBERSHIPS, variables)
        team = data.get("team")
        if not team:
            raise LinearError(f"Not found: team {team_id}", 404, annotations=_annotate(rate_limit))
        return _parse(Team, team, "team", rate_limit), rate_limit

    async def add_member_to_team(self, team_id: str, user_id: str) -> tuple[str, RateLimit]:
        """Add *user_id* to *team_id* and return the new membership ID."""
        variables = {"input": {"teamId": team_id, "userId": user_id}}
        data, rate_limit = await self._execute(queries.TEAM_MEMBERSHIP_CREATE, variables)
        result = data.get("teamMembershipCreate") or {}
        membership = result.get("teamMembership") or {}
        if not result.get("success") or not membership.get("id"):
            raise LinearError(
                f"Failed to add user {user_id} to team {team_id}", annotations=_annotate(rate_limit)
            )
        return membership["id"], rate_limit

    async def remove_team_membership(self, membership_id: str) -> RateLimit:
        """Delete a team membership."""
        data, rate_limit = await self._execute(queries.TEAM_MEMBERSHIP_DELETE, {"id": membership_id})
        result = data.get("teamMembershipDelete") or {}
        if not result.get("success"):
            raise LinearError(
                f"Failed to delete team membership {membership_id}", annotations=_annotate(rate_limit)
            )
        return rate_limit

    async def list_team_workflow_states(
        self,
        first: int,
        after: str | None = None,
        team_ids: list[str] | None = None,
    ) -> tuple[Connection[Team], RateLimit]:
        """Get one page of teams with their workflow states."""
        variables: dict[str, Any] = {"first": first, "after": after}
        if team_ids:
            variables["filter"] = {"id": {"in": team_ids}}
        data, rate_limit = await self._execute(queries.TEAM_WORKFLOW_STATES, variables)
        return _parse(Connection[Team], data.get("teams") or {}, "teams", rate_limit), rate_limit

    # ==================== Projects ====================

    async def get_projects(
        self,
        first: int,
        after: str | None = None,
    ) -> tuple[Connection[Project], RateLimit]:
        """Get one page of projects."""
        logger.debug(f"Fetching projects after={after}")
        data, rate_limit = await self._execute(queries.PROJECTS, {"first": first, "after": after})
        projects = _parse(Connection[Project], data.get("projects") or {}, "projects", rate_limit)
        return projects, rate_limit

    async def get_project(
        self,
        project_id: str,
        first: int,
        users_after: str | None = None,
        teams_after: str | None = None,
        include_users: bool = True,
        include_teams: bool = True,
    ) -> tuple[Project, RateLimit]:
        """
        Get a project with one page each of its members and teams.

        Args:
            project_id: Linear project ID
            first: Page size for both sub-collections
            users_after: Members cursor
            teams_after: Teams cursor
            include_users: Fetch the members sub-collection
            include_teams: Fetch the teams sub-collection
        """
        variables = {
            "projectId": project_id,
            "first": first,
            "usersAfter": users_after,
            "teamsAfter": teams_after,
            "includeUsers": include_users,
            "includeTeams": include_teams,
        }
        data, rate_limit = await self._execute(queries.PROJECT, variables)
        project = data.get("project")
        if not project:
            raise LinearError(f"Not found: project {project_id}", 404, annotations=_annotate(rate_limit))
        return _parse(Project, project, "project", rate_limit), rate_limit

    # ==================== Organization ====================

    async def get_organization(
        self,
        first: int,
        users_after: str | None = None,
        teams_after: str | None = None,
        include_users: bool = True,
        include_teams: bool = True,
    ) -> tuple[Organization, RateLimit]:
        """Get the organization with one page each of its users and teams."""
        variables = {
            "first": first,
            "usersAfter": users_after,
            "teamsAfter": teams_after,
            "includeUsers": include_users,
            "includeTeams": include_teams,
        }
        data, rate_limit = await self._execute(queries.ORGANIZATION, variables)
        org = _parse(Organization, data.get("organization") or {}, "organization", rate_limit)
        return org, rate_limit

    # ==================== Issues ====================

    async def get_issue(self, issue_id: str) -> tuple[Issue, RateLimit]:
        """Get a single issue."""
        data, rate_limit = await self._execute(queries.ISSUE, {"id": issue_id})
        issue = data.get("issue")
        if not issue:
            raise LinearError(f"Not found: issue {issue_id}", 404, annotations=_annotate(rate_limit))
        return _parse(Issue, issue, "issue", rate_limit), rate_limit

    async def create_issue(self, payload: CreateIssuePayload) -> tuple[Issue, RateLimit]:
        """Create an issue."""
        data, rate_limit = await self._execute(queries.ISSUE_CREATE, {"input": payload.to_input()})
        result = data.get("issueCreate") or {}
        if not result.get("success") or not result.get("issue"):
            raise LinearError("Failed to create issue", annotations=_annotate(rate_limit))
        return _parse(Issue, result["issue"], "issue", rate_limit), rate_limit

    async def get_issue_label(self, name: str) -> tuple[IssueLabel | None, RateLimit]:
        """Find an issue label by exact name."""
        data, rate_limit = await self._execute(queries.ISSUE_LABELS, {"name": name})
        labels = _parse(Connection[IssueLabel], data.get("issueLabels") or {}, "issue labels", rate_limit)
        return (labels.nodes[0] if labels.nodes else None), rate_limit

    async def create_issue_label(self, name: str) -> tuple[IssueLabel, RateLimit]:
        """Create a workspace issue label."""
        data, rate_limit = await self._execute(queries.ISSUE_LABEL_CREATE, {"input": {"name": name}})
        result = data.get("issueLabelCreate") or {}
        if not result.get("success") or not result.get("issueLabel"):
            raise LinearError(f"Failed to create issue label {name!r}", annotations=_annotate(rate_limit))
        return _parse(IssueLabel, result["issueLabel"], "issue label", rate_limit), rate_limit

    async def list_issue_fields(self) -> tuple[list[IssueField], RateLimit]:
        """List the input fields accepted when creating an issue."""
        data, rate_limit = await self._execute(queries.ISSUE_CREATE_INPUT_FIELDS)
        type_info = data.get("__type") or {}
        fields = [
            _parse(IssueField, f, "issue field", rate_limit) for f in type_info.get("inputFields") or []
        ]
        return fields, rate_limit
