"""
Ticketing on top of Linear issues.

A ticket schema corresponds to a Linear team: its statuses are the team's
workflow states and its custom fields come from the ``IssueCreateInput``
type, filtered to the fields a ticket can meaningfully set.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from ..errors import ConnectorError, DataShapeError
from ..linear_client import (
    CreateIssuePayload,
    Issue,
    IssueField,
    LinearClient,
    Team,
)
from ..pagination import DEFAULT_PAGE_SIZE, CursorSet
from .helpers import RESOURCE_TYPE_TEAM, advance, fail, parse_page_token
from .resources import Annotations, Page

logger = logging.getLogger(__name__)

TEAMS = "teams"
INTERNAL_PREFIX = "[Internal]"

# Fields settable through ticket custom fields, beyond priority and stateId
PASSTHROUGH_FIELDS = frozenset(
    {"assigneeId", "cycleId", "projectId", "projectMilestoneId", "subscriberIds", "templateId"}
)


class TicketStatus(BaseModel):
    id: str
    display_name: str = ""


class TicketCustomFieldObjectValue(BaseModel):
    """One option of a pick-object custom field."""

    id: str
    display_name: str = ""


class CustomFieldKind(str, Enum):
    STRING = "string"
    STRINGS = "strings"
    BOOLEAN = "boolean"
    PICK_OBJECT = "pick_object"


class TicketCustomField(BaseModel):
    """Custom field definition (in a schema) or value (on a ticket)."""

    id: str
    display_name: str = ""
    kind: CustomFieldKind = CustomFieldKind.STRING
    required: bool = False
    allowed_values: list[TicketCustomFieldObjectValue] = Field(default_factory=list)
    value: Any = None
    default_value: Any = None

    def value_or_default(self) -> Any:
        return self.value if self.value is not None else self.default_value


class Ticket(BaseModel):
    """A ticket backed by a Linear issue."""

    id: str = ""
    display_name: str = ""
    description: str = ""
    status: TicketStatus | None = None
    labels: list[str] = Field(default_factory=list)
    url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    custom_fields: dict[str, TicketCustomField] = Field(default_factory=dict)


class TicketSchema(BaseModel):
    """Shape of the tickets that can be created for one team."""

    id: str
    display_name: str = ""
    statuses: list[TicketStatus] = Field(default_factory=list)
    custom_fields: dict[str, TicketCustomField] = Field(default_factory=dict)


@dataclass
class TicketCreateRequest:
    ticket: Ticket
    schema: TicketSchema
    annotations: Annotations = field(default_factory=Annotations)


@dataclass
class TicketGetRequest:
    id: str
    annotations: Annotations = field(default_factory=Annotations)


@dataclass
class TicketResult:
    """Outcome of one request in a bulk operation; ``error`` is set on failure."""

    ticket: Ticket | None = None
    annotations: Annotations = field(default_factory=Annotations)
    error: str = ""


PRIORITIES = [
    TicketCustomFieldObjectValue(id="0", display_name="No priority"),
    TicketCustomFieldObjectValue(id="1", display_name="Urgent"),
    TicketCustomFieldObjectValue(id="2", display_name="High"),
    TicketCustomFieldObjectValue(id="3", display_name="Normal"),
    TicketCustomFieldObjectValue(id="4", display_name="Low"),
]


def ticket_from_issue(issue: Issue) -> Ticket:
    labels = [label.name for label in issue.labels.nodes] if issue.labels else []
    status = None
    if issue.state is not None:
        status = TicketStatus(id=issue.state.id, display_name=issue.state.name)
    return Ticket(
        id=issue.id,
        display_name=issue.title,
        description=issue.description or "",
        status=status,
        labels=labels,
        url=issue.url,
        created_at=issue.created_at,
        updated_at=issue.updated_at,
    )


def ticket_statuses_from_team(team: Team) -> list[TicketStatus]:
    """Team workflow states ordered by their position in Linear."""
    states = sorted(team.states.nodes if team.states else [], key=lambda s: s.position)
    return [TicketStatus(id=state.id, display_name=state.name) for state in states]


def _schema_field(
    name: str,
    kind: CustomFieldKind,
    required: bool = False,
    allowed_values: list[TicketCustomFieldObjectValue] | None = None,
) -> TicketCustomField:
    return TicketCustomField(
        id=name,
        display_name=name,
        kind=kind,
        required=required,
        allowed_values=allowed_values or [],
    )


def custom_field_schema(
    issue_field: IssueField, statuses: list[TicketStatus]
) -> TicketCustomField | None:
    """
    Map an ``IssueCreateInput`` field to a ticket custom field.

    Args:
        issue_field: Introspected input field
        statuses: Team statuses offered for ``stateId``

    Returns:
        Custom field definition, or None if the field is not supported
    """
    if (issue_field.description or "").startswith(INTERNAL_PREFIX):
        return None

    name = issue_field.name
    if name == "priority":
        return _schema_field(name, CustomFieldKind.PICK_OBJECT, True, list(PRIORITIES))
    if name == "stateId":
        options = [
            TicketCustomFieldObjectValue(id=status.id, display_name=status.display_name)
            for status in statuses
        ]
        return _schema_field(name, CustomFieldKind.PICK_OBJECT, False, options)
    if name not in PASSTHROUGH_FIELDS:
        return None

    field_type = issue_field.type
    if field_type.kind == "SCALAR":
        if field_type.name in ("String", "Float", "Int"):
            # Numbers are entered as strings
            return _schema_field(name, CustomFieldKind.STRING)
        if field_type.name == "Boolean":
            return _schema_field(name, CustomFieldKind.BOOLEAN)
        return None
    if field_type.kind == "ENUM":
        options = [
            TicketCustomFieldObjectValue(id=v.name, display_name=v.name)
            for v in field_type.enum_values or []
        ]
        return _schema_field(name, CustomFieldKind.PICK_OBJECT, False, options)
    if field_type.kind == "LIST":
        of_type = field_type.of_type
        if of_type is not None and of_type.kind == "NON_NULL":
            of_type = of_type.of_type
        if of_type is not None and of_type.kind == "SCALAR" and of_type.name == "String":
            return _schema_field(name, CustomFieldKind.STRINGS)
        return None
    if field_type.kind == "NON_NULL" and field_type.of_type is not None:
        inner = IssueField(name=name, description=issue_field.description, type=field_type.of_type)
        schema = custom_field_schema(inner, statuses)
        if schema is not None:
            schema.required = True
        return schema
    return None


def get_custom_fields(
    fields: Iterable[IssueField], statuses: list[TicketStatus]
) -> dict[str, TicketCustomField]:
    custom_fields = {}
    for issue_field in fields:
        schema = custom_field_schema(issue_field, statuses)
        if schema is None:
            logger.debug(f"Skipping unsupported issue field {issue_field.name}")
            continue
        custom_fields[issue_field.name] = schema
    return custom_fields


def ticket_schema_from_team(team: Team, fields: Iterable[IssueField]) -> TicketSchema:
    statuses = ticket_statuses_from_team(team)
    return TicketSchema(
        id=team.id,
        display_name=team.name,
        statuses=statuses,
        custom_fields=get_custom_fields(fields, statuses),
    )


def _field_value(field_id: str, value: Any) -> Any:
    """Convert a ticket custom field value to its issue input form."""
    if isinstance(value, TicketCustomFieldObjectValue):
        if field_id == "priority":
            try:
                return int(value.id)
            except ValueError:
                raise ConnectorError(
                    f"linear-connector: failed to convert priority to int: {value.id!r}"
                ) from None
        return value.id
    # Plain string stateId values are accepted as-is
    return value


class TicketManager:
    """Ticket operations for the connector."""

    def __init__(
        self,
        client: LinearClient,
        team_ids: list[str] | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        self.client = client
        self.team_ids = list(team_ids or [])
        self.page_size = page_size

    async def get_ticket(self, ticket_id: str) -> tuple[Ticket, Annotations]:
        try:
            issue, rate_limit = await self.client.get_issue(ticket_id)
        except ConnectorError as e:
            raise fail(e, "failed to get issue") from e
        return ticket_from_issue(issue), Annotations().with_rate_limiting(rate_limit)

    async def _label_ids(self, labels: Iterable[str], annotations: Annotations) -> list[str]:
        """Resolve label names to IDs, creating labels that do not exist yet."""
        label_ids = []
        for name in labels:
            if not name:
                continue
            try:
                label, rate_limit = await self.client.get_issue_label(name)
            except ConnectorError as e:
                raise fail(e, "failed to get issue label", annotations) from e
            annotations.with_rate_limiting(rate_limit)

            if label is None:
                try:
                    label, rate_limit = await self.client.create_issue_label(name)
                except ConnectorError as e:
                    raise fail(e, "failed to create issue label", annotations) from e
                annotations.with_rate_limiting(rate_limit)
                logger.info(f"Created issue label {name!r}")
            label_ids.append(label.id)
        return label_ids

    async def issue_payload(
        self, ticket: Ticket, schema: TicketSchema, annotations: Annotations
    ) -> CreateIssuePayload:
        """Build the ``issueCreate`` input for *ticket* under *schema*."""
        field_options: dict[str, Any] = {}
        for field_id, schema_field in schema.custom_fields.items():
            ticket_field = ticket.custom_fields.get(field_id)
            if ticket_field is None:
                continue
            value = ticket_field.value_or_default()
            if value is None:
                continue
            field_options[schema_field.id] = _field_value(field_id, value)

        return CreateIssuePayload(
            team_id=schema.id,
            title=ticket.display_name,
            description=ticket.description,
            label_ids=await self._label_ids(ticket.labels, annotations),
            field_options=field_options,
        )

    async def create_ticket(self, ticket: Ticket, schema: TicketSchema) -> tuple[Ticket, Annotations]:
        """
        Create an issue for *ticket* in the team behind *schema*.

        Raises:
            ConnectorError: If a custom field value cannot be converted or a
                request fails
        """
        logger.info(f"Creating ticket {ticket.display_name!r} in team {schema.id}")
        annotations = Annotations()
        payload = await self.issue_payload(ticket, schema, annotations)

        try:
            issue, rate_limit = await self.client.create_issue(payload)
        except ConnectorError as e:
            raise fail(e, "failed to create issue", annotations) from e

        logger.info(f"Created issue {issue.id}")
        return ticket_from_issue(issue), annotations.with_rate_limiting(rate_limit)

    async def get_ticket_schema(self, schema_id: str) -> tuple[TicketSchema, Annotations]:
        """
        Get the ticket schema for one team.

        Raises:
            DataShapeError: If the team lookup does not return exactly one team
        """
        annotations = Annotations()
        try:
            teams, rate_limit = await self.client.list_team_workflow_states(
                first=2, team_ids=[schema_id]
            )
        except ConnectorError as e:
            raise fail(e, "failed to list team workflow states") from e
        annotations.with_rate_limiting(rate_limit)

        if len(teams.nodes) != 1:
            raise DataShapeError(
                f"linear-connector: expected 1 team, got {len(teams.nodes)}", annotations
            )

        try:
            fields, rate_limit = await self.client.list_issue_fields()
        except ConnectorError as e:
            raise fail(e, "failed to list issue fields", annotations) from e
        annotations.with_rate_limiting(rate_limit)

        return ticket_schema_from_team(teams.nodes[0], fields), annotations

    async def list_ticket_schemas(self, token: str) -> Page[TicketSchema]:
        """List one page of ticket schemas, one per team."""
        bag = parse_page_token(token, RESOURCE_TYPE_TEAM.id)
        cursors = CursorSet.decode(bag.page_token(), [TEAMS], self.page_size)
        annotations = Annotations()

        try:
            teams, rate_limit = await self.client.list_team_workflow_states(
                first=cursors.page_size,
                after=cursors.after(TEAMS),
                team_ids=self.team_ids or None,
            )
        except ConnectorError as e:
            raise fail(e, "failed to list teams") from e
        annotations.with_rate_limiting(rate_limit)
        next_token = advance(bag, cursors, {TEAMS: teams.page_info})

        try:
            fields, rate_limit = await self.client.list_issue_fields()
        except ConnectorError as e:
            raise fail(e, "failed to list issue fields", annotations) from e
        annotations.with_rate_limiting(rate_limit)

        schemas = [ticket_schema_from_team(team, fields) for team in teams.nodes]
        return Page(schemas, next_token, annotations)

    async def bulk_create_tickets(self, requests: Iterable[TicketCreateRequest]) -> list[TicketResult]:
        """Create each ticket, reporting failures per request."""
        results = []
        for request in requests:
            try:
                ticket, annotations = await self.create_ticket(request.ticket, request.schema)
            except ConnectorError as e:
                logger.warning(f"Failed to create ticket {request.ticket.display_name!r}: {e}")
                results.append(
                    TicketResult(
                        annotations=Annotations(e.annotations or []).merge(*request.annotations),
                        error=str(e),
                    )
                )
                continue
            results.append(TicketResult(ticket, annotations.merge(*request.annotations)))
        return results

    async def bulk_get_tickets(self, requests: Iterable[TicketGetRequest]) -> list[TicketResult]:
        """Fetch each ticket, reporting failures per request."""
        results = []
        for request in requests:
            try:
                ticket, annotations = await self.get_ticket(request.id)
            except ConnectorError as e:
                logger.warning(f"Failed to get ticket {request.id}: {e}")
                results.append(
                    TicketResult(
                        annotations=Annotations(e.annotations or []).merge(*request.annotations),
                        error=str(e),
                    )
                )
                continue
            results.append(TicketResult(ticket, annotations.merge(*request.annotations)))
        return results
