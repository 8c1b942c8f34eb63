import pytest

from conftest import connection
from linear_connector.connector.tickets import (
    CustomFieldKind,
    Ticket,
    TicketCreateRequest,
    TicketCustomField,
    TicketCustomFieldObjectValue,
    TicketGetRequest,
    TicketManager,
    TicketSchema,
    TicketStatus,
    custom_field_schema,
    get_custom_fields,
    ticket_statuses_from_team,
)
from linear_connector.errors import ConnectorError, DataShapeError, LinearError
from linear_connector.linear_client import IssueField, Team

STATUSES = [TicketStatus(id="s1", display_name="Todo"), TicketStatus(id="s2", display_name="Done")]

ISSUE = {
    "id": "iss-1",
    "title": "Grant access",
    "description": "Please",
    "url": "https://linear.app/acme/issue/ENG-1",
    "createdAt": "2024-01-02T03:04:05.000Z",
    "updatedAt": "2024-01-03T03:04:05.000Z",
    "state": {"id": "s1", "name": "Todo"},
    "labels": {"nodes": [{"id": "l1", "name": "access"}]},
}


def scalar(name: str) -> dict:
    return {"kind": "SCALAR", "name": name}


def issue_field(name: str, field_type: dict, description: str = "") -> IssueField:
    return IssueField.model_validate({"name": name, "description": description, "type": field_type})


def team_with_states() -> dict:
    return {
        "id": "t1",
        "name": "Engineering",
        "states": {
            "nodes": [
                {"id": "s2", "name": "Done", "position": 3},
                {"id": "s1", "name": "Todo", "position": 1},
            ]
        },
    }


ISSUE_FIELDS = {
    "__type": {
        "inputFields": [
            {"name": "priority", "description": "Priority", "type": scalar("Int")},
            {"name": "stateId", "description": "State", "type": scalar("String")},
            {"name": "sortOrder", "description": "[Internal] Sort order", "type": scalar("Float")},
            {"name": "title", "description": "Title", "type": scalar("String")},
        ]
    }
}


# ---------------------------------------------------------------- schema mapping


def test_statuses_sorted_by_position():
    team = Team.model_validate(team_with_states())

    assert [s.id for s in ticket_statuses_from_team(team)] == ["s1", "s2"]


def test_internal_fields_are_skipped():
    field = issue_field("assigneeId", scalar("String"), description="[Internal] hidden")

    assert custom_field_schema(field, STATUSES) is None


def test_priority_is_required_pick_object():
    schema = custom_field_schema(issue_field("priority", scalar("Int")), STATUSES)

    assert schema.kind == CustomFieldKind.PICK_OBJECT
    assert schema.required
    assert [(v.id, v.display_name) for v in schema.allowed_values] == [
        ("0", "No priority"),
        ("1", "Urgent"),
        ("2", "High"),
        ("3", "Normal"),
        ("4", "Low"),
    ]


def test_state_id_offers_team_statuses():
    schema = custom_field_schema(issue_field("stateId", scalar("String")), STATUSES)

    assert schema.kind == CustomFieldKind.PICK_OBJECT
    assert not schema.required
    assert [v.id for v in schema.allowed_values] == ["s1", "s2"]


@pytest.mark.parametrize(
    "field_type, kind",
    [
        (scalar("String"), CustomFieldKind.STRING),
        (scalar("Int"), CustomFieldKind.STRING),
        (scalar("Float"), CustomFieldKind.STRING),
        (scalar("Boolean"), CustomFieldKind.BOOLEAN),
        ({"kind": "LIST", "ofType": scalar("String")}, CustomFieldKind.STRINGS),
        (
            {"kind": "LIST", "ofType": {"kind": "NON_NULL", "ofType": scalar("String")}},
            CustomFieldKind.STRINGS,
        ),
        (
            {"kind": "ENUM", "name": "Kind", "enumValues": [{"name": "a"}, {"name": "b"}]},
            CustomFieldKind.PICK_OBJECT,
        ),
    ],
)
def test_passthrough_field_kinds(field_type, kind):
    schema = custom_field_schema(issue_field("assigneeId", field_type), STATUSES)

    assert schema.kind == kind
    assert schema.id == "assigneeId"
    assert not schema.required


@pytest.mark.parametrize("type_name", ["JSON", "DateTime", "TimelessDate"])
def test_unsupported_scalars(type_name):
    assert custom_field_schema(issue_field("cycleId", scalar(type_name)), STATUSES) is None


def test_non_null_marks_required():
    field = issue_field("projectId", {"kind": "NON_NULL", "ofType": scalar("String")})

    schema = custom_field_schema(field, STATUSES)

    assert schema.kind == CustomFieldKind.STRING
    assert schema.required


def test_other_fields_unsupported():
    fields = [issue_field("title", scalar("String")), issue_field("cycleId", scalar("String"))]

    assert list(get_custom_fields(fields, STATUSES)) == ["cycleId"]


# ---------------------------------------------------------------- tickets


async def test_get_ticket(fake_api, client):
    fake_api.add("Issue", {"issue": ISSUE})

    ticket, _ = await TicketManager(client).get_ticket("iss-1")

    assert ticket.id == "iss-1"
    assert ticket.display_name == "Grant access"
    assert ticket.status == TicketStatus(id="s1", display_name="Todo")
    assert ticket.labels == ["access"]
    assert ticket.created_at.year == 2024
    assert fake_api.calls("Issue") == [{"id": "iss-1"}]


async def test_create_ticket_builds_payload(fake_api, client):
    fake_api.add("IssueLabels", {"issueLabels": {"nodes": [{"id": "l1", "name": "access"}]}})
    fake_api.add("IssueLabels", {"issueLabels": {"nodes": []}})
    fake_api.add("IssueLabelCreate", {"issueLabelCreate": {"success": True, "issueLabel": {"id": "l2", "name": "new"}}})
    fake_api.add("IssueCreate", {"issueCreate": {"success": True, "issue": ISSUE}})

    schema = TicketSchema(
        id="t1",
        custom_fields={
            "priority": TicketCustomField(id="priority", kind=CustomFieldKind.PICK_OBJECT),
            "stateId": TicketCustomField(id="stateId", kind=CustomFieldKind.PICK_OBJECT),
            "assigneeId": TicketCustomField(id="assigneeId"),
            "cycleId": TicketCustomField(id="cycleId"),
        },
    )
    ticket = Ticket(
        display_name="Grant access",
        description="Please",
        labels=["access", "", "new"],
        custom_fields={
            "priority": TicketCustomField(
                id="priority", value=TicketCustomFieldObjectValue(id="2", display_name="High")
            ),
            "stateId": TicketCustomField(id="stateId", value="s1"),
            "assigneeId": TicketCustomField(id="assigneeId", default_value="u1"),
            "cycleId": TicketCustomField(id="cycleId"),
        },
    )

    created, _ = await TicketManager(client).create_ticket(ticket, schema)

    assert created.id == "iss-1"
    assert fake_api.calls("IssueLabels") == [{"name": "access"}, {"name": "new"}]
    assert fake_api.calls("IssueLabelCreate") == [{"input": {"name": "new"}}]
    (create,) = fake_api.calls("IssueCreate")
    assert create["input"] == {
        "teamId": "t1",
        "title": "Grant access",
        "description": "Please",
        "labelIds": ["l1", "l2"],
        "priority": 2,
        "stateId": "s1",
        "assigneeId": "u1",
    }


async def test_create_ticket_state_object_value(fake_api, client):
    fake_api.add("IssueCreate", {"issueCreate": {"success": True, "issue": ISSUE}})
    schema = TicketSchema(id="t1", custom_fields={"stateId": TicketCustomField(id="stateId")})
    ticket = Ticket(
        display_name="x",
        custom_fields={
            "stateId": TicketCustomField(id="stateId", value=TicketCustomFieldObjectValue(id="s2"))
        },
    )

    await TicketManager(client).create_ticket(ticket, schema)

    (create,) = fake_api.calls("IssueCreate")
    assert create["input"]["stateId"] == "s2"
    assert "labelIds" not in create["input"]


async def test_create_ticket_bad_priority(fake_api, client):
    schema = TicketSchema(id="t1", custom_fields={"priority": TicketCustomField(id="priority")})
    ticket = Ticket(
        custom_fields={
            "priority": TicketCustomField(id="priority", value=TicketCustomFieldObjectValue(id="high"))
        }
    )

    with pytest.raises(ConnectorError, match="failed to convert priority to int"):
        await TicketManager(client).create_ticket(ticket, schema)

    assert fake_api.requests == []


async def test_get_ticket_schema(fake_api, client):
    fake_api.add("TeamWorkflowStates", {"teams": connection([team_with_states()])})
    fake_api.add("IssueCreateInputFields", ISSUE_FIELDS)

    schema, _ = await TicketManager(client).get_ticket_schema("t1")

    assert schema.id == "t1"
    assert schema.display_name == "Engineering"
    assert [s.id for s in schema.statuses] == ["s1", "s2"]
    assert sorted(schema.custom_fields) == ["priority", "stateId"]
    assert fake_api.calls("TeamWorkflowStates") == [{"first": 2, "filter": {"id": {"in": ["t1"]}}}]


@pytest.mark.parametrize("teams", [[], [team_with_states(), dict(team_with_states(), id="t2")]])
async def test_get_ticket_schema_requires_one_team(fake_api, client, teams):
    fake_api.add("TeamWorkflowStates", {"teams": connection(teams)})

    with pytest.raises(DataShapeError, match=f"expected 1 team, got {len(teams)}"):
        await TicketManager(client).get_ticket_schema("t1")

    assert fake_api.calls("IssueCreateInputFields") == []


async def test_list_ticket_schemas_pages_teams(fake_api, client):
    fake_api.add("TeamWorkflowStates", {"teams": connection([team_with_states()], end_cursor="T1")})
    fake_api.add("IssueCreateInputFields", ISSUE_FIELDS)
    fake_api.add("TeamWorkflowStates", {"teams": connection([dict(team_with_states(), id="t2")])})
    fake_api.add("IssueCreateInputFields", ISSUE_FIELDS)
    manager = TicketManager(client, team_ids=["t1", "t2"], page_size=1)

    first = await manager.list_ticket_schemas("")
    second = await manager.list_ticket_schemas(first.next_token)

    assert [s.id for s in first.items] == ["t1"]
    assert [s.id for s in second.items] == ["t2"]
    assert second.next_token == ""
    assert fake_api.calls("TeamWorkflowStates")[1] == {
        "first": 1,
        "after": "T1",
        "filter": {"id": {"in": ["t1", "t2"]}},
    }


async def test_bulk_create_reports_errors_per_ticket(fake_api, client):
    fake_api.add("IssueCreate", {"issueCreate": {"success": True, "issue": ISSUE}})
    fake_api.add("IssueCreate", {"issueCreate": {"success": False}})
    schema = TicketSchema(id="t1")
    requests = [
        TicketCreateRequest(Ticket(display_name="one"), schema),
        TicketCreateRequest(Ticket(display_name="two"), schema),
    ]

    results = await TicketManager(client).bulk_create_tickets(requests)

    assert results[0].ticket.id == "iss-1"
    assert results[0].error == ""
    assert results[1].ticket is None
    assert "failed to create issue" in results[1].error


async def test_bulk_get_reports_errors_per_ticket(fake_api, client):
    fake_api.add("Issue", {"issue": ISSUE})
    fake_api.add("Issue", {"issue": None})

    results = await TicketManager(client).bulk_get_tickets(
        [TicketGetRequest("iss-1"), TicketGetRequest("missing")]
    )

    assert results[0].ticket.id == "iss-1"
    assert results[1].ticket is None
    assert "Not found: issue missing" in results[1].error


async def test_get_ticket_wraps_errors(fake_api, client):
    fake_api.add("Issue", {"issue": None})

    with pytest.raises(LinearError, match="linear-connector: failed to get issue"):
        await TicketManager(client).get_ticket("missing")
