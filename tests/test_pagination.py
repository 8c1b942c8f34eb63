import json

import pytest

from linear_connector.errors import CursorDecodeError, TokenCorruptError
from linear_connector.linear_client import PageInfo
from linear_connector.pagination import DEFAULT_PAGE_SIZE, Bag, CursorSet, PageState

NAMES = ["users", "teams"]


def info(end_cursor: str | None = None) -> PageInfo:
    return PageInfo(end_cursor=end_cursor, has_next_page=bool(end_cursor))


# ---------------------------------------------------------------- CursorSet


def test_decode_empty_sub_token_starts_fresh():
    cursors = CursorSet.decode("", NAMES)

    assert cursors.cursors == {"users": "", "teams": ""}
    assert cursors.page_size == DEFAULT_PAGE_SIZE == 50
    assert cursors.fresh
    assert cursors.is_active("users") and cursors.is_active("teams")
    assert cursors.after("users") is None


@pytest.mark.parametrize(
    "cursors",
    [
        {"users": "U1", "teams": "T1"},
        {"users": "U1", "teams": ""},
        {"users": "", "teams": "T9"},
    ],
)
def test_encode_decode_round_trip(cursors):
    original = CursorSet(cursors=cursors, page_size=25)

    decoded = CursorSet.decode(original.encode(), NAMES)

    assert decoded == original
    assert not decoded.fresh


def test_encode_omits_exhausted_cursors():
    encoded = CursorSet(cursors={"users": "U2", "teams": ""}, page_size=50).encode()

    assert json.loads(encoded) == {"cursors": {"users": "U2"}, "page_size": 50}


def test_encode_all_exhausted_is_empty():
    assert CursorSet(cursors={"users": "", "teams": ""}).encode() == ""


def test_decode_injects_default_page_size():
    decoded = CursorSet.decode(json.dumps({"cursors": {"users": "U1"}}), NAMES, page_size=10)

    assert decoded.page_size == 10
    assert decoded.cursors == {"users": "U1", "teams": ""}


def test_decode_malformed_raises():
    with pytest.raises(CursorDecodeError):
        CursorSet.decode("{not json", NAMES)


def test_decode_unknown_collection_raises():
    token = json.dumps({"cursors": {"projects": "P1"}, "page_size": 50})

    with pytest.raises(CursorDecodeError, match="unknown collections"):
        CursorSet.decode(token, NAMES)


def test_cursor_decode_error_is_token_corrupt():
    assert issubclass(CursorDecodeError, TokenCorruptError)


def test_merge_takes_end_cursor_only_when_more_pages():
    cursors = CursorSet.start(NAMES, page_size=20)

    merged = cursors.merge({"users": info("U2"), "teams": info()})

    assert merged.cursors == {"users": "U2", "teams": ""}
    assert merged.page_size == 20
    assert merged.pending == ["users"]


def test_merge_treats_unfetched_collection_as_exhausted():
    cursors = CursorSet(cursors={"users": "U2", "teams": ""})

    merged = cursors.merge({"users": info("U3"), "teams": None})

    assert merged.cursors == {"users": "U3", "teams": ""}
    assert not merged.is_active("teams")


def test_merge_ignores_has_next_page_without_cursor():
    merged = CursorSet.start(["users"]).merge({"users": PageInfo(has_next_page=True)})

    assert merged.exhausted


def test_partial_completion_survives_a_second_round_trip():
    merged = CursorSet.start(NAMES).merge({"users": info("U2"), "teams": info()})

    once = CursorSet.decode(merged.encode(), NAMES)
    twice = CursorSet.decode(once.encode(), NAMES)

    assert once.cursors == {"users": "U2", "teams": ""}
    assert twice.cursors == {"users": "U2", "teams": ""}


@pytest.mark.parametrize("names", [["users"], ["users", "teams"], ["a", "b", "c"]])
def test_exhausted_fetches_terminate(names):
    bag = Bag.from_token("", PageState(resource_type_id="org"))
    token = "start"
    steps = 0
    while token:
        steps += 1
        cursors = CursorSet.decode(bag.page_token(), names)
        token = bag.next_token(cursors.merge({name: info() for name in names}).encode())

    assert steps == 1


def test_from_token_unwraps_both_layers():
    inner = CursorSet(cursors={"users": "U7", "teams": "T7"}, page_size=5).encode()
    bag = Bag.from_token("", PageState(resource_type_id="org"))
    outer = bag.next_token(inner)

    decoded = CursorSet.from_token(outer, NAMES)

    assert decoded.cursors == {"users": "U7", "teams": "T7"}
    assert decoded.page_size == 5


# ---------------------------------------------------------------- Bag


@pytest.mark.parametrize(
    "seed",
    [
        PageState(),
        PageState(resource_type_id="team", resource_id="team-1"),
        PageState(resource_type_id="org", resource_id="o", token="abc"),
    ],
)
def test_from_empty_token_current_is_seed(seed):
    bag = Bag.from_token("", seed)

    assert bag.current() == seed
    assert len(bag) == 1


def test_from_token_keeps_existing_frames():
    bag = Bag.from_token("", PageState(resource_type_id="team", resource_id="t1"))
    token = bag.next_token("cursor-1")

    restored = Bag.from_token(token, PageState(resource_type_id="other"))

    assert restored.current() == PageState(token="cursor-1", resource_type_id="team", resource_id="t1")


def test_next_token_empty_at_depth_one_completes():
    bag = Bag.from_token("", PageState(resource_type_id="team"))

    assert bag.next_token("") == ""


def test_next_token_empty_at_depth_two_keeps_parent():
    bag = Bag()
    bag.push(PageState(resource_type_id="org", resource_id="o1", token="parent-cursor"))
    bag.push(PageState(resource_type_id="team", resource_id="t1"))

    token = bag.next_token("")

    assert token != ""
    restored = Bag.unmarshal(token)
    assert len(restored) == 1
    assert restored.current() == PageState(
        token="parent-cursor", resource_type_id="org", resource_id="o1"
    )


def test_wire_format():
    bag = Bag()
    bag.push(PageState(resource_type_id="org", resource_id="o1"))
    bag.push(PageState(resource_type_id="team", resource_id="t1"))

    data = json.loads(bag.next_token("sub"))

    assert data["current_state"] == {"token": "sub", "resource_type_id": "team", "resource_id": "t1"}
    assert data["states"] == [{"token": "", "resource_type_id": "org", "resource_id": "o1"}]


def test_push_pop_and_page_token():
    bag = Bag()
    assert bag.current() is None
    assert bag.page_token() == ""
    assert bag.pop() is None

    bag.push(PageState(resource_type_id="org", token="a"))
    bag.push(PageState(resource_type_id="team", token="b"))
    assert bag.page_token() == "b"

    assert bag.pop().resource_type_id == "team"
    assert bag.page_token() == "a"
    assert bag.marshal() != ""
    bag.pop()
    assert bag.marshal() == ""


@pytest.mark.parametrize("token", ["not json", "[1, 2]", '{"states": "x"}'])
def test_corrupt_token_raises(token):
    with pytest.raises(TokenCorruptError):
        Bag.from_token(token, PageState(resource_type_id="team"))


def test_next_on_empty_bag_raises():
    with pytest.raises(TokenCorruptError):
        Bag().next_token("x")
