# tests/conftest.py
from __future__ import annotations

import json
import re
from collections import defaultdict, deque
from collections.abc import AsyncIterator, Callable
from typing import Any

import httpx
import pytest

from linear_connector.connector.resources import Resource, ResourceId
from linear_connector.linear_client import LinearClient

API_KEY = "lin_api_test_key_0123456789"
BASE_URL = "https://api.linear.test/graphql"

_OPERATION = re.compile(r"\b(query|mutation)\s+(\w+)")

Responder = Callable[[dict[str, Any]], "httpx.Response | dict[str, Any]"]


def page_info(end_cursor: str | None = None, has_next_page: bool = False) -> dict[str, Any]:
    return {
        "hasNextPage": has_next_page,
        "hasPreviousPage": False,
        "startCursor": None,
        "endCursor": end_cursor,
    }


def connection(nodes: list[dict[str, Any]], end_cursor: str | None = None) -> dict[str, Any]:
    """A GraphQL connection; a non-empty *end_cursor* means another page exists."""
    return {"nodes": nodes, "pageInfo": page_info(end_cursor, bool(end_cursor))}


def graphql(data: dict[str, Any], status: int = 200, headers: dict[str, str] | None = None) -> httpx.Response:
    return httpx.Response(status, json={"data": data}, headers=headers)


class FakeLinear:
    """
    In-memory stand-in for the Linear GraphQL endpoint.

    Responses are queued per operation name (``Users``, ``UserUpdate``, ...)
    and served in order; every request is recorded.
    """

    def __init__(self) -> None:
        self.requests: list[dict[str, Any]] = []
        self.headers: list[httpx.Headers] = []
        self._queued: dict[str, deque[httpx.Response | Responder]] = defaultdict(deque)

    def add(self, operation: str, response: httpx.Response | Responder | dict[str, Any]) -> None:
        """Queue a response (or a responder taking the request variables)."""
        if isinstance(response, dict):
            response = graphql(response)
        self._queued[operation].append(response)

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        match = _OPERATION.search(body["query"])
        operation = match.group(2) if match else ""
        body["operation"] = operation
        self.requests.append(body)
        self.headers.append(request.headers)

        queue = self._queued.get(operation)
        if not queue:
            raise AssertionError(f"unexpected {operation} request: {body.get('variables')}")
        response = queue.popleft()
        if callable(response):
            response = response(body.get("variables") or {})
        if isinstance(response, dict):
            response = graphql(response)
        return response

    def calls(self, operation: str) -> list[dict[str, Any]]:
        """Variables of every recorded request for *operation*."""
        return [r.get("variables") or {} for r in self.requests if r["operation"] == operation]


@pytest.fixture()
def fake_api() -> FakeLinear:
    return FakeLinear()


@pytest.fixture()
async def client(fake_api: FakeLinear) -> AsyncIterator[LinearClient]:
    linear = LinearClient(API_KEY, base_url=BASE_URL, transport=httpx.MockTransport(fake_api.handler))
    try:
        yield linear
    finally:
        await linear.close()


def make_resource(resource_type: str, resource_id: str, display_name: str = "") -> Resource:
    return Resource(
        id=ResourceId(resource_type=resource_type, resource=resource_id),
        display_name=display_name or resource_id,
    )


@pytest.fixture()
def org_id() -> ResourceId:
    return ResourceId(resource_type="org", resource="org-1")
