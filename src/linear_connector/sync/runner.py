"""
Sync runner.

Drives the connector the way the connector framework would: lists the root
resource types, descends into child resource types, and collects the
entitlements and grants of every resource, threading page tokens until each
listing reports ``""``. Progress is checkpointed after every page so an
interrupted run resumes where it stopped.
"""

import asyncio
import logging
import random
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TypeVar

from ..connector import LinearConnector, Page, Resource, ResourceId
from ..connector.helpers import RESOURCE_TYPE_ORG, RESOURCE_TYPE_PROJECT
from ..errors import ConnectorError, TransientUpstreamError
from .state import SyncCheckpoint

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_RETRY_DELAY = 64
ROOT_RESOURCE_TYPES = (RESOURCE_TYPE_ORG.id, RESOURCE_TYPE_PROJECT.id)


@dataclass
class SyncResult:
    """Result of a sync run."""

    resources: dict[str, int] = field(default_factory=dict)
    entitlements: int = 0
    grants: int = 0
    pages: int = 0
    retries: int = 0
    resumed: bool = False
    duration_seconds: float = 0.0

    @property
    def total_resources(self) -> int:
        return sum(self.resources.values())


class SyncRunner:
    """Runs a full sync against a :class:`LinearConnector`."""

    def __init__(
        self,
        connector: LinearConnector,
        checkpoint_path: Path | None = None,
        max_retries: int = 8,
    ):
        self.connector = connector
        self.checkpoint_path = checkpoint_path
        self.max_retries = max_retries
        self.checkpoint = SyncCheckpoint()
        self.result = SyncResult()

    def retry_delay(self, attempt: int) -> float:
        """Exponential backoff with cap and jitter."""
        return min(2**attempt, MAX_RETRY_DELAY) + random.uniform(0, 1)

    async def _with_retry(self, call: Callable[[], Awaitable[T]]) -> T:
        for attempt in range(self.max_retries + 1):
            try:
                return await call()
            except TransientUpstreamError as e:
                if attempt >= self.max_retries:
                    raise
                delay = self.retry_delay(attempt)
                self.result.retries += 1
                logger.warning(f"{e} - retry {attempt + 1}/{self.max_retries} in {delay:.1f}s")
                await asyncio.sleep(delay)
        raise ConnectorError("linear-connector: max retries exceeded")

    def _save(self) -> None:
        if self.checkpoint_path is not None:
            self.checkpoint.save(self.checkpoint_path)

    async def _pages(
        self, key: str, fetch: Callable[[str], Awaitable[Page[Any]]]
    ) -> AsyncIterator[Page[Any]]:
        """
        Yield every page of one listing, resuming from the checkpoint.

        The token is recorded only after the consumer has handled a page, so
        a failure re-fetches that page on the next run.
        """
        if self.checkpoint.is_completed(key):
            logger.debug(f"Skipping completed listing {key}")
            return

        token = self.checkpoint.token_for(key)
        while True:
            page = await self._with_retry(lambda: fetch(token))
            self.result.pages += 1
            yield page

            if page.next_token and page.next_token == token:
                raise ConnectorError(f"linear-connector: listing {key} returned the same token twice")
            self.checkpoint.record(key, page.next_token)
            self._save()
            if not page.next_token:
                return
            token = page.next_token

    async def _sync_resource(self, resource: Resource) -> None:
        """Sync entitlements, grants and child resources of one resource."""
        syncer = self.connector.syncer(resource.id.resource_type)
        rid = resource.id

        key = SyncCheckpoint.key("entitlements", rid.resource_type, rid.resource)
        async for page in self._pages(key, lambda token: syncer.entitlements(resource, token)):
            self.result.entitlements += len(page.items)

        key = SyncCheckpoint.key("grants", rid.resource_type, rid.resource)
        async for page in self._pages(key, lambda token: syncer.grants(resource, token)):
            self.result.grants += len(page.items)

        for child_type in resource.annotations.child_resource_types:
            if child_type in self.connector.registry:
                await self._sync_type(child_type, rid)

    async def _sync_type(self, resource_type_id: str, parent_id: ResourceId | None) -> None:
        syncer = self.connector.syncer(resource_type_id)
        key = SyncCheckpoint.key("list", resource_type_id, parent_id.resource if parent_id else "")
        logger.info(f"Syncing {resource_type_id} resources")

        async for page in self._pages(key, lambda token: syncer.list(parent_id, token)):
            counts = self.result.resources
            counts[resource_type_id] = counts.get(resource_type_id, 0) + len(page.items)
            for resource in page.items:
                await self._sync_resource(resource)

    async def run(self, full: bool = False) -> SyncResult:
        """
        Run a sync, resuming from the checkpoint unless *full* is set.

        Raises:
            ConnectorError: On a non-retryable error, or a transient one that
                outlasts ``max_retries``; the checkpoint is kept for resuming
        """
        start = time.monotonic()
        self.result = SyncResult()

        if self.checkpoint_path is not None:
            if full:
                SyncCheckpoint.clear(self.checkpoint_path)
            self.checkpoint = SyncCheckpoint.load(self.checkpoint_path)
        else:
            self.checkpoint = SyncCheckpoint()
        self.result.resumed = bool(self.checkpoint.tokens or self.checkpoint.completed)
        if self.result.resumed:
            logger.info("Resuming sync from checkpoint")

        for resource_type_id in ROOT_RESOURCE_TYPES:
            if resource_type_id in self.connector.registry:
                await self._sync_type(resource_type_id, None)

        if self.checkpoint_path is not None:
            SyncCheckpoint.clear(self.checkpoint_path)

        self.result.duration_seconds = time.monotonic() - start
        logger.info(
            f"Sync complete: {self.result.total_resources} resources, "
            f"{self.result.grants} grants in {self.result.duration_seconds:.1f}s"
        )
        return self.result
