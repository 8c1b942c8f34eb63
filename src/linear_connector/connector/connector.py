"""The Linear connector: resource-type registry, metadata and validation."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from ..config import LinearConfig
from ..errors import ConfigurationError, ConnectorError
from ..linear_client import LinearClient
from ..pagination import DEFAULT_PAGE_SIZE
from .helpers import ResourceSyncer, fail
from .org import OrgSyncer
from .project import ProjectSyncer
from .resources import Annotations, ResourceType
from .role import RoleSyncer
from .team import TeamSyncer
from .tickets import TicketManager
from .user import UserSyncer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConnectorMetadata:
    display_name: str
    description: str


class LinearConnector:
    """
    Connector for Linear.

    The resource-type registry is built once here and is read-only afterwards.
    """

    def __init__(
        self,
        client: LinearClient,
        skip_projects: bool = False,
        ticketing: bool = False,
        ticket_schema_team_ids: list[str] | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        self.client = client
        self.ticketing = ticketing
        self.ticket_schema_team_ids = list(ticket_schema_team_ids or [])

        syncer_classes: list[type[ResourceSyncer]] = [UserSyncer, TeamSyncer]
        if not skip_projects:
            syncer_classes.append(ProjectSyncer)
        syncer_classes += [OrgSyncer, RoleSyncer]

        self.registry: Mapping[str, ResourceSyncer] = MappingProxyType(
            {cls.resource_type.id: cls(client, page_size) for cls in syncer_classes}
        )
        self.tickets = (
            TicketManager(client, self.ticket_schema_team_ids, page_size) if ticketing else None
        )

    @classmethod
    def from_config(
        cls,
        config: LinearConfig,
        page_size: int = DEFAULT_PAGE_SIZE,
        client: LinearClient | None = None,
    ) -> "LinearConnector":
        """Build a connector (and, unless given, its client) from configuration."""
        config.check()
        if client is None:
            client = LinearClient(config.api_key, base_url=config.base_url, timeout=config.timeout)
        return cls(
            client,
            skip_projects=config.skip_projects,
            ticketing=config.ticketing,
            ticket_schema_team_ids=config.ticket_schema_team_ids,
            page_size=page_size,
        )

    @property
    def resource_types(self) -> list[ResourceType]:
        return [syncer.resource_type for syncer in self.registry.values()]

    def syncer(self, resource_type_id: str) -> ResourceSyncer:
        """
        Look up the syncer for a resource type.

        Raises:
            ConnectorError: If the type is not registered
        """
        try:
            return self.registry[resource_type_id]
        except KeyError:
            raise ConnectorError(
                f"linear-connector: unknown resource type: {resource_type_id}"
            ) from None

    def metadata(self) -> ConnectorMetadata:
        return ConnectorMetadata(
            display_name="Linear",
            description="Connector syncing users, teams, projects and roles from Linear",
        )

    async def validate(self) -> Annotations:
        """
        Check the configuration and that the API key belongs to an admin.

        Raises:
            ConfigurationError: If team IDs are set without ticketing
            ConnectorError: If the key is rejected or its user is not an admin
        """
        if self.ticket_schema_team_ids and not self.ticketing:
            raise ConfigurationError(
                "linear-connector: ticket_schema_team_ids requires ticketing to be enabled"
            )

        try:
            viewer, rate_limit = await self.client.authorize()
        except ConnectorError as e:
            raise fail(e, "failed to authenticate") from e

        annotations = Annotations().with_rate_limiting(rate_limit)
        if not viewer.admin:
            raise ConnectorError("linear-connector: authenticated user is not an admin", annotations)

        logger.info(f"Authenticated as admin user {viewer.id}")
        return annotations

    async def close(self) -> None:
        await self.client.close()
