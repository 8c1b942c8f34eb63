"""Resource syncers and provisioning for Linear."""

from .connector import ConnectorMetadata, LinearConnector
from .helpers import (
    RESOURCE_TYPE_ORG,
    RESOURCE_TYPE_PROJECT,
    RESOURCE_TYPE_ROLE,
    RESOURCE_TYPE_TEAM,
    RESOURCE_TYPE_USER,
    ResourceSyncer,
)
from .resources import (
    Annotations,
    Entitlement,
    Grant,
    Page,
    Resource,
    ResourceId,
    ResourceType,
)
from .role import Role
from .tickets import Ticket, TicketManager, TicketSchema

__all__ = [
    "Annotations",
    "ConnectorMetadata",
    "Entitlement",
    "Grant",
    "LinearConnector",
    "Page",
    "RESOURCE_TYPE_ORG",
    "RESOURCE_TYPE_PROJECT",
    "RESOURCE_TYPE_ROLE",
    "RESOURCE_TYPE_TEAM",
    "RESOURCE_TYPE_USER",
    "Resource",
    "ResourceId",
    "ResourceSyncer",
    "ResourceType",
    "Role",
    "Ticket",
    "TicketManager",
    "TicketSchema",
]
