"""Organization role resource type and role provisioning.

Linear has no role objects; a user's role is derived from its ``admin`` and
``active`` flags, so granting or revoking a role updates those flags. Guest
is only assignable when inviting and owner only through the Linear UI.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from ..errors import ConnectorError, PrincipalTypeError, RoleOperationError, UnknownRoleError
from .helpers import (
    MEMBERSHIP,
    RESOURCE_TYPE_ROLE,
    RESOURCE_TYPE_USER,
    ResourceSyncer,
    fail,
    title_case,
)
from .resources import Annotations, Entitlement, Grant, Page, Resource, ResourceId, RoleProfile

logger = logging.getLogger(__name__)


class Role(str, Enum):
    """Organization role."""

    GUEST = "guest"
    USER = "user"
    ADMIN = "admin"
    OWNER = "owner"

    @classmethod
    def parse(cls, role_id: str) -> "Role":
        try:
            return cls(role_id)
        except ValueError:
            raise UnknownRoleError(f"linear-connector: unknown role: {role_id}") from None


@dataclass(frozen=True)
class UserUpdate:
    """Flag changes applied to a user; None leaves a flag untouched."""

    admin: bool | None = None
    active: bool | None = None
    action: str = ""


# None marks a role the API cannot assign.
GRANT_UPDATES: dict[Role, UserUpdate | None] = {
    Role.ADMIN: UserUpdate(admin=True, action="grant admin role"),
    Role.USER: UserUpdate(admin=False, action="grant user role"),
    Role.GUEST: None,
    Role.OWNER: None,
}

REVOKE_UPDATES: dict[Role, UserUpdate | None] = {
    Role.ADMIN: UserUpdate(admin=False, action="revoke admin role"),
    Role.USER: UserUpdate(active=False, action="suspend user"),
    Role.GUEST: None,
    Role.OWNER: None,
}


def role_resource(role: Role, parent_id: ResourceId | None) -> Resource:
    """Create a connector resource for a Linear role."""
    name = title_case(role.value)
    return Resource(
        id=ResourceId(resource_type=RESOURCE_TYPE_ROLE.id, resource=role.value),
        display_name=name,
        parent_resource_id=parent_id,
        profile=RoleProfile(role_id=role.value, role_name=name),
    )


class RoleSyncer(ResourceSyncer):
    """The fixed set of organization roles."""

    resource_type = RESOURCE_TYPE_ROLE

    async def list(self, parent_id: ResourceId | None, token: str) -> Page[Resource]:
        if parent_id is None:
            return Page()
        return Page([role_resource(role, parent_id) for role in Role])

    async def entitlements(self, resource: Resource, token: str) -> Page[Entitlement]:
        member = Entitlement.assignment(
            resource,
            MEMBERSHIP,
            grantable_to=(RESOURCE_TYPE_USER,),
            display_name=f"{resource.display_name} Role {title_case(MEMBERSHIP)}",
            description=f"{resource.display_name} Linear role",
        )
        return Page([member])

    async def _apply(self, user_id: str, update: UserUpdate) -> Annotations:
        try:
            rate_limit = await self.client.update_user(
                user_id, admin=update.admin, active=update.active
            )
        except ConnectorError as e:
            raise fail(e, f"failed to {update.action}") from e
        logger.info(f"Applied '{update.action}' to user {user_id}")
        return Annotations().with_rate_limiting(rate_limit)

    async def grant(self, principal: Resource, entitlement: Entitlement) -> Annotations:
        """Assign the entitlement's role to *principal*."""
        if principal.id.resource_type != RESOURCE_TYPE_USER.id:
            raise PrincipalTypeError("linear-connector: only users can be granted roles")

        role = Role.parse(entitlement.resource.id.resource)
        update = GRANT_UPDATES[role]
        if update is None:
            raise RoleOperationError(f"linear-connector: {role.value} role cannot be granted via API")
        return await self._apply(principal.id.resource, update)

    async def revoke(self, grant: Grant) -> Annotations:
        """Take the grant's role away from its principal."""
        principal = grant.principal
        if principal.id.resource_type != RESOURCE_TYPE_USER.id:
            raise PrincipalTypeError("linear-connector: only users can have roles revoked")

        role = Role.parse(grant.entitlement.resource.id.resource)
        update = REVOKE_UPDATES[role]
        if update is None:
            raise RoleOperationError(f"linear-connector: {role.value} role cannot be revoked via API")
        return await self._apply(principal.id.resource, update)
