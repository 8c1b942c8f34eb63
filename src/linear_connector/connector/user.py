"""User resource type."""

import logging

from ..errors import ConnectorError
from ..linear_client import OrganizationInviteRole
from .helpers import (
    RESOURCE_TYPE_USER,
    ResourceSyncer,
    advance,
    fail,
    parse_page_token,
    user_resource,
)
from .resources import Annotations, Page, Resource, ResourceId

logger = logging.getLogger(__name__)

USERS = "users"


class UserSyncer(ResourceSyncer):
    """Lists organization users and invites new ones."""

    resource_type = RESOURCE_TYPE_USER

    async def list(self, parent_id: ResourceId | None, token: str) -> Page[Resource]:
        if parent_id is None:
            return Page()

        bag = parse_page_token(token, self.resource_type.id)
        cursors = self.cursors(bag, [USERS])

        try:
            users, rate_limit = await self.client.get_users(
                first=cursors.page_size, after=cursors.after(USERS)
            )
        except ConnectorError as e:
            raise fail(e, "failed to list users") from e

        next_token = advance(bag, cursors, {USERS: users.page_info})
        resources = [user_resource(user, parent_id) for user in users.nodes]
        return Page(resources, next_token, Annotations().with_rate_limiting(rate_limit))

    async def create(self, resource: Resource) -> tuple[Resource, Annotations]:
        """
        Invite a user to the organization.

        The invite is created with the member role; the returned resource
        stands for the pending invite.

        Raises:
            ConnectorError: If the resource has no email
        """
        if not resource.email:
            raise ConnectorError("linear-connector: email is required to create a user")

        try:
            invite, rate_limit = await self.client.create_organization_invite(
                resource.email, OrganizationInviteRole.MEMBER
            )
        except ConnectorError as e:
            raise fail(e, "failed to invite user") from e

        logger.info(f"Invited {invite.email or resource.email} to the organization")
        created = Resource(
            id=ResourceId(resource_type=self.resource_type.id, resource=invite.id),
            display_name=resource.display_name or resource.email,
            parent_resource_id=resource.parent_resource_id,
            email=invite.email or resource.email,
        )
        return created, Annotations().with_rate_limiting(rate_limit)
