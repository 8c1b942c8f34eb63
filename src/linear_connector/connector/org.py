"""Organization resource type."""

from ..errors import ConnectorError
from ..linear_client import Organization
from ..pagination import Bag, CursorSet
from .helpers import (
    MEMBERSHIP,
    RESOURCE_TYPE_ORG,
    RESOURCE_TYPE_ROLE,
    RESOURCE_TYPE_TEAM,
    RESOURCE_TYPE_USER,
    ResourceSyncer,
    advance,
    fail,
    parse_page_token,
    title_case,
    user_resource,
)
from .resources import (
    Annotations,
    ChildResourceType,
    Entitlement,
    Grant,
    Page,
    Resource,
    ResourceId,
)
from .team import team_resource

USERS = "users"
TEAMS = "teams"


def org_resource(org: Organization, parent_id: ResourceId | None) -> Resource:
    """Create a connector resource for the Linear organization."""
    return Resource(
        id=ResourceId(resource_type=RESOURCE_TYPE_ORG.id, resource=org.id),
        display_name=org.name,
        parent_resource_id=parent_id,
        annotations=Annotations(
            [
                ChildResourceType(resource_type_id=RESOURCE_TYPE_USER.id),
                ChildResourceType(resource_type_id=RESOURCE_TYPE_TEAM.id),
                ChildResourceType(resource_type_id=RESOURCE_TYPE_ROLE.id),
            ]
        ),
    )


class OrgSyncer(ResourceSyncer):
    """The organization, paging its users and teams together."""

    resource_type = RESOURCE_TYPE_ORG

    async def _fetch(self, bag: Bag, cursors: CursorSet) -> tuple[Organization, str, Annotations]:
        org, rate_limit = await self.client.get_organization(
            first=cursors.page_size,
            users_after=cursors.after(USERS),
            teams_after=cursors.after(TEAMS),
            include_users=cursors.is_active(USERS),
            include_teams=cursors.is_active(TEAMS),
        )
        next_token = advance(
            bag,
            cursors,
            {
                USERS: org.users.page_info if org.users else None,
                TEAMS: org.teams.page_info if org.teams else None,
            },
        )
        return org, next_token, Annotations().with_rate_limiting(rate_limit)

    async def list(self, parent_id: ResourceId | None, token: str) -> Page[Resource]:
        bag = parse_page_token(token, self.resource_type.id)
        cursors = self.cursors(bag, [USERS, TEAMS])

        try:
            org, next_token, annotations = await self._fetch(bag, cursors)
        except ConnectorError as e:
            raise fail(e, "failed to list an organization") from e

        # Later pages only advance the sub-collection cursors.
        resources = [org_resource(org, parent_id)] if cursors.fresh else []
        return Page(resources, next_token, annotations)

    async def entitlements(self, resource: Resource, token: str) -> Page[Entitlement]:
        member = Entitlement.assignment(
            resource,
            MEMBERSHIP,
            grantable_to=(RESOURCE_TYPE_TEAM, RESOURCE_TYPE_USER),
            display_name=f"{resource.display_name} Org {title_case(MEMBERSHIP)}",
            description=f"Member of {resource.display_name} Linear org",
        )
        return Page([member])

    async def grants(self, resource: Resource, token: str) -> Page[Grant]:
        bag = parse_page_token(token, resource.id.resource_type, resource.id.resource)
        cursors = self.cursors(bag, [USERS, TEAMS])

        try:
            org, next_token, annotations = await self._fetch(bag, cursors)
        except ConnectorError as e:
            raise fail(e, "failed to list organization members") from e

        grants: list[Grant] = []
        for user in org.users.nodes if org.users else []:
            grants.append(Grant.new(resource, MEMBERSHIP, user_resource(user, resource.id)))
        for team in org.teams.nodes if org.teams else []:
            grants.append(Grant.new(resource, MEMBERSHIP, team_resource(team, resource.id)))

        return Page(grants, next_token, annotations)
