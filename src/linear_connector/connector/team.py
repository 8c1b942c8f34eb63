"""Team resource type and team membership provisioning."""

import logging

from ..errors import ConnectorError, PrincipalTypeError
from ..linear_client import Team
from .helpers import (
    MEMBERSHIP,
    RESOURCE_TYPE_TEAM,
    RESOURCE_TYPE_USER,
    ResourceSyncer,
    advance,
    fail,
    parse_page_token,
    user_resource,
)
from .resources import (
    Annotations,
    Entitlement,
    Grant,
    Page,
    Resource,
    ResourceId,
    TeamProfile,
)

logger = logging.getLogger(__name__)

TEAMS = "teams"
MEMBERSHIPS = "memberships"


def team_resource(team: Team, parent_id: ResourceId | None) -> Resource:
    """Create a connector resource for a Linear team."""
    return Resource(
        id=ResourceId(resource_type=RESOURCE_TYPE_TEAM.id, resource=team.id),
        display_name=team.name,
        parent_resource_id=parent_id,
        profile=TeamProfile(team_id=team.id, team_name=team.name),
    )


class TeamSyncer(ResourceSyncer):
    """Lists teams and their members; adds and removes memberships."""

    resource_type = RESOURCE_TYPE_TEAM

    async def list(self, parent_id: ResourceId | None, token: str) -> Page[Resource]:
        if parent_id is None:
            return Page()

        bag = parse_page_token(token, self.resource_type.id)
        cursors = self.cursors(bag, [TEAMS])

        try:
            teams, rate_limit = await self.client.get_teams(
                first=cursors.page_size, after=cursors.after(TEAMS)
            )
        except ConnectorError as e:
            raise fail(e, "failed to list teams") from e

        next_token = advance(bag, cursors, {TEAMS: teams.page_info})
        resources = [team_resource(team, parent_id) for team in teams.nodes]
        return Page(resources, next_token, Annotations().with_rate_limiting(rate_limit))

    async def entitlements(self, resource: Resource, token: str) -> Page[Entitlement]:
        member = Entitlement.assignment(
            resource,
            MEMBERSHIP,
            grantable_to=(RESOURCE_TYPE_USER,),
            display_name=f"{resource.display_name} Team {MEMBERSHIP}",
            description=f"Member of {resource.display_name} team in Linear",
        )
        return Page([member])

    async def grants(self, resource: Resource, token: str) -> Page[Grant]:
        team_id = resource.id.resource
        bag = parse_page_token(token, self.resource_type.id, team_id)
        cursors = self.cursors(bag, [MEMBERSHIPS])

        try:
            team, rate_limit = await self.client.get_team(
                team_id, first=cursors.page_size, after=cursors.after(MEMBERSHIPS)
            )
        except ConnectorError as e:
            raise fail(e, f"failed to list memberships of team {team_id}") from e

        memberships = team.memberships
        next_token = advance(bag, cursors, {MEMBERSHIPS: memberships.page_info if memberships else None})

        grants = []
        for membership in memberships.nodes if memberships else []:
            if membership.user is None:
                continue
            principal = user_resource(membership.user, resource.id)
            grants.append(Grant.new(resource, MEMBERSHIP, principal))

        return Page(grants, next_token, Annotations().with_rate_limiting(rate_limit))

    async def grant(self, principal: Resource, entitlement: Entitlement) -> Annotations:
        """Add *principal* to the entitlement's team."""
        if principal.id.resource_type != RESOURCE_TYPE_USER.id:
            raise PrincipalTypeError("linear-connector: only users can be team members")

        team_id = entitlement.resource.id.resource
        user_id = principal.id.resource
        try:
            membership_id, rate_limit = await self.client.add_member_to_team(team_id, user_id)
        except ConnectorError as e:
            raise fail(e, "failed to add team member") from e

        logger.info(f"Added user {user_id} to team {team_id} (membership {membership_id})")
        return Annotations().with_rate_limiting(rate_limit)

    async def revoke(self, grant: Grant) -> Annotations:
        """Remove the grant's principal from the team."""
        principal = grant.principal
        if principal.id.resource_type != RESOURCE_TYPE_USER.id:
            raise PrincipalTypeError("linear-connector: only users can be removed from teams")

        team_id = grant.entitlement.resource.id.resource
        user_id = principal.id.resource
        annotations = Annotations()

        membership_id = None
        after = None
        try:
            while membership_id is None:
                team, rate_limit = await self.client.get_team(
                    team_id, first=self.page_size, after=after
                )
                annotations.with_rate_limiting(rate_limit)
                memberships = team.memberships
                if memberships is None:
                    break
                for membership in memberships.nodes:
                    if membership.user is not None and membership.user.id == user_id:
                        membership_id = membership.id
                        break
                next_cursor = memberships.next_cursor
                if not next_cursor:
                    break
                if next_cursor == after:
                    logger.warning(f"Memberships of team {team_id} returned the same cursor twice")
                    break
                after = next_cursor

            if membership_id is None:
                logger.info(f"User {user_id} is not a member of team {team_id}, nothing to revoke")
                return annotations

            annotations.with_rate_limiting(await self.client.remove_team_membership(membership_id))
        except ConnectorError as e:
            raise fail(e, "failed to remove team member", annotations) from e

        logger.info(f"Removed user {user_id} from team {team_id}")
        return annotations
