"""Project resource type."""

from ..errors import ConnectorError
from ..linear_client import Project
from .helpers import (
    ASSOCIATED,
    MEMBERSHIP,
    RESOURCE_TYPE_PROJECT,
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
    ProjectProfile,
    Resource,
    ResourceId,
)
from .team import team_resource

PROJECTS = "projects"
USERS = "users"
TEAMS = "teams"


def project_resource(project: Project, parent_id: ResourceId | None) -> Resource:
    """Create a connector resource for a Linear project."""
    return Resource(
        id=ResourceId(resource_type=RESOURCE_TYPE_PROJECT.id, resource=project.id),
        display_name=project.name,
        parent_resource_id=parent_id,
        profile=ProjectProfile(project_id=project.id, project_slug=project.slug_id),
    )


class ProjectSyncer(ResourceSyncer):
    """Lists projects with their members and associated teams."""

    resource_type = RESOURCE_TYPE_PROJECT

    async def list(self, parent_id: ResourceId | None, token: str) -> Page[Resource]:
        bag = parse_page_token(token, self.resource_type.id)
        cursors = self.cursors(bag, [PROJECTS])

        try:
            projects, rate_limit = await self.client.get_projects(
                first=cursors.page_size, after=cursors.after(PROJECTS)
            )
        except ConnectorError as e:
            raise fail(e, "failed to list projects") from e

        next_token = advance(bag, cursors, {PROJECTS: projects.page_info})
        resources = [project_resource(project, parent_id) for project in projects.nodes]
        return Page(resources, next_token, Annotations().with_rate_limiting(rate_limit))

    async def entitlements(self, resource: Resource, token: str) -> Page[Entitlement]:
        name = resource.display_name
        return Page(
            [
                Entitlement.assignment(
                    resource,
                    MEMBERSHIP,
                    grantable_to=(RESOURCE_TYPE_USER,),
                    display_name=f"{name} Project {MEMBERSHIP}",
                    description=f"Member of {name} Linear project",
                ),
                Entitlement.assignment(
                    resource,
                    ASSOCIATED,
                    grantable_to=(RESOURCE_TYPE_TEAM,),
                    display_name=f"{name} Project {ASSOCIATED}",
                    description=f"Team associated with {name} Linear project",
                ),
            ]
        )

    async def grants(self, resource: Resource, token: str) -> Page[Grant]:
        project_id = resource.id.resource
        bag = parse_page_token(token, self.resource_type.id, project_id)
        cursors = self.cursors(bag, [USERS, TEAMS])

        try:
            project, rate_limit = await self.client.get_project(
                project_id,
                first=cursors.page_size,
                users_after=cursors.after(USERS),
                teams_after=cursors.after(TEAMS),
                include_users=cursors.is_active(USERS),
                include_teams=cursors.is_active(TEAMS),
            )
        except ConnectorError as e:
            raise fail(e, f"failed to get project {project_id}") from e

        members, teams = project.members, project.teams
        next_token = advance(
            bag,
            cursors,
            {
                USERS: members.page_info if members else None,
                TEAMS: teams.page_info if teams else None,
            },
        )

        grants: list[Grant] = []
        for member in members.nodes if members else []:
            grants.append(Grant.new(resource, MEMBERSHIP, user_resource(member, resource.id)))
        for team in teams.nodes if teams else []:
            grants.append(Grant.new(resource, ASSOCIATED, team_resource(team, resource.id)))

        return Page(grants, next_token, Annotations().with_rate_limiting(rate_limit))
