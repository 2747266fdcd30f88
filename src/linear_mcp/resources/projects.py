"""Project resources."""

from typing import Any

from ..client import LinearClient
from ..formatting import format_issue_list, format_project, format_project_list
from ..pagination import DEFAULT_PAGE_SIZE, PaginationOptions, fetch_all_pages
from ..relationships import RelationshipManager
from ..router import ResourceDescriptor, ResourceRouter, UriTemplate

PROJECT = UriTemplate("linear://projects/{id}")


def register_project_resources(
    router: ResourceRouter,
    client: LinearClient,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> None:
    options = PaginationOptions(first=page_size)
    relationships = RelationshipManager(client, page_size)

    async def list_projects(_context: Any) -> list[ResourceDescriptor]:
        projects = await fetch_all_pages(client.list_projects, options)
        return [
            ResourceDescriptor(
                uri=PROJECT.expand(id=project.id),
                name=project.name,
                description=project.description or None,
            )
            for project in projects
        ]

    @router.resource(
        "projects",
        "linear://projects",
        description="List of Linear projects",
        list_resources=list_projects,
    )
    async def read_projects(uri: str, variables: dict[str, str]) -> str:
        return format_project_list(await fetch_all_pages(client.list_projects, options))

    @router.resource("project", PROJECT, description="A Linear project with all its details")
    async def read_project(uri: str, variables: dict[str, str]) -> str:
        return format_project(await client.get_project(variables["id"]))

    @router.resource(
        "teamProjects",
        "linear://teams/{teamId}/projects",
        description="Linear projects for a specific team",
    )
    async def read_team_projects(uri: str, variables: dict[str, str]) -> str:
        return format_project_list(await relationships.get_projects_for_team(variables["teamId"]))

    @router.resource(
        "projectIssues",
        "linear://projects/{projectId}/issues",
        description="Issues in a specific project",
    )
    async def read_project_issues(uri: str, variables: dict[str, str]) -> str:
        return format_issue_list(await relationships.get_issues_for_project(variables["projectId"]))
