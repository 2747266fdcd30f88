"""Milestone resources."""

from typing import Any

from ..client import LinearClient
from ..formatting import format_date, format_milestone
from ..pagination import DEFAULT_PAGE_SIZE, PaginationOptions, fetch_all_pages
from ..router import ResourceDescriptor, ResourceRouter, UriTemplate
from .projects import PROJECT

MILESTONE = UriTemplate("linear://milestones/{id}")


def register_milestone_resources(
    router: ResourceRouter,
    client: LinearClient,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> None:
    options = PaginationOptions(first=page_size)

    async def list_milestones(_context: Any) -> list[ResourceDescriptor]:
        milestones = await fetch_all_pages(client.list_milestones, options)
        return [
            ResourceDescriptor(
                uri=MILESTONE.expand(id=milestone.id),
                name=milestone.name,
                description=milestone.description or None,
            )
            for milestone in milestones
        ]

    @router.resource(
        "milestones",
        "linear://milestones",
        description="List of Linear milestones",
        list_resources=list_milestones,
    )
    async def read_milestones(uri: str, variables: dict[str, str]) -> str:
        milestones = await fetch_all_pages(client.list_milestones, options)
        if not milestones:
            return "No milestones found."
        return "\n".join(
            f"- {milestone.name}"
            + (f" (Target: {format_date(milestone.target_date)})" if milestone.target_date else "")
            for milestone in milestones
        )

    @router.resource("milestone", MILESTONE, description="A Linear milestone with its projects")
    async def read_milestone(uri: str, variables: dict[str, str]) -> str:
        return format_milestone(await client.get_milestone(variables["id"]))

    @router.resource(
        "milestoneProjects",
        "linear://milestones/{milestoneId}/projects",
        description="Projects in a specific milestone",
    )
    async def read_milestone_projects(uri: str, variables: dict[str, str]) -> str:
        milestone = await client.get_milestone(variables["milestoneId"])
        if not milestone.projects:
            return f"# Projects in {milestone.name}\n\nNo projects in this milestone."
        lines = [f"# Projects in {milestone.name}", ""]
        for project in milestone.projects:
            lines.append(f"- {project.name} ({project.state or 'No state'})")
            if project.target_date:
                lines.append(f"  Target: {format_date(project.target_date)}")
            lines.append(f"  Resource: {PROJECT.expand(id=project.id)}")
        return "\n".join(lines)
