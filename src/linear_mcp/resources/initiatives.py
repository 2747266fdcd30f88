"""Initiative resources and the project-to-initiative link."""

from typing import Any

from ..client import LinearClient
from ..formatting import format_date, format_initiative, format_project_details
from ..pagination import DEFAULT_PAGE_SIZE, PaginationOptions, fetch_all_pages
from ..relationships import RelationshipManager
from ..router import ResourceDescriptor, ResourceRouter, UriTemplate
from .projects import PROJECT

INITIATIVE = UriTemplate("linear://initiatives/{id}")


def register_initiative_resources(
    router: ResourceRouter,
    client: LinearClient,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> None:
    options = PaginationOptions(first=page_size)
    relationships = RelationshipManager(client, page_size)

    async def list_initiatives(_context: Any) -> list[ResourceDescriptor]:
        initiatives = await fetch_all_pages(client.list_initiatives, options)
        return [
            ResourceDescriptor(
                uri=INITIATIVE.expand(id=initiative.id),
                name=initiative.name,
                description=initiative.description or None,
            )
            for initiative in initiatives
        ]

    @router.resource(
        "initiatives",
        "linear://initiatives",
        description="List of Linear initiatives",
        list_resources=list_initiatives,
    )
    async def read_initiatives(uri: str, variables: dict[str, str]) -> str:
        initiatives = await fetch_all_pages(client.list_initiatives, options)
        if not initiatives:
            return "No initiatives found."
        return "\n".join(
            f"- {initiative.name} ({initiative.state or 'Not started'})" for initiative in initiatives
        )

    @router.resource("initiative", INITIATIVE, description="A Linear initiative with its projects")
    async def read_initiative(uri: str, variables: dict[str, str]) -> str:
        return format_initiative(await client.get_initiative(variables["id"]))

    @router.resource(
        "initiativeProjects",
        "linear://initiatives/{initiativeId}/projects",
        description="Projects in a specific initiative",
    )
    async def read_initiative_projects(uri: str, variables: dict[str, str]) -> str:
        projects = await relationships.get_projects_for_initiative(variables["initiativeId"])
        return format_project_details(
            projects,
            link=lambda project: PROJECT.expand(id=project.id),
            empty="No projects associated with this initiative.",
        )

    @router.resource(
        "projectInitiative",
        "linear://projects/{projectId}/initiative",
        description="Initiative a specific project belongs to",
    )
    async def read_project_initiative(uri: str, variables: dict[str, str]) -> str:
        project, initiative = await client.get_project_initiative(variables["projectId"])
        heading = f"# Initiative for Project: {project.name}"
        if initiative is None:
            return f"{heading}\n\nThis project is not associated with any initiative."
        lines = [heading, "", f"## {initiative.name}", ""]
        if initiative.description:
            lines += [initiative.description, ""]
        lines.append(f"State: {initiative.state or 'No state'}")
        if initiative.target_date:
            lines.append(f"Target Date: {format_date(initiative.target_date)}")
        lines += ["", f"Resource: {INITIATIVE.expand(id=initiative.id)}"]
        return "\n".join(lines)
