"""Team resources: the team collection and per-team states, labels and cycles."""

from functools import partial
from typing import Any

from ..client import LinearClient
from ..formatting import format_date, format_team
from ..pagination import DEFAULT_PAGE_SIZE, PaginationOptions, fetch_all_pages
from ..router import ResourceDescriptor, ResourceRouter, UriTemplate

TEAM = UriTemplate("linear://teams/{id}")


def register_team_resources(
    router: ResourceRouter,
    client: LinearClient,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> None:
    options = PaginationOptions(first=page_size)

    async def list_teams(_context: Any) -> list[ResourceDescriptor]:
        teams = await fetch_all_pages(client.list_teams, options)
        return [
            ResourceDescriptor(
                uri=TEAM.expand(id=team.id),
                name=team.name,
                description=team.description or None,
            )
            for team in teams
        ]

    @router.resource(
        "teams",
        "linear://teams",
        description="List of Linear teams",
        list_resources=list_teams,
    )
    async def read_teams(uri: str, variables: dict[str, str]) -> str:
        teams = await fetch_all_pages(client.list_teams, options)
        if not teams:
            return "No teams found."
        return "\n".join(f"- {team.name} ({team.key})" for team in teams)

    @router.resource("team", TEAM, description="A Linear team with all its details")
    async def read_team(uri: str, variables: dict[str, str]) -> str:
        return format_team(await client.get_team(variables["id"]))

    @router.resource(
        "teamStates",
        "linear://teams/{teamId}/states",
        description="Workflow states for a specific team",
    )
    async def read_team_states(uri: str, variables: dict[str, str]) -> str:
        states = await fetch_all_pages(
            partial(client.list_workflow_states, team_id=variables["teamId"]), options
        )
        if not states:
            return "No workflow states found."
        return "\n".join(f"- {state.name} ({state.type})" for state in states)

    @router.resource(
        "teamLabels",
        "linear://teams/{teamId}/labels",
        description="Labels for a specific team",
    )
    async def read_team_labels(uri: str, variables: dict[str, str]) -> str:
        labels = await fetch_all_pages(
            partial(client.list_labels, team_id=variables["teamId"]), options
        )
        if not labels:
            return "No labels found."
        return "\n".join(
            f"- {label.name}" + (f" - {label.description}" if label.description else "")
            for label in labels
        )

    @router.resource(
        "teamCycles",
        "linear://teams/{teamId}/cycles",
        description="Cycles for a specific team",
    )
    async def read_team_cycles(uri: str, variables: dict[str, str]) -> str:
        cycles = await fetch_all_pages(
            partial(client.list_cycles, team_id=variables["teamId"]), options
        )
        if not cycles:
            return "No cycles found."
        return "\n".join(
            f"- {cycle.number}: {format_date(cycle.starts_at)} to {format_date(cycle.ends_at)}"
            f" - {cycle.name or 'Unnamed cycle'}"
            for cycle in cycles
        )
