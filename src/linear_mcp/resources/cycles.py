"""Cycle resources.

Cycles belong to teams, so every cross-team view lists the teams first
and then fans out one cycle traversal per team. The flattened result
follows team order, whatever order the fetches complete in.
"""

from datetime import datetime, timezone
from functools import partial
from typing import Any

from ..client import LinearClient
from ..formatting import cycle_name, cycle_status, format_cycle, format_cycle_dates, format_issue_list
from ..models import Cycle, Team
from ..pagination import DEFAULT_PAGE_SIZE, PaginationOptions, Paginator, fan_out, fetch_all_pages
from ..relationships import RelationshipManager
from ..router import ResourceDescriptor, ResourceRouter, UriTemplate

CYCLE = UriTemplate("linear://cycles/{id}")


async def list_cycles_by_team(
    client: LinearClient, page_size: int = DEFAULT_PAGE_SIZE
) -> list[tuple[Team, Cycle]]:
    """Every cycle of every team as (team, cycle) pairs in team order."""
    teams = await fetch_all_pages(client.list_teams, PaginationOptions(first=page_size))

    async def cycles_for(team: Team) -> list[tuple[Team, Cycle]]:
        paginator = Paginator(partial(client.list_cycles, team_id=team.id), first=page_size)
        return [(team, cycle) for cycle in await paginator.fetch_all()]

    return await fan_out(teams, cycles_for)


def register_cycle_resources(
    router: ResourceRouter,
    client: LinearClient,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> None:
    relationships = RelationshipManager(client, page_size)

    async def list_cycles(_context: Any) -> list[ResourceDescriptor]:
        return [
            ResourceDescriptor(
                uri=CYCLE.expand(id=cycle.id),
                name=cycle_name(cycle),
                description=f"{team.name} cycle: {format_cycle_dates(cycle)}",
            )
            for team, cycle in await list_cycles_by_team(client, page_size)
        ]

    @router.resource(
        "cycles",
        "linear://cycles",
        description="List of Linear cycles across all teams",
        list_resources=list_cycles,
    )
    async def read_cycles(uri: str, variables: dict[str, str]) -> str:
        pairs = await list_cycles_by_team(client, page_size)
        if not pairs:
            return "No cycles found."
        return "\n".join(
            f"- {cycle_name(cycle)} ({team.name}, {format_cycle_dates(cycle)})"
            for team, cycle in pairs
        )

    # Registered before linear://cycles/{id}, which would otherwise capture "active"
    @router.resource(
        "activeCycles",
        "linear://cycles/active",
        description="Currently active cycles across all teams",
    )
    async def read_active_cycles(uri: str, variables: dict[str, str]) -> str:
        now = datetime.now(timezone.utc)
        active = [
            f"- {cycle_name(cycle)} ({team.name}, {format_cycle_dates(cycle)})"
            for team, cycle in await list_cycles_by_team(client, page_size)
            if cycle_status(cycle, now) == "Active"
        ]
        return "\n".join(active) if active else "No active cycles found."

    @router.resource("cycle", CYCLE, description="A Linear cycle with all its details")
    async def read_cycle(uri: str, variables: dict[str, str]) -> str:
        cycle = await client.get_cycle(variables["id"])
        issues = await relationships.get_issues_for_cycle(cycle.id)
        return format_cycle(cycle, issues)

    @router.resource(
        "cycleIssues",
        "linear://cycles/{cycleId}/issues",
        description="Issues in a specific cycle",
    )
    async def read_cycle_issues(uri: str, variables: dict[str, str]) -> str:
        return format_issue_list(await relationships.get_issues_for_cycle(variables["cycleId"]))
