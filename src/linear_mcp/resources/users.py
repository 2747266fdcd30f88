"""User resources."""

from functools import partial
from typing import Any

from ..client import LinearClient
from ..formatting import format_user
from ..pagination import DEFAULT_PAGE_SIZE, PaginationOptions, fetch_all_pages
from ..router import ResourceDescriptor, ResourceRouter, UriTemplate

USER = UriTemplate("linear://users/{id}")


def register_user_resources(
    router: ResourceRouter,
    client: LinearClient,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> None:
    options = PaginationOptions(first=page_size)

    async def list_users(_context: Any) -> list[ResourceDescriptor]:
        users = await fetch_all_pages(client.list_users, options)
        return [
            ResourceDescriptor(
                uri=USER.expand(id=user.id),
                name=user.name,
                description=user.email or None,
            )
            for user in users
        ]

    @router.resource(
        "users",
        "linear://users",
        description="List of Linear users",
        list_resources=list_users,
    )
    async def read_users(uri: str, variables: dict[str, str]) -> str:
        users = await fetch_all_pages(client.list_users, options)
        if not users:
            return "No users found."
        return "\n".join(f"- {user.name} ({user.email})" for user in users)

    @router.resource("user", USER, description="A Linear user with all their details")
    async def read_user(uri: str, variables: dict[str, str]) -> str:
        return format_user(await client.get_user(variables["id"]))

    @router.resource(
        "teamMembers",
        "linear://teams/{teamId}/members",
        description="Members of a specific team",
    )
    async def read_team_members(uri: str, variables: dict[str, str]) -> str:
        members = await fetch_all_pages(
            partial(client.list_team_members, team_id=variables["teamId"]), options
        )
        if not members:
            return "No members."
        return "\n".join(f"- {member.name} ({member.email or 'No email'})" for member in members)
