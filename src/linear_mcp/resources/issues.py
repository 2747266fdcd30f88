"""Issue resources, including issues reached through teams, states, users and relations."""

from functools import partial
from typing import Any

from ..client import LinearClient
from ..formatting import format_issue, format_issue_line, format_issue_list
from ..pagination import DEFAULT_PAGE_SIZE, PaginationOptions, Paginator, fetch_all_pages
from ..relationships import RelationshipManager
from ..router import ResourceDescriptor, ResourceRouter, UriTemplate

ISSUE = UriTemplate("linear://issues/{id}")

DESCRIPTION_PREVIEW = 100


def register_issue_resources(
    router: ResourceRouter,
    client: LinearClient,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> None:
    options = PaginationOptions(first=page_size)
    relationships = RelationshipManager(client, page_size)

    # The workspace-wide issue collection is too large to walk; both views show the first page.
    async def list_issues(_context: Any) -> list[ResourceDescriptor]:
        page = await Paginator(client.list_issues, first=page_size).next_page()
        return [
            ResourceDescriptor(
                uri=ISSUE.expand(id=issue.id),
                name=f"{issue.identifier}: {issue.title}",
                description=(issue.description or "")[:DESCRIPTION_PREVIEW] or None,
            )
            for issue in page.nodes
        ]

    @router.resource(
        "issues",
        "linear://issues",
        description="List of Linear issues",
        list_resources=list_issues,
    )
    async def read_issues(uri: str, variables: dict[str, str]) -> str:
        page = await Paginator(client.list_issues, first=page_size).next_page()
        return format_issue_list(page.nodes)

    @router.resource("issue", ISSUE, description="A Linear issue with all its details")
    async def read_issue(uri: str, variables: dict[str, str]) -> str:
        return format_issue(await client.get_issue(variables["id"]))

    @router.resource(
        "teamIssues",
        "linear://teams/{teamId}/issues",
        description="Linear issues for a specific team",
    )
    async def read_team_issues(uri: str, variables: dict[str, str]) -> str:
        issues = await fetch_all_pages(
            partial(client.list_issues, team_ids=[variables["teamId"]]), options
        )
        return format_issue_list(issues)

    @router.resource(
        "stateIssues",
        "linear://states/{stateId}/issues",
        description="Linear issues in a specific state",
    )
    async def read_state_issues(uri: str, variables: dict[str, str]) -> str:
        issues = await fetch_all_pages(
            partial(client.list_issues, state_ids=[variables["stateId"]]), options
        )
        return format_issue_list(issues)

    @router.resource(
        "userIssues",
        "linear://users/{userId}/issues",
        description="Linear issues assigned to a specific user",
    )
    async def read_user_issues(uri: str, variables: dict[str, str]) -> str:
        issues = await relationships.get_issues_assigned_to_user(variables["userId"])
        if not issues:
            return "No issues assigned."
        return "\n".join(format_issue_line(issue, with_assignee=True) for issue in issues)

    @router.resource(
        "issueRelations",
        "linear://issues/{issueId}/relations",
        description="Issues linked to a specific issue",
    )
    async def read_issue_relations(uri: str, variables: dict[str, str]) -> str:
        outgoing, incoming = await relationships.get_relations(variables["issueId"])
        lines = [
            f"- {relation.type} {relation.related_issue.identifier}: {relation.related_issue.title}"
            for relation in outgoing
            if relation.related_issue
        ]
        lines += [
            f"- {relation.type} by {relation.issue.identifier}: {relation.issue.title}"
            for relation in incoming
            if relation.issue
        ]
        return "\n".join(lines) if lines else "No related issues."

    @router.resource(
        "labelIssues",
        "linear://labels/{labelId}/issues",
        description="Linear issues carrying a specific label",
    )
    async def read_label_issues(uri: str, variables: dict[str, str]) -> str:
        return format_issue_list(await relationships.get_issues_with_label(variables["labelId"]))
