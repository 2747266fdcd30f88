"""Comment resources."""

from functools import partial

from ..client import LinearClient
from ..formatting import format_comment, format_comment_thread
from ..pagination import DEFAULT_PAGE_SIZE, PaginationOptions, Paginator, fetch_all_pages
from ..router import ResourceRouter

RECENT_COMMENTS = 20


def register_comment_resources(
    router: ResourceRouter,
    client: LinearClient,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> None:
    options = PaginationOptions(first=page_size)

    # Registered before linear://comments/{id}, which would otherwise capture "recent"
    @router.resource(
        "recentComments",
        "linear://comments/recent",
        description="Recent comments across all issues",
    )
    async def read_recent_comments(uri: str, variables: dict[str, str]) -> str:
        fetch = partial(client.list_comments, order_by="createdAt")
        page = await Paginator(fetch, first=RECENT_COMMENTS).next_page()
        return format_comment_thread(page.nodes, heading="both")

    @router.resource(
        "comment", "linear://comments/{id}", description="A Linear comment with all its details"
    )
    async def read_comment(uri: str, variables: dict[str, str]) -> str:
        return format_comment(await client.get_comment(variables["id"]))

    @router.resource(
        "issueComments",
        "linear://issues/{issueId}/comments",
        description="Comments on a specific issue",
    )
    async def read_issue_comments(uri: str, variables: dict[str, str]) -> str:
        comments = await fetch_all_pages(
            partial(client.list_comments, issue_id=variables["issueId"]), options
        )
        return format_comment_thread(comments, heading="author")

    @router.resource(
        "userComments",
        "linear://users/{userId}/comments",
        description="Comments created by a specific user",
    )
    async def read_user_comments(uri: str, variables: dict[str, str]) -> str:
        fetch = partial(client.list_comments, user_id=variables["userId"], order_by="createdAt")
        page = await Paginator(fetch, first=RECENT_COMMENTS).next_page()
        return format_comment_thread(page.nodes, heading="issue")
