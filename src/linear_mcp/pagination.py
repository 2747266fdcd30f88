"""
Cursor pagination over Linear connections.

Linear returns every collection as a Relay-style connection:

    {"nodes": [...], "pageInfo": {"hasNextPage": true, "endCursor": "..."}}

Paginator keeps the cursor between calls for resumable traversal;
fetch_all_pages() is the one-shot form. Both stop when the metadata says
there is no next page OR when a page comes back shorter than requested,
since a short page means the connection is exhausted even if hasNextPage
claims otherwise.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50

T = TypeVar("T")
P = TypeVar("P")
C = TypeVar("C")


class PageInfo(BaseModel):
    """Connection metadata returned alongside a page of nodes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    has_next_page: bool = False
    end_cursor: str | None = None


class Page(BaseModel, Generic[T]):
    """One page of nodes from a paginated backend."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    nodes: list[T] = Field(default_factory=list)
    page_info: PageInfo | None = None


@dataclass(frozen=True)
class PaginationOptions:
    """Arguments passed to a page fetcher."""

    first: int = DEFAULT_PAGE_SIZE
    after: str | None = None
    filters: dict[str, Any] = field(default_factory=dict)


PageFetcher = Callable[[PaginationOptions], Awaitable[Page]]


def validate_page_size(first: Any) -> int:
    """Return first if it is a positive int, else raise ValueError."""
    if isinstance(first, bool) or not isinstance(first, int) or first < 1:
        raise ValueError(f"Page size must be a positive integer, got {first!r}")
    return first


def next_cursor(page: Page, first: int) -> str | None:
    """Cursor for the page after this one, or None when the connection is exhausted."""
    info = page.page_info
    if info is None or not info.has_next_page or not info.end_cursor:
        return None
    if len(page.nodes) < first:
        logger.debug(
            "Short page (%d < %d) despite hasNextPage; stopping", len(page.nodes), first
        )
        return None
    return info.end_cursor


async def fetch_all_pages(
    fetch_page: PageFetcher,
    options: PaginationOptions | None = None,
) -> list[Any]:
    """
    Fetch every page of a connection and return all nodes in fetch order.

    Args:
        fetch_page: Coroutine (PaginationOptions) -> Page
        options: Page size, starting cursor and filters (default: first=50)

    Returns:
        Concatenated nodes across all pages
    """
    options = options or PaginationOptions()
    first = validate_page_size(options.first)
    after = options.after
    nodes: list[Any] = []

    while True:
        page = await fetch_page(PaginationOptions(first=first, after=after, filters=options.filters))
        nodes.extend(page.nodes)
        after = next_cursor(page, first)
        if after is None:
            return nodes


async def fan_out(
    parents: Iterable[P],
    fetch_children: Callable[[P], Awaitable[list[C]]],
) -> list[C]:
    """
    Fetch children for every parent concurrently and flatten them.

    Results keep parent-iteration order regardless of which fetch
    completes first. The first failure propagates.
    """
    results = await asyncio.gather(*(fetch_children(parent) for parent in parents))
    return [child for children in results for child in children]


class Paginator(Generic[T]):
    """Resumable cursor traversal of a paginated backend.

    Owned by the call that created it; not safe to share between
    concurrent operations.

    Example:
        >>> paginator = Paginator(client.list_teams, first=25)
        >>> first_page = await paginator.next_page()
        >>> if paginator.has_next_page():
        ...     rest = await paginator.fetch_all()
    """

    def __init__(
        self,
        fetch_page: PageFetcher,
        first: int = DEFAULT_PAGE_SIZE,
        filters: dict[str, Any] | None = None,
    ) -> None:
        self._fetch_page = fetch_page
        self.first = validate_page_size(first)
        self.filters = dict(filters or {})
        self._cursor: str | None = None
        self._has_more = True

    @property
    def cursor(self) -> str | None:
        return self._cursor

    async def next_page(self) -> Page[T]:
        """Fetch the next page; returns an empty page without I/O once exhausted."""
        if not self._has_more:
            return Page()

        page = await self._fetch_page(
            PaginationOptions(first=self.first, after=self._cursor, filters=self.filters)
        )
        cursor = next_cursor(page, self.first)
        if cursor is None:
            self._has_more = False
        else:
            self._cursor = cursor
        return page

    def has_next_page(self) -> bool:
        return self._has_more

    def reset(self) -> None:
        """Restart the traversal from the beginning."""
        self._cursor = None
        self._has_more = True

    async def fetch_all(self) -> list[T]:
        """Fetch all remaining pages and return their nodes in order."""
        nodes: list[T] = []
        while self._has_more:
            page = await self.next_page()
            nodes.extend(page.nodes)
        return nodes

    async def __aiter__(self) -> AsyncIterator[T]:
        while self._has_more:
            page = await self.next_page()
            for node in page.nodes:
                yield node
