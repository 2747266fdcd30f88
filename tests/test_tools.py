"""Tests for linear_mcp.tools module."""

from collections.abc import Callable
from typing import Any

import pytest
from conftest import FakeLinearClient

from linear_mcp.errors import BackendError
from linear_mcp.resources import register_all_resources
from linear_mcp.router import ResourceRouter
from linear_mcp.tools import register_tools


class RecordingMCP:
    """Collects the functions registered with @mcp.tool()."""

    def __init__(self) -> None:
        self.tools: dict[str, Callable[..., Any]] = {}

    def tool(self) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
            self.tools[fn.__name__] = fn
            return fn

        return decorator


@pytest.fixture
def tools(fake_client: FakeLinearClient) -> dict[str, Callable[..., Any]]:
    router = ResourceRouter()
    register_all_resources(router, fake_client)  # type: ignore[arg-type]
    mcp = RecordingMCP()
    register_tools(mcp, fake_client, router)  # type: ignore[arg-type]
    return mcp.tools


class TestRegistration:
    """Tests for the registered tool set."""

    def test_registers_all_tools(self, tools: dict[str, Callable[..., Any]]) -> None:
        """Every tool should be registered."""
        assert set(tools) == {
            "search_linear",
            "list_issues",
            "create_issue",
            "update_issue",
            "create_comment",
            "link_issues",
            "unlink_issues",
            "assign_issue",
            "unassign_issue",
            "create_project",
            "update_project",
            "add_issue_to_project",
            "create_cycle",
            "update_cycle",
            "add_issues_to_cycle",
            "update_comment",
            "delete_comment",
            "read_resource",
        }


class TestSearchLinear:
    """Tests for search_linear."""

    @pytest.mark.asyncio
    async def test_search_issues(self, tools: dict[str, Callable[..., Any]]) -> None:
        """Issue search returns matching summaries."""
        result = await tools["search_linear"]("issue 2")
        assert result["count"] == 1
        assert result["results"][0]["identifier"] == "ENG-2"

    @pytest.mark.asyncio
    async def test_invalid_scope(self, tools: dict[str, Callable[..., Any]], fake_client: FakeLinearClient) -> None:
        """Unknown scopes are rejected before any backend call."""
        result = await tools["search_linear"]("x", scope="labels")
        assert "Invalid scope" in result["error"]
        assert fake_client.calls == []

    @pytest.mark.asyncio
    async def test_invalid_first(self, tools: dict[str, Callable[..., Any]], fake_client: FakeLinearClient) -> None:
        """Out-of-range page sizes are rejected before any backend call."""
        result = await tools["search_linear"]("x", first=0)
        assert "error" in result
        assert fake_client.calls == []

    @pytest.mark.asyncio
    async def test_search_users(self, tools: dict[str, Callable[..., Any]], fake_client: FakeLinearClient) -> None:
        """User search filters by name."""
        result = await tools["search_linear"]("ada", scope="users")
        assert result["results"] == [{"id": "u1", "name": "Ada", "email": "ada@example.com"}]
        assert ("list_users", {"name_contains": "ada"}) in fake_client.calls


class TestListIssues:
    """Tests for incremental issue paging."""

    @pytest.mark.asyncio
    async def test_returns_cursor_until_exhausted(self, tools: dict[str, Callable[..., Any]]) -> None:
        """next_cursor walks the issues two at a time."""
        first = await tools["list_issues"](first=2)
        assert [issue["identifier"] for issue in first["issues"]] == ["ENG-1", "ENG-2"]
        assert first["has_next_page"]

        second = await tools["list_issues"](first=2, after=first["next_cursor"])
        assert [issue["identifier"] for issue in second["issues"]] == ["ENG-3"]
        assert not second["has_next_page"]
        assert second["next_cursor"] is None

    @pytest.mark.asyncio
    async def test_team_filter(self, tools: dict[str, Callable[..., Any]], fake_client: FakeLinearClient) -> None:
        """team_id narrows the issue connection."""
        await tools["list_issues"](team_id="t1")
        assert ("list_issues", {"team_ids": ["t1"]}) in fake_client.calls


class TestMutationTools:
    """Tests for create/update/link tools."""

    @pytest.mark.asyncio
    async def test_create_issue(self, tools: dict[str, Callable[..., Any]]) -> None:
        """create_issue returns the new issue."""
        result = await tools["create_issue"]("New bug", "t1", priority=1)
        assert result["success"]
        assert result["issue"]["identifier"] == "ENG-99"

    @pytest.mark.asyncio
    async def test_create_issue_invalid_priority(
        self, tools: dict[str, Callable[..., Any]], fake_client: FakeLinearClient
    ) -> None:
        """Priorities outside 0-4 are rejected before any backend call."""
        result = await tools["create_issue"]("New bug", "t1", priority=9)
        assert "Priority" in result["error"]
        assert fake_client.calls == []

    @pytest.mark.asyncio
    async def test_update_issue_sends_camel_case(
        self, tools: dict[str, Callable[..., Any]], fake_client: FakeLinearClient
    ) -> None:
        """Only the given fields are sent, in camelCase."""
        result = await tools["update_issue"]("i1", state_id="s2", title="Renamed")
        assert result["updated"] == ["stateId", "title"]
        assert ("update_issue", {"issue_id": "i1", "stateId": "s2", "title": "Renamed"}) in fake_client.calls

    @pytest.mark.asyncio
    async def test_update_issue_without_changes(self, tools: dict[str, Callable[..., Any]]) -> None:
        """An update with nothing to change is an error."""
        assert await tools["update_issue"]("i1") == {"error": "No fields to update"}

    @pytest.mark.asyncio
    async def test_link_issues_invalid_type(self, tools: dict[str, Callable[..., Any]]) -> None:
        """Unknown relation types are rejected."""
        result = await tools["link_issues"]("i1", "i2", relation_type="parent")
        assert "Invalid relation type" in result["error"]

    @pytest.mark.asyncio
    async def test_backend_failure_is_stringified(
        self, tools: dict[str, Callable[..., Any]], fake_client: FakeLinearClient
    ) -> None:
        """Backend errors come back as an error dict."""

        async def failing(*args: Any, **kwargs: Any) -> None:
            raise BackendError("HTTP 502: bad gateway")

        fake_client.create_comment = failing  # type: ignore[method-assign]
        result = await tools["create_comment"]("i1", "hello")
        assert result == {"error": "HTTP 502: bad gateway"}


class TestRelationTools:
    """Tests for relation and assignment tools."""

    @pytest.mark.asyncio
    async def test_unlink_issues(self, tools: dict[str, Callable[..., Any]], fake_client: FakeLinearClient) -> None:
        """unlink_issues deletes the relation by ID."""
        result = await tools["unlink_issues"]("r1")
        assert result == {"success": True, "relation_id": "r1"}
        assert ("unlink_issues", {"relation_id": "r1"}) in fake_client.calls

    @pytest.mark.asyncio
    async def test_unlink_issues_empty_id(
        self, tools: dict[str, Callable[..., Any]], fake_client: FakeLinearClient
    ) -> None:
        """A blank relation ID is rejected before any backend call."""
        result = await tools["unlink_issues"]("  ")
        assert "error" in result
        assert fake_client.calls == []

    @pytest.mark.asyncio
    async def test_assign_and_unassign(
        self, tools: dict[str, Callable[..., Any]], fake_client: FakeLinearClient
    ) -> None:
        """Assignment sets assigneeId and unassignment clears it."""
        assert (await tools["assign_issue"]("i1", "u1"))["success"]
        assert (await tools["unassign_issue"]("i1"))["success"]
        assert fake_client.calls == [
            ("update_issue", {"issue_id": "i1", "assigneeId": "u1"}),
            ("update_issue", {"issue_id": "i1", "assigneeId": None}),
        ]


class TestProjectTools:
    """Tests for project tools."""

    @pytest.mark.asyncio
    async def test_create_project(self, tools: dict[str, Callable[..., Any]], fake_client: FakeLinearClient) -> None:
        """create_project wraps the team in a list."""
        result = await tools["create_project"]("Billing", "t1", state="planned", target_date="2026-12-01")
        assert result["project"] == {"id": "p9", "name": "Billing", "state": "planned", "url": None}
        assert fake_client.calls == [
            (
                "create_project",
                {
                    "name": "Billing",
                    "team_ids": ["t1"],
                    "description": None,
                    "state": "planned",
                    "target_date": "2026-12-01",
                },
            )
        ]

    @pytest.mark.asyncio
    async def test_create_project_rejects_bad_input(
        self, tools: dict[str, Callable[..., Any]], fake_client: FakeLinearClient
    ) -> None:
        """Unknown states and malformed dates are rejected before any backend call."""
        bad_state = await tools["create_project"]("Billing", "t1", state="doing")
        bad_date = await tools["create_project"]("Billing", "t1", target_date="12/01/2026")
        assert "Invalid project state 'doing'" in bad_state["error"]
        assert "target_date must be a date in YYYY-MM-DD format" in bad_date["error"]
        assert fake_client.calls == []

    @pytest.mark.asyncio
    async def test_update_project(self, tools: dict[str, Callable[..., Any]], fake_client: FakeLinearClient) -> None:
        """Only the given fields are sent, in camelCase."""
        result = await tools["update_project"]("p1", state="paused", target_date="2026-12-01")
        assert result["updated"] == ["state", "targetDate"]
        assert ("update_project", {"project_id": "p1", "state": "paused", "targetDate": "2026-12-01"}) in fake_client.calls

    @pytest.mark.asyncio
    async def test_update_project_without_changes(self, tools: dict[str, Callable[..., Any]]) -> None:
        """An update with nothing to change is an error."""
        assert await tools["update_project"]("p1") == {"error": "No fields to update"}

    @pytest.mark.asyncio
    async def test_add_issue_to_project(
        self, tools: dict[str, Callable[..., Any]], fake_client: FakeLinearClient
    ) -> None:
        """The issue is moved by setting projectId."""
        result = await tools["add_issue_to_project"]("i2", "p1")
        assert result["project_id"] == "p1"
        assert fake_client.calls == [("update_issue", {"issue_id": "i2", "projectId": "p1"})]


class TestCycleTools:
    """Tests for cycle tools."""

    @pytest.mark.asyncio
    async def test_create_cycle(self, tools: dict[str, Callable[..., Any]], fake_client: FakeLinearClient) -> None:
        """create_cycle sends normalized ISO dates."""
        result = await tools["create_cycle"]("t1", "2026-11-02", "2026-11-16", name="Sprint 9")
        assert result["cycle"]["id"] == "c9"
        assert fake_client.calls == [
            (
                "create_cycle",
                {
                    "team_id": "t1",
                    "starts_at": "2026-11-02",
                    "ends_at": "2026-11-16",
                    "name": "Sprint 9",
                    "description": None,
                },
            )
        ]

    @pytest.mark.asyncio
    async def test_create_cycle_rejects_bad_dates(
        self, tools: dict[str, Callable[..., Any]], fake_client: FakeLinearClient
    ) -> None:
        """Malformed dates and an end before the start are rejected before any backend call."""
        malformed = await tools["create_cycle"]("t1", "next monday", "2026-11-16")
        backwards = await tools["create_cycle"]("t1", "2026-11-16", "2026-11-02")
        assert "starts_at must be a date" in malformed["error"]
        assert backwards == {"error": "ends_at must be after starts_at"}
        assert fake_client.calls == []

    @pytest.mark.asyncio
    async def test_update_cycle(self, tools: dict[str, Callable[..., Any]], fake_client: FakeLinearClient) -> None:
        """Only the given fields are sent, in camelCase."""
        result = await tools["update_cycle"]("c2", name="Polish", ends_at="2026-11-20")
        assert result["updated"] == ["endsAt", "name"]
        assert ("update_cycle", {"cycle_id": "c2", "name": "Polish", "endsAt": "2026-11-20"}) in fake_client.calls

    @pytest.mark.asyncio
    async def test_add_issues_to_cycle(self, tools: dict[str, Callable[..., Any]], fake_client: FakeLinearClient) -> None:
        """Every issue gets the cycleId, and results keep the given order."""
        result = await tools["add_issues_to_cycle"]("c2", ["i3", "i1"])
        assert result["count"] == 2
        assert [issue["id"] for issue in result["issues"]] == ["i3", "i1"]
        assert sorted(fake_client.calls, key=lambda call: call[1]["issue_id"]) == [
            ("update_issue", {"issue_id": "i1", "cycleId": "c2"}),
            ("update_issue", {"issue_id": "i3", "cycleId": "c2"}),
        ]

    @pytest.mark.asyncio
    async def test_add_issues_to_cycle_empty(self, tools: dict[str, Callable[..., Any]]) -> None:
        """An empty issue list is an error."""
        assert await tools["add_issues_to_cycle"]("c2", []) == {"error": "issue_ids must not be empty"}


class TestCommentTools:
    """Tests for comment edit and delete tools."""

    @pytest.mark.asyncio
    async def test_update_comment(self, tools: dict[str, Callable[..., Any]], fake_client: FakeLinearClient) -> None:
        """update_comment replaces the body."""
        result = await tools["update_comment"]("m1", "Edited")
        assert result == {"success": True, "comment_id": "m1"}
        assert fake_client.calls == [("update_comment", {"comment_id": "m1", "body": "Edited"})]

    @pytest.mark.asyncio
    async def test_update_comment_empty_body(
        self, tools: dict[str, Callable[..., Any]], fake_client: FakeLinearClient
    ) -> None:
        """A blank body is rejected before any backend call."""
        assert "error" in await tools["update_comment"]("m1", " ")
        assert fake_client.calls == []

    @pytest.mark.asyncio
    async def test_delete_comment(self, tools: dict[str, Callable[..., Any]], fake_client: FakeLinearClient) -> None:
        """delete_comment reports the deleted ID."""
        assert await tools["delete_comment"]("m1") == {"success": True, "comment_id": "m1"}
        assert fake_client.calls == [("delete_comment", {"comment_id": "m1"})]


class TestReadResourceTool:
    """Tests for read_resource."""

    @pytest.mark.asyncio
    async def test_reads_through_router(self, tools: dict[str, Callable[..., Any]]) -> None:
        """Resources resolve through the router."""
        result = await tools["read_resource"]("linear://issues/ENG-1")
        assert result["found"]
        assert result["text"].startswith("# ENG-1: Issue 1")

    @pytest.mark.asyncio
    async def test_unknown_uri(self, tools: dict[str, Callable[..., Any]]) -> None:
        """Unmatched URIs come back as an error dict."""
        result = await tools["read_resource"]("linear://nowhere")
        assert result == {"error": "Resource not found: linear://nowhere"}
