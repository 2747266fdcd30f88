"""
Linear tools.

Tools:
- search_linear: Search issues, projects or users by text
- list_issues: One page of issues with the cursor for the next page
- create_issue: Create an issue in a team
- update_issue: Change title, description, state, assignee or priority
- create_comment: Comment on an issue
- link_issues: Relate two issues (blocks, duplicate, related, similar)
- unlink_issues: Remove a relation between two issues
- assign_issue / unassign_issue: Set or clear an issue's assignee
- create_project / update_project: Manage projects
- add_issue_to_project: Move an issue into a project
- create_cycle / update_cycle: Manage cycles
- add_issues_to_cycle: Move issues into a cycle
- update_comment / delete_comment: Edit or remove a comment
- read_resource: Read any linear:// resource, for clients without resource support

Every tool returns a dict; failures come back as {"error": "..."}.
"""

import logging
from datetime import date
from typing import Any

from mcp.server.fastmcp import FastMCP

from .client import PROJECT_STATES, RELATION_TYPES, LinearClient
from .pagination import PaginationOptions, next_cursor, validate_page_size
from .relationships import RelationshipManager
from .router import ResourceRouter

logger = logging.getLogger(__name__)

VALID_SCOPES = frozenset({"issues", "projects", "users"})
VALID_PRIORITIES = frozenset({0, 1, 2, 3, 4})
MAX_PAGE_SIZE = 100


def _check_first(first: int) -> int:
    first = validate_page_size(first)
    if first > MAX_PAGE_SIZE:
        raise ValueError(f"first must be at most {MAX_PAGE_SIZE}")
    return first


def _check_priority(priority: int | None) -> None:
    if priority is not None and priority not in VALID_PRIORITIES:
        raise ValueError("Priority must be 0 (none), 1 (urgent), 2 (high), 3 (medium) or 4 (low)")


def _check_date(value: str, field: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValueError(f"{field} must be a date in YYYY-MM-DD format, got '{value}'") from None


def _check_project_state(state: str | None) -> None:
    if state is not None and state not in PROJECT_STATES:
        raise ValueError(
            f"Invalid project state '{state}'. Must be one of: {', '.join(sorted(PROJECT_STATES))}"
        )


def _issue_summary(issue: Any) -> dict[str, Any]:
    return {
        "id": issue.id,
        "identifier": issue.identifier,
        "title": issue.title,
        "state": issue.state.name if issue.state else None,
        "assignee": issue.assignee.name if issue.assignee else None,
        "priority": issue.priority,
        "url": issue.url,
    }


def _project_summary(project: Any) -> dict[str, Any]:
    return {"id": project.id, "name": project.name, "state": project.state, "url": project.url}


def _cycle_summary(cycle: Any) -> dict[str, Any]:
    return {
        "id": cycle.id,
        "number": cycle.number,
        "name": cycle.name,
        "starts_at": cycle.starts_at.isoformat() if cycle.starts_at else None,
        "ends_at": cycle.ends_at.isoformat() if cycle.ends_at else None,
    }


def register_tools(mcp: FastMCP, client: LinearClient, router: ResourceRouter) -> None:
    """Register the Linear tools on a FastMCP server."""
    relationships = RelationshipManager(client)

    @mcp.tool()
    async def search_linear(query: str, scope: str = "issues", first: int = 20) -> dict[str, Any]:
        """
        Search Linear by text.

        Args:
            query: Text to look for (case-insensitive)
            scope: What to search: issues, projects or users
            first: Maximum number of results (1-100)

        Returns:
            Matching records with their IDs
        """
        if scope not in VALID_SCOPES:
            return {"error": f"Invalid scope '{scope}'. Must be one of: {', '.join(sorted(VALID_SCOPES))}"}
        if not query.strip():
            return {"error": "Query must not be empty"}

        try:
            options = PaginationOptions(first=_check_first(first))
            if scope == "issues":
                page = await client.search_issues(options, query=query)
                results = [_issue_summary(issue) for issue in page.nodes]
            elif scope == "projects":
                page = await client.list_projects(options, name_contains=query)
                results = [_project_summary(project) for project in page.nodes]
            else:
                page = await client.list_users(options, name_contains=query)
                results = [{"id": u.id, "name": u.name, "email": u.email} for u in page.nodes]
            return {"scope": scope, "results": results, "count": len(results)}
        except Exception as e:
            return {"error": str(e)}

    @mcp.tool()
    async def list_issues(
        team_id: str | None = None,
        first: int = 50,
        after: str | None = None,
    ) -> dict[str, Any]:
        """
        Get one page of issues.

        Pass the returned next_cursor as `after` to fetch the following page.

        Args:
            team_id: Only issues in this team
            first: Page size (1-100)
            after: Cursor returned by a previous call

        Returns:
            Issues on this page, next_cursor and has_next_page
        """
        try:
            first = _check_first(first)
            page = await client.list_issues(
                PaginationOptions(first=first, after=after),
                team_ids=[team_id] if team_id else None,
            )
            cursor = next_cursor(page, first)
            return {
                "issues": [_issue_summary(issue) for issue in page.nodes],
                "count": len(page.nodes),
                "next_cursor": cursor,
                "has_next_page": cursor is not None,
            }
        except Exception as e:
            return {"error": str(e)}

    @mcp.tool()
    async def create_issue(
        title: str,
        team_id: str,
        description: str | None = None,
        state_id: str | None = None,
        assignee_id: str | None = None,
        priority: int | None = None,
        label_ids: list[str] | None = None,
        due_date: str | None = None,
    ) -> dict[str, Any]:
        """
        Create a new issue.

        Args:
            title: Issue title
            team_id: Team to create the issue in
            description: Markdown description
            state_id: Initial workflow state
            assignee_id: User to assign
            priority: 0 (none), 1 (urgent), 2 (high), 3 (medium), 4 (low)
            label_ids: Labels to apply
            due_date: Due date (YYYY-MM-DD)

        Returns:
            The created issue
        """
        if not title.strip():
            return {"error": "Title must not be empty"}
        try:
            _check_priority(priority)
            issue = await client.create_issue(
                title,
                team_id,
                description=description,
                state_id=state_id,
                assignee_id=assignee_id,
                priority=priority,
                label_ids=label_ids,
                due_date=due_date,
            )
            logger.info("Created issue %s", issue.identifier)
            return {"success": True, "issue": _issue_summary(issue)}
        except Exception as e:
            return {"error": str(e)}

    @mcp.tool()
    async def update_issue(
        issue_id: str,
        title: str | None = None,
        description: str | None = None,
        state_id: str | None = None,
        assignee_id: str | None = None,
        priority: int | None = None,
    ) -> dict[str, Any]:
        """
        Update an issue. Only the fields given are changed.

        Args:
            issue_id: Issue ID or identifier (e.g., "ENG-123")
            title: New title
            description: New description
            state_id: New workflow state
            assignee_id: New assignee
            priority: 0 (none), 1 (urgent), 2 (high), 3 (medium), 4 (low)

        Returns:
            The updated issue
        """
        changes = {
            key: value
            for key, value in {
                "title": title,
                "description": description,
                "stateId": state_id,
                "assigneeId": assignee_id,
                "priority": priority,
            }.items()
            if value is not None
        }
        if not changes:
            return {"error": "No fields to update"}
        try:
            _check_priority(priority)
            issue = await client.update_issue(issue_id, **changes)
            return {"success": True, "issue": _issue_summary(issue), "updated": sorted(changes)}
        except Exception as e:
            return {"error": str(e)}

    @mcp.tool()
    async def create_comment(issue_id: str, body: str) -> dict[str, Any]:
        """
        Comment on an issue.

        Args:
            issue_id: Issue ID or identifier
            body: Markdown comment text

        Returns:
            The created comment's ID
        """
        if not body.strip():
            return {"error": "Comment body must not be empty"}
        try:
            comment = await client.create_comment(issue_id, body)
            return {"success": True, "comment_id": comment.id, "issue_id": issue_id}
        except Exception as e:
            return {"error": str(e)}

    @mcp.tool()
    async def link_issues(issue_id: str, related_issue_id: str, relation_type: str = "related") -> dict[str, Any]:
        """
        Create a relation between two issues.

        Args:
            issue_id: Source issue
            related_issue_id: Target issue
            relation_type: blocks, duplicate, related or similar

        Returns:
            The created relation's ID
        """
        if relation_type not in RELATION_TYPES:
            return {
                "error": f"Invalid relation type '{relation_type}'. "
                f"Must be one of: {', '.join(sorted(RELATION_TYPES))}"
            }
        if issue_id == related_issue_id:
            return {"error": "An issue cannot be related to itself"}
        try:
            relation = await relationships.link_issues(issue_id, related_issue_id, relation_type)
            return {"success": True, "relation_id": relation.id, "type": relation.type}
        except Exception as e:
            return {"error": str(e)}

    @mcp.tool()
    async def unlink_issues(relation_id: str) -> dict[str, Any]:
        """
        Remove a relation between two issues.

        Args:
            relation_id: ID of the relation (see linear://issues/{issueId}/relations)

        Returns:
            The removed relation's ID
        """
        if not relation_id.strip():
            return {"error": "relation_id must not be empty"}
        try:
            await relationships.unlink_issues(relation_id)
            return {"success": True, "relation_id": relation_id}
        except Exception as e:
            return {"error": str(e)}

    @mcp.tool()
    async def assign_issue(issue_id: str, user_id: str) -> dict[str, Any]:
        """
        Assign an issue to a user.

        Args:
            issue_id: Issue ID or identifier
            user_id: User to assign

        Returns:
            The updated issue
        """
        try:
            issue = await relationships.assign_issue(issue_id, user_id)
            return {"success": True, "issue": _issue_summary(issue)}
        except Exception as e:
            return {"error": str(e)}

    @mcp.tool()
    async def unassign_issue(issue_id: str) -> dict[str, Any]:
        """
        Clear an issue's assignee.

        Args:
            issue_id: Issue ID or identifier

        Returns:
            The updated issue
        """
        try:
            issue = await relationships.unassign_issue(issue_id)
            return {"success": True, "issue": _issue_summary(issue)}
        except Exception as e:
            return {"error": str(e)}

    @mcp.tool()
    async def create_project(
        name: str,
        team_id: str,
        description: str | None = None,
        state: str | None = None,
        target_date: str | None = None,
    ) -> dict[str, Any]:
        """
        Create a new project.

        Args:
            name: Project name
            team_id: Team that owns the project
            description: Markdown description
            state: backlog, planned, started, paused, completed or canceled
            target_date: Target date (YYYY-MM-DD)

        Returns:
            The created project
        """
        if not name.strip():
            return {"error": "Name must not be empty"}
        try:
            _check_project_state(state)
            if target_date is not None:
                _check_date(target_date, "target_date")
            project = await client.create_project(
                name,
                [team_id],
                description=description,
                state=state,
                target_date=target_date,
            )
            logger.info("Created project %s", project.id)
            return {"success": True, "project": _project_summary(project)}
        except Exception as e:
            return {"error": str(e)}

    @mcp.tool()
    async def update_project(
        project_id: str,
        name: str | None = None,
        description: str | None = None,
        state: str | None = None,
        target_date: str | None = None,
    ) -> dict[str, Any]:
        """
        Update a project. Only the fields given are changed.

        Args:
            project_id: Project to update
            name: New name
            description: New description
            state: backlog, planned, started, paused, completed or canceled
            target_date: New target date (YYYY-MM-DD)

        Returns:
            The updated project
        """
        changes = {
            key: value
            for key, value in {
                "name": name,
                "description": description,
                "state": state,
                "targetDate": target_date,
            }.items()
            if value is not None
        }
        if not changes:
            return {"error": "No fields to update"}
        try:
            _check_project_state(state)
            if target_date is not None:
                _check_date(target_date, "target_date")
            project = await client.update_project(project_id, **changes)
            return {"success": True, "project": _project_summary(project), "updated": sorted(changes)}
        except Exception as e:
            return {"error": str(e)}

    @mcp.tool()
    async def add_issue_to_project(issue_id: str, project_id: str) -> dict[str, Any]:
        """
        Move an issue into a project.

        Args:
            issue_id: Issue ID or identifier
            project_id: Target project

        Returns:
            The updated issue
        """
        try:
            issue = await relationships.add_issue_to_project(issue_id, project_id)
            return {"success": True, "issue": _issue_summary(issue), "project_id": project_id}
        except Exception as e:
            return {"error": str(e)}

    @mcp.tool()
    async def create_cycle(
        team_id: str,
        starts_at: str,
        ends_at: str,
        name: str | None = None,
        description: str | None = None,
    ) -> dict[str, Any]:
        """
        Create a new cycle (sprint).

        Args:
            team_id: Team that owns the cycle
            starts_at: Start date (YYYY-MM-DD)
            ends_at: End date (YYYY-MM-DD), after starts_at
            name: Cycle name
            description: Markdown description

        Returns:
            The created cycle
        """
        try:
            start = _check_date(starts_at, "starts_at")
            end = _check_date(ends_at, "ends_at")
            if end <= start:
                return {"error": "ends_at must be after starts_at"}
            cycle = await client.create_cycle(
                team_id, start.isoformat(), end.isoformat(), name=name, description=description
            )
            logger.info("Created cycle %s", cycle.id)
            return {"success": True, "cycle": _cycle_summary(cycle)}
        except Exception as e:
            return {"error": str(e)}

    @mcp.tool()
    async def update_cycle(
        cycle_id: str,
        name: str | None = None,
        description: str | None = None,
        starts_at: str | None = None,
        ends_at: str | None = None,
    ) -> dict[str, Any]:
        """
        Update a cycle. Only the fields given are changed.

        Args:
            cycle_id: Cycle to update
            name: New name
            description: New description
            starts_at: New start date (YYYY-MM-DD)
            ends_at: New end date (YYYY-MM-DD)

        Returns:
            The updated cycle
        """
        changes = {
            key: value
            for key, value in {
                "name": name,
                "description": description,
                "startsAt": starts_at,
                "endsAt": ends_at,
            }.items()
            if value is not None
        }
        if not changes:
            return {"error": "No fields to update"}
        try:
            start = _check_date(starts_at, "starts_at") if starts_at is not None else None
            end = _check_date(ends_at, "ends_at") if ends_at is not None else None
            if start and end and end <= start:
                return {"error": "ends_at must be after starts_at"}
            cycle = await client.update_cycle(cycle_id, **changes)
            return {"success": True, "cycle": _cycle_summary(cycle), "updated": sorted(changes)}
        except Exception as e:
            return {"error": str(e)}

    @mcp.tool()
    async def add_issues_to_cycle(cycle_id: str, issue_ids: list[str]) -> dict[str, Any]:
        """
        Move issues into a cycle.

        Args:
            cycle_id: Target cycle
            issue_ids: Issue IDs or identifiers

        Returns:
            The moved issues
        """
        if not issue_ids:
            return {"error": "issue_ids must not be empty"}
        try:
            issues = await relationships.add_issues_to_cycle(cycle_id, issue_ids)
            return {
                "success": True,
                "cycle_id": cycle_id,
                "issues": [_issue_summary(issue) for issue in issues],
                "count": len(issues),
            }
        except Exception as e:
            return {"error": str(e)}

    @mcp.tool()
    async def update_comment(comment_id: str, body: str) -> dict[str, Any]:
        """
        Replace a comment's text.

        Args:
            comment_id: Comment to update
            body: New Markdown text

        Returns:
            The updated comment's ID
        """
        if not body.strip():
            return {"error": "Comment body must not be empty"}
        try:
            comment = await client.update_comment(comment_id, body)
            return {"success": True, "comment_id": comment.id}
        except Exception as e:
            return {"error": str(e)}

    @mcp.tool()
    async def delete_comment(comment_id: str) -> dict[str, Any]:
        """
        Delete a comment.

        Args:
            comment_id: Comment to delete

        Returns:
            The deleted comment's ID
        """
        try:
            await client.delete_comment(comment_id)
            logger.info("Deleted comment %s", comment_id)
            return {"success": True, "comment_id": comment_id}
        except Exception as e:
            return {"error": str(e)}

    @mcp.tool()
    async def read_resource(uri: str) -> dict[str, Any]:
        """
        Read a linear:// resource (e.g., linear://teams, linear://issues/ENG-123).

        Args:
            uri: Resource URI

        Returns:
            The resource text, or found=False when Linear has no such record
        """
        try:
            contents = await router.resolve(uri)
            return {
                "uri": contents.uri,
                "found": contents.found,
                "mime_type": contents.mime_type,
                "text": contents.text,
            }
        except Exception as e:
            return {"error": str(e)}
