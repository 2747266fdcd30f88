"""Linear GraphQL API client.

Provides an async httpx-based client for https://api.linear.app/graphql
authenticated with a personal API key. Every list_* method is a page
fetcher shaped (PaginationOptions) -> Page so it can be driven by
Paginator or fetch_all_pages(); parent and filter arguments are
keyword-only so call sites bind them with functools.partial.

Errors are never retried here: transport and query failures raise
BackendError, missing records raise UpstreamNotFound.

Reference: https://developers.linear.app/docs/graphql/working-with-the-graphql-api
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import replace
from functools import partial
from typing import Any, TypeVar

import httpx
from pydantic import ValidationError

from .errors import BackendError, UpstreamNotFound
from .models import (
    Comment,
    Cycle,
    Document,
    Initiative,
    Issue,
    IssueLabel,
    IssueRelation,
    LinearModel,
    Milestone,
    Organization,
    Project,
    Team,
    User,
    UserRef,
    WorkflowState,
)
from .pagination import Page, PaginationOptions, fetch_all_pages

logger = logging.getLogger(__name__)

LINEAR_API_URL = "https://api.linear.app/graphql"

M = TypeVar("M", bound=LinearModel)
R = TypeVar("R")

RELATION_TYPES = frozenset({"blocks", "duplicate", "related", "similar"})
PROJECT_STATES = frozenset({"backlog", "planned", "started", "paused", "completed", "canceled"})

# ============================================
# Field selections
# ============================================

_TEAM_FIELDS = "id name key description"
_USER_FIELDS = "id name displayName email admin active url"
_CYCLE_FIELDS = "id number name description startsAt endsAt completedAt team { id name key }"
_PROJECT_FIELDS = "id name description state url targetDate teams { nodes { id name key } }"
_STATE_FIELDS = "id name type color"
_LABEL_FIELDS = "id name description color"
_COMMENT_FIELDS = (
    "id body createdAt updatedAt user { id name email } issue { id identifier title }"
)
_ISSUE_FIELDS = (
    "id identifier title description priority url createdAt updatedAt completedAt dueDate "
    "state { id name type } assignee { id name email } team { id name key } "
    "project { id name } cycle { id name number } "
    "labels { nodes { id name description color } }"
)
_RELATION_FIELDS = (
    "id type issue { id identifier title } relatedIssue { id identifier title }"
)
_MILESTONE_FIELDS = "id name description targetDate"
_DOCUMENT_FIELDS = "id title url createdAt updatedAt creator { id name email } project { id name }"
_INITIATIVE_FIELDS = "id name description state startDate targetDate"
_PAGE_INFO = "pageInfo { hasNextPage endCursor }"


def _connection_query(operation: str, root: str, filter_type: str, fields: str) -> str:
    """Build a query for a top-level connection taking first/after/filter/orderBy."""
    return (
        f"query {operation}($first: Int, $after: String, $filter: {filter_type}, "
        "$orderBy: PaginationOrderBy) {\n"
        f"  {root}(first: $first, after: $after, filter: $filter, orderBy: $orderBy) {{\n"
        f"    nodes {{ {fields} }}\n"
        f"    {_PAGE_INFO}\n"
        "  }\n"
        "}"
    )


def _nested_connection_query(operation: str, root: str, connection: str, fields: str) -> str:
    """Build a query for a connection nested under one record looked up by id."""
    return (
        f"query {operation}($id: String!, $first: Int, $after: String) {{\n"
        f"  {root}(id: $id) {{\n"
        f"    {connection}(first: $first, after: $after) {{\n"
        f"      nodes {{ {fields} }}\n"
        f"      {_PAGE_INFO}\n"
        "    }\n"
        "  }\n"
        "}"
    )


def _entity_query(operation: str, root: str, fields: str) -> str:
    return f"query {operation}($id: String!) {{\n  {root}(id: $id) {{ {fields} }}\n}}"


def _mutation(
    operation: str,
    root: str,
    *,
    input_type: str | None = None,
    by_id: bool = False,
    result: str | None = None,
    fields: str = "",
) -> str:
    """Build a mutation selecting `success` and, when result is given, the affected record."""
    params = ["$id: String!"] if by_id else []
    args = ["id: $id"] if by_id else []
    if input_type:
        params.append(f"$input: {input_type}!")
        args.append("input: $input")
    selection = f"success {result} {{ {fields} }}" if result else "success"
    return (
        f"mutation {operation}({', '.join(params)}) {{\n"
        f"  {root}({', '.join(args)}) {{ {selection} }}\n"
        "}"
    )


_LIST_TEAMS_QUERY = _connection_query("Teams", "teams", "TeamFilter", _TEAM_FIELDS)
_LIST_CYCLES_QUERY = _connection_query("Cycles", "cycles", "CycleFilter", _CYCLE_FIELDS)
_LIST_ISSUES_QUERY = _connection_query("Issues", "issues", "IssueFilter", _ISSUE_FIELDS)
_LIST_PROJECTS_QUERY = _connection_query("Projects", "projects", "ProjectFilter", _PROJECT_FIELDS)
_LIST_USERS_QUERY = _connection_query("Users", "users", "UserFilter", _USER_FIELDS)
_LIST_COMMENTS_QUERY = _connection_query("Comments", "comments", "CommentFilter", _COMMENT_FIELDS)
_LIST_STATES_QUERY = _connection_query(
    "WorkflowStates", "workflowStates", "WorkflowStateFilter", _STATE_FIELDS
)
_LIST_LABELS_QUERY = _connection_query("IssueLabels", "issueLabels", "IssueLabelFilter", _LABEL_FIELDS)
_LIST_DOCUMENTS_QUERY = _connection_query("Documents", "documents", "DocumentFilter", _DOCUMENT_FIELDS)
_LIST_INITIATIVES_QUERY = _connection_query(
    "Initiatives", "initiatives", "InitiativeFilter", _INITIATIVE_FIELDS
)

# The milestones connection takes no filter argument
_LIST_MILESTONES_QUERY = f"""
query Milestones($first: Int, $after: String) {{
  milestones(first: $first, after: $after) {{
    nodes {{ {_MILESTONE_FIELDS} }}
    {_PAGE_INFO}
  }}
}}
"""

_GET_TEAM_QUERY = _entity_query(
    "Team", "team", _TEAM_FIELDS + " members { nodes { id name email } }"
)
_GET_CYCLE_QUERY = _entity_query("Cycle", "cycle", _CYCLE_FIELDS)
_GET_ISSUE_QUERY = _entity_query("Issue", "issue", _ISSUE_FIELDS)
_GET_PROJECT_QUERY = _entity_query("Project", "project", _PROJECT_FIELDS)
_GET_USER_QUERY = _entity_query("User", "user", _USER_FIELDS + " teams { nodes { id name key } }")
_GET_COMMENT_QUERY = _entity_query("Comment", "comment", _COMMENT_FIELDS)
_GET_MILESTONE_QUERY = _entity_query(
    "Milestone", "milestone", f"{_MILESTONE_FIELDS} projects {{ nodes {{ {_PROJECT_FIELDS} }} }}"
)
_GET_DOCUMENT_QUERY = _entity_query("Document", "document", _DOCUMENT_FIELDS + " content")
_GET_INITIATIVE_QUERY = _entity_query(
    "Initiative",
    "initiative",
    f"{_INITIATIVE_FIELDS} initiativeProjects {{ nodes {{ id project {{ {_PROJECT_FIELDS} }} }} }}",
)
_PROJECT_INITIATIVE_QUERY = _entity_query(
    "ProjectInitiative",
    "project",
    f"{_PROJECT_FIELDS} initiativeProject {{ initiative {{ {_INITIATIVE_FIELDS} }} }}",
)

_GET_ORGANIZATION_QUERY = """
query Organization {
  organization {
    id name urlKey createdAt samlEnabled userCount createdIssueCount allowedAuthServices
  }
}
"""

_TEAM_MEMBERS_QUERY = _nested_connection_query("TeamMembers", "team", "members", "id name email")
_TEAM_DOCUMENTS_QUERY = _nested_connection_query(
    "TeamDocuments", "team", "documents", _DOCUMENT_FIELDS
)
_PROJECT_DOCUMENTS_QUERY = _nested_connection_query(
    "ProjectDocuments", "project", "documents", _DOCUMENT_FIELDS
)
_ISSUE_RELATIONS_QUERY = _nested_connection_query(
    "IssueRelations", "issue", "relations", _RELATION_FIELDS
)
_ISSUE_INVERSE_RELATIONS_QUERY = _nested_connection_query(
    "IssueInverseRelations", "issue", "inverseRelations", _RELATION_FIELDS
)

_USER_ASSIGNED_ISSUES_QUERY = f"""
query UserAssignedIssues($id: String!, $first: Int, $after: String, $filter: IssueFilter) {{
  user(id: $id) {{
    assignedIssues(first: $first, after: $after, filter: $filter, orderBy: createdAt) {{
      nodes {{ {_ISSUE_FIELDS} }}
      {_PAGE_INFO}
    }}
  }}
}}
"""

_CREATE_ISSUE_MUTATION = _mutation(
    "IssueCreate", "issueCreate", input_type="IssueCreateInput", result="issue", fields=_ISSUE_FIELDS
)
_UPDATE_ISSUE_MUTATION = _mutation(
    "IssueUpdate",
    "issueUpdate",
    input_type="IssueUpdateInput",
    by_id=True,
    result="issue",
    fields=_ISSUE_FIELDS,
)
_CREATE_RELATION_MUTATION = _mutation(
    "IssueRelationCreate",
    "issueRelationCreate",
    input_type="IssueRelationCreateInput",
    result="issueRelation",
    fields=_RELATION_FIELDS,
)
_DELETE_RELATION_MUTATION = _mutation("IssueRelationDelete", "issueRelationDelete", by_id=True)
_CREATE_COMMENT_MUTATION = _mutation(
    "CommentCreate",
    "commentCreate",
    input_type="CommentCreateInput",
    result="comment",
    fields=_COMMENT_FIELDS,
)
_UPDATE_COMMENT_MUTATION = _mutation(
    "CommentUpdate",
    "commentUpdate",
    input_type="CommentUpdateInput",
    by_id=True,
    result="comment",
    fields=_COMMENT_FIELDS,
)
_DELETE_COMMENT_MUTATION = _mutation("CommentDelete", "commentDelete", by_id=True)
_CREATE_PROJECT_MUTATION = _mutation(
    "ProjectCreate",
    "projectCreate",
    input_type="ProjectCreateInput",
    result="project",
    fields=_PROJECT_FIELDS,
)
_UPDATE_PROJECT_MUTATION = _mutation(
    "ProjectUpdate",
    "projectUpdate",
    input_type="ProjectUpdateInput",
    by_id=True,
    result="project",
    fields=_PROJECT_FIELDS,
)
_CREATE_CYCLE_MUTATION = _mutation(
    "CycleCreate", "cycleCreate", input_type="CycleCreateInput", result="cycle", fields=_CYCLE_FIELDS
)
_UPDATE_CYCLE_MUTATION = _mutation(
    "CycleUpdate",
    "cycleUpdate",
    input_type="CycleUpdateInput",
    by_id=True,
    result="cycle",
    fields=_CYCLE_FIELDS,
)


class LinearGraphQLError(BackendError):
    """Raised when the GraphQL response carries an `errors` array."""

    def __init__(self, errors: list[dict[str, Any]]) -> None:
        self.errors = errors
        messages = "; ".join(str(error.get("message", error)) for error in errors)
        super().__init__(f"GraphQL error: {messages}")

    @property
    def is_not_found(self) -> bool:
        return any("not found" in str(error.get("message", "")).lower() for error in self.errors)


async def with_fallback(
    primary: Callable[[], Awaitable[R]],
    fallback: Callable[[], Awaitable[R]],
    *,
    description: str,
) -> R:
    """Run primary; on BackendError log it and run the declared fallback instead."""
    try:
        return await primary()
    except BackendError as e:
        logger.warning("%s failed, falling back: %s", description, e)
        return await fallback()


def _id_filter(value: str) -> dict[str, Any]:
    return {"id": {"eq": value}}


class LinearClient:
    """Linear GraphQL client using a long-lived httpx.AsyncClient.

    Attributes:
        api_url: GraphQL endpoint
        client: Underlying httpx.AsyncClient

    Example:
        >>> async with LinearClient("lin_api_...") as linear:
        ...     page = await linear.list_teams(PaginationOptions(first=10))
        ...     for team in page.nodes:
        ...         print(team.key, team.name)
    """

    def __init__(
        self,
        api_key: str,
        api_url: str = LINEAR_API_URL,
        timeout: float = 30.0,
    ) -> None:
        if not api_key:
            raise ValueError("Linear API key is required")
        self.api_url = api_url
        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout, connect=5.0),
            headers={
                "Authorization": api_key,
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
        )

    async def __aenter__(self) -> "LinearClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the httpx client and release connections."""
        await self.client.aclose()

    # ============================================
    # Transport
    # ============================================

    async def execute(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """
        Execute a GraphQL operation and return its `data` object.

        Raises:
            BackendError: On timeouts, HTTP errors, malformed payloads
            LinearGraphQLError: When the response carries GraphQL errors
        """
        try:
            response = await self.client.post(
                self.api_url,
                json={"query": query, "variables": variables or {}},
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.TimeoutException as e:
            logger.error("Linear request timed out: %s", e)
            raise BackendError(f"Linear request timed out: {e}") from e
        except httpx.HTTPStatusError as e:
            logger.error("Linear request failed with HTTP %s", e.response.status_code)
            raise BackendError(f"HTTP {e.response.status_code}: {e}") from e
        except httpx.HTTPError as e:
            logger.error("Linear connection error: %s", e)
            raise BackendError(f"Connection error: {e}") from e
        except ValueError as e:
            raise BackendError(f"Malformed response from Linear: {e}") from e

        if not isinstance(payload, dict):
            raise BackendError("Malformed response from Linear: expected a JSON object")
        if payload.get("errors"):
            raise LinearGraphQLError(payload["errors"])
        data = payload.get("data")
        if not isinstance(data, dict):
            raise BackendError("Malformed response from Linear: missing data")
        return data

    async def _get(self, query: str, root: str, model: type[M], entity: str, entity_id: str) -> M:
        """Fetch one record; a null root or a not-found error raises UpstreamNotFound."""
        try:
            data = await self.execute(query, {"id": entity_id})
        except LinearGraphQLError as e:
            if e.is_not_found:
                raise UpstreamNotFound(entity, entity_id) from e
            raise
        record = data.get(root)
        if record is None:
            raise UpstreamNotFound(entity, entity_id)
        return _validate(model, record)

    async def _list(
        self,
        query: str,
        root: str,
        model: type[M],
        options: PaginationOptions | None,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
    ) -> Page[M]:
        """Fetch one page of a top-level connection."""
        options = options or PaginationOptions()
        merged = {**(filters or {}), **options.filters}
        variables: dict[str, Any] = {"first": options.first, "after": options.after}
        if merged:
            variables["filter"] = merged
        if order_by:
            variables["orderBy"] = order_by
        data = await self.execute(query, variables)
        return _validate_page(model, data.get(root), root)

    async def _nested_list(
        self,
        query: str,
        path: tuple[str, str],
        model: type[M],
        entity_id: str,
        options: PaginationOptions | None,
        extra: dict[str, Any] | None = None,
    ) -> Page[M]:
        """Fetch one page of a connection nested under a single record."""
        options = options or PaginationOptions()
        variables = {"id": entity_id, "first": options.first, "after": options.after, **(extra or {})}
        try:
            data = await self.execute(query, variables)
        except LinearGraphQLError as e:
            if e.is_not_found:
                raise UpstreamNotFound(path[0], entity_id) from e
            raise
        parent = data.get(path[0])
        if parent is None:
            raise UpstreamNotFound(path[0], entity_id)
        return _validate_page(model, parent.get(path[1]), ".".join(path))

    async def _mutate(self, query: str, variables: dict[str, Any], root: str) -> dict[str, Any]:
        data = await self.execute(query, variables)
        payload = data.get(root) or {}
        if not payload.get("success"):
            raise BackendError(f"{root} did not succeed")
        return payload

    # ============================================
    # Teams
    # ============================================

    async def get_team(self, team_id: str) -> Team:
        return await self._get(_GET_TEAM_QUERY, "team", Team, "team", team_id)

    async def list_teams(self, options: PaginationOptions | None = None) -> Page[Team]:
        return await self._list(_LIST_TEAMS_QUERY, "teams", Team, options)

    async def list_team_members(
        self, options: PaginationOptions | None = None, *, team_id: str
    ) -> Page[UserRef]:
        return await self._nested_list(
            _TEAM_MEMBERS_QUERY, ("team", "members"), UserRef, team_id, options
        )

    async def list_workflow_states(
        self, options: PaginationOptions | None = None, *, team_id: str
    ) -> Page[WorkflowState]:
        return await self._list(
            _LIST_STATES_QUERY,
            "workflowStates",
            WorkflowState,
            options,
            {"team": _id_filter(team_id)},
        )

    async def list_labels(
        self, options: PaginationOptions | None = None, *, team_id: str | None = None
    ) -> Page[IssueLabel]:
        filters = {"team": _id_filter(team_id)} if team_id else None
        return await self._list(_LIST_LABELS_QUERY, "issueLabels", IssueLabel, options, filters)

    # ============================================
    # Cycles
    # ============================================

    async def get_cycle(self, cycle_id: str) -> Cycle:
        return await self._get(_GET_CYCLE_QUERY, "cycle", Cycle, "cycle", cycle_id)

    async def list_cycles(
        self, options: PaginationOptions | None = None, *, team_id: str | None = None
    ) -> Page[Cycle]:
        filters = {"team": _id_filter(team_id)} if team_id else None
        return await self._list(_LIST_CYCLES_QUERY, "cycles", Cycle, options, filters)

    async def create_cycle(
        self,
        team_id: str,
        starts_at: str,
        ends_at: str,
        name: str | None = None,
        description: str | None = None,
    ) -> Cycle:
        """
        Create a cycle.

        Args:
            team_id: Team that owns the cycle
            starts_at: Start date or datetime (ISO 8601)
            ends_at: End date or datetime (ISO 8601)
            name: Optional cycle name
            description: Markdown description
        """
        cycle_input = _compact(
            teamId=team_id,
            startsAt=starts_at,
            endsAt=ends_at,
            name=name,
            description=description,
        )
        payload = await self._mutate(_CREATE_CYCLE_MUTATION, {"input": cycle_input}, "cycleCreate")
        return _validate(Cycle, payload.get("cycle"))

    async def update_cycle(self, cycle_id: str, **changes: Any) -> Cycle:
        """Update a cycle; changes are CycleUpdateInput fields in camelCase."""
        payload = await self._mutate(
            _UPDATE_CYCLE_MUTATION, {"id": cycle_id, "input": changes}, "cycleUpdate"
        )
        return _validate(Cycle, payload.get("cycle"))

    # ============================================
    # Issues
    # ============================================

    async def get_issue(self, issue_id: str) -> Issue:
        return await self._get(_GET_ISSUE_QUERY, "issue", Issue, "issue", issue_id)

    async def list_issues(
        self,
        options: PaginationOptions | None = None,
        *,
        team_ids: list[str] | None = None,
        state_ids: list[str] | None = None,
        project_id: str | None = None,
        cycle_id: str | None = None,
        label_id: str | None = None,
        assignee_id: str | None = None,
        exclude_canceled: bool = False,
    ) -> Page[Issue]:
        """
        List issues, optionally filtered.

        Args:
            options: Page size, cursor and extra IssueFilter entries
            team_ids: Only issues in these teams
            state_ids: Only issues in these workflow states
            project_id: Only issues in this project
            cycle_id: Only issues in this cycle
            label_id: Only issues carrying this label
            assignee_id: Only issues assigned to this user
            exclude_canceled: Drop issues whose state type is "canceled"
        """
        filters: dict[str, Any] = {}
        if team_ids:
            filters["team"] = {"id": {"in": team_ids}}
        if state_ids:
            filters["state"] = {"id": {"in": state_ids}}
        if project_id:
            filters["project"] = _id_filter(project_id)
        if cycle_id:
            filters["cycle"] = _id_filter(cycle_id)
        if label_id:
            filters["labels"] = _id_filter(label_id)
        if assignee_id:
            filters["assignee"] = _id_filter(assignee_id)
        if exclude_canceled:
            filters["state"] = {**filters.get("state", {}), "type": {"neq": "canceled"}}
        return await self._list(_LIST_ISSUES_QUERY, "issues", Issue, options, filters)

    async def search_issues(
        self, options: PaginationOptions | None = None, *, query: str
    ) -> Page[Issue]:
        """Issues whose title or description contains query (case-insensitive)."""
        filters = {
            "or": [
                {"title": {"containsIgnoreCase": query}},
                {"description": {"containsIgnoreCase": query}},
            ]
        }
        return await self._list(_LIST_ISSUES_QUERY, "issues", Issue, options, filters)

    async def list_assigned_issues(
        self,
        options: PaginationOptions | None = None,
        *,
        user_id: str,
        team_id: str | None = None,
        include_canceled: bool = False,
    ) -> Page[Issue]:
        """One page of the user's assignedIssues connection."""
        filters: dict[str, Any] = {}
        if team_id:
            filters["team"] = _id_filter(team_id)
        if not include_canceled:
            filters["state"] = {"type": {"neq": "canceled"}}
        return await self._nested_list(
            _USER_ASSIGNED_ISSUES_QUERY,
            ("user", "assignedIssues"),
            Issue,
            user_id,
            options,
            {"filter": filters or None},
        )

    async def get_issues_assigned_to_user(
        self,
        options: PaginationOptions | None = None,
        *,
        user_id: str,
        team_id: str | None = None,
        include_canceled: bool = False,
    ) -> list[Issue]:
        """
        Every issue assigned to a user.

        Walks the user's assignedIssues connection. If any page of it fails,
        the traversal restarts from the beginning on the issues connection
        filtered by assignee, so a cursor from one connection is never sent
        to the other.
        """
        options = options or PaginationOptions()
        direct = partial(
            self.list_assigned_issues,
            user_id=user_id,
            team_id=team_id,
            include_canceled=include_canceled,
        )
        filtered = partial(
            self.list_issues,
            assignee_id=user_id,
            team_ids=[team_id] if team_id else None,
            exclude_canceled=not include_canceled,
        )
        return await with_fallback(
            partial(fetch_all_pages, direct, options),
            partial(fetch_all_pages, filtered, replace(options, after=None)),
            description="Assigned issues query",
        )

    async def list_issue_relations(
        self,
        options: PaginationOptions | None = None,
        *,
        issue_id: str,
        inverse: bool = False,
    ) -> Page[IssueRelation]:
        """Relations where the issue is the source, or the target when inverse=True."""
        if inverse:
            query, path = _ISSUE_INVERSE_RELATIONS_QUERY, ("issue", "inverseRelations")
        else:
            query, path = _ISSUE_RELATIONS_QUERY, ("issue", "relations")
        return await self._nested_list(query, path, IssueRelation, issue_id, options)

    async def create_issue(
        self,
        title: str,
        team_id: str,
        description: str | None = None,
        state_id: str | None = None,
        assignee_id: str | None = None,
        priority: int | None = None,
        label_ids: list[str] | None = None,
        due_date: str | None = None,
    ) -> Issue:
        issue_input = _compact(
            title=title,
            teamId=team_id,
            description=description,
            stateId=state_id,
            assigneeId=assignee_id,
            priority=priority,
            labelIds=label_ids,
            dueDate=due_date,
        )
        payload = await self._mutate(_CREATE_ISSUE_MUTATION, {"input": issue_input}, "issueCreate")
        return _validate(Issue, payload.get("issue"))

    async def update_issue(self, issue_id: str, **changes: Any) -> Issue:
        """
        Update an issue.

        Args:
            issue_id: Issue ID or identifier (e.g., "ENG-123")
            **changes: IssueUpdateInput fields in camelCase (title, stateId,
                assigneeId, ...). A None value clears the field.
        """
        payload = await self._mutate(
            _UPDATE_ISSUE_MUTATION, {"id": issue_id, "input": changes}, "issueUpdate"
        )
        return _validate(Issue, payload.get("issue"))

    async def link_issues(self, issue_id: str, related_issue_id: str, relation_type: str) -> IssueRelation:
        if relation_type not in RELATION_TYPES:
            raise ValueError(
                f"Invalid relation type '{relation_type}'. "
                f"Must be one of: {', '.join(sorted(RELATION_TYPES))}"
            )
        relation_input = {
            "issueId": issue_id,
            "relatedIssueId": related_issue_id,
            "type": relation_type,
        }
        payload = await self._mutate(
            _CREATE_RELATION_MUTATION, {"input": relation_input}, "issueRelationCreate"
        )
        return _validate(IssueRelation, payload.get("issueRelation"))

    async def unlink_issues(self, relation_id: str) -> None:
        await self._mutate(_DELETE_RELATION_MUTATION, {"id": relation_id}, "issueRelationDelete")

    # ============================================
    # Projects
    # ============================================

    async def get_project(self, project_id: str) -> Project:
        return await self._get(_GET_PROJECT_QUERY, "project", Project, "project", project_id)

    async def list_projects(
        self,
        options: PaginationOptions | None = None,
        *,
        team_ids: list[str] | None = None,
        name_contains: str | None = None,
    ) -> Page[Project]:
        filters: dict[str, Any] = {}
        if team_ids:
            filters["accessibleTeams"] = {"some": {"id": {"in": team_ids}}}
        if name_contains:
            filters["name"] = {"containsIgnoreCase": name_contains}
        return await self._list(_LIST_PROJECTS_QUERY, "projects", Project, options, filters)

    async def create_project(
        self,
        name: str,
        team_ids: list[str],
        description: str | None = None,
        state: str | None = None,
        target_date: str | None = None,
    ) -> Project:
        if state is not None and state not in PROJECT_STATES:
            raise ValueError(
                f"Invalid project state '{state}'. Must be one of: {', '.join(sorted(PROJECT_STATES))}"
            )
        project_input = _compact(
            name=name,
            teamIds=team_ids,
            description=description,
            state=state,
            targetDate=target_date,
        )
        payload = await self._mutate(
            _CREATE_PROJECT_MUTATION, {"input": project_input}, "projectCreate"
        )
        return _validate(Project, payload.get("project"))

    async def update_project(self, project_id: str, **changes: Any) -> Project:
        """Update a project; changes are ProjectUpdateInput fields in camelCase."""
        payload = await self._mutate(
            _UPDATE_PROJECT_MUTATION, {"id": project_id, "input": changes}, "projectUpdate"
        )
        return _validate(Project, payload.get("project"))

    async def get_project_initiative(self, project_id: str) -> tuple[Project, Initiative | None]:
        """A project and the initiative it belongs to, if any."""
        try:
            data = await self.execute(_PROJECT_INITIATIVE_QUERY, {"id": project_id})
        except LinearGraphQLError as e:
            if e.is_not_found:
                raise UpstreamNotFound("project", project_id) from e
            raise
        record = data.get("project")
        if record is None:
            raise UpstreamNotFound("project", project_id)
        initiative = (record.get("initiativeProject") or {}).get("initiative")
        project = _validate(Project, record)
        return project, _validate(Initiative, initiative) if initiative else None

    # ============================================
    # Users
    # ============================================

    async def get_user(self, user_id: str) -> User:
        return await self._get(_GET_USER_QUERY, "user", User, "user", user_id)

    async def list_users(
        self, options: PaginationOptions | None = None, *, name_contains: str | None = None
    ) -> Page[User]:
        filters = {"name": {"containsIgnoreCase": name_contains}} if name_contains else None
        return await self._list(_LIST_USERS_QUERY, "users", User, options, filters)

    # ============================================
    # Comments
    # ============================================

    async def get_comment(self, comment_id: str) -> Comment:
        return await self._get(_GET_COMMENT_QUERY, "comment", Comment, "comment", comment_id)

    async def list_comments(
        self,
        options: PaginationOptions | None = None,
        *,
        issue_id: str | None = None,
        user_id: str | None = None,
        order_by: str | None = None,
    ) -> Page[Comment]:
        filters: dict[str, Any] = {}
        if issue_id:
            filters["issue"] = _id_filter(issue_id)
        if user_id:
            filters["user"] = _id_filter(user_id)
        return await self._list(
            _LIST_COMMENTS_QUERY, "comments", Comment, options, filters, order_by=order_by
        )

    async def create_comment(self, issue_id: str, body: str) -> Comment:
        payload = await self._mutate(
            _CREATE_COMMENT_MUTATION,
            {"input": {"issueId": issue_id, "body": body}},
            "commentCreate",
        )
        return _validate(Comment, payload.get("comment"))

    async def update_comment(self, comment_id: str, body: str) -> Comment:
        payload = await self._mutate(
            _UPDATE_COMMENT_MUTATION,
            {"id": comment_id, "input": {"body": body}},
            "commentUpdate",
        )
        return _validate(Comment, payload.get("comment"))

    async def delete_comment(self, comment_id: str) -> None:
        await self._mutate(_DELETE_COMMENT_MUTATION, {"id": comment_id}, "commentDelete")

    # ============================================
    # Milestones
    # ============================================

    async def get_milestone(self, milestone_id: str) -> Milestone:
        return await self._get(_GET_MILESTONE_QUERY, "milestone", Milestone, "milestone", milestone_id)

    async def list_milestones(self, options: PaginationOptions | None = None) -> Page[Milestone]:
        return await self._list(_LIST_MILESTONES_QUERY, "milestones", Milestone, options)

    # ============================================
    # Documents
    # ============================================

    async def get_document(self, document_id: str) -> Document:
        return await self._get(_GET_DOCUMENT_QUERY, "document", Document, "document", document_id)

    async def list_documents(self, options: PaginationOptions | None = None) -> Page[Document]:
        return await self._list(
            _LIST_DOCUMENTS_QUERY, "documents", Document, options, order_by="updatedAt"
        )

    async def list_team_documents(
        self, options: PaginationOptions | None = None, *, team_id: str
    ) -> Page[Document]:
        return await self._nested_list(
            _TEAM_DOCUMENTS_QUERY, ("team", "documents"), Document, team_id, options
        )

    async def list_project_documents(
        self, options: PaginationOptions | None = None, *, project_id: str
    ) -> Page[Document]:
        return await self._nested_list(
            _PROJECT_DOCUMENTS_QUERY, ("project", "documents"), Document, project_id, options
        )

    # ============================================
    # Initiatives
    # ============================================

    async def get_initiative(self, initiative_id: str) -> Initiative:
        return await self._get(
            _GET_INITIATIVE_QUERY, "initiative", Initiative, "initiative", initiative_id
        )

    async def list_initiatives(self, options: PaginationOptions | None = None) -> Page[Initiative]:
        return await self._list(_LIST_INITIATIVES_QUERY, "initiatives", Initiative, options)

    # ============================================
    # Organization
    # ============================================

    async def get_organization(self) -> Organization:
        data = await self.execute(_GET_ORGANIZATION_QUERY)
        record = data.get("organization")
        if record is None:
            raise UpstreamNotFound("organization", "current")
        return _validate(Organization, record)


def _compact(**fields: Any) -> dict[str, Any]:
    """Drop None values so optional inputs are omitted from the mutation."""
    return {key: value for key, value in fields.items() if value is not None}


def _validate(model: type[M], record: Any) -> M:
    try:
        return model.model_validate(record)
    except ValidationError as e:
        raise BackendError(f"Malformed {model.__name__} record: {e}") from e


def _validate_page(model: type[M], connection: Any, root: str) -> Page[M]:
    if connection is None:
        raise BackendError(f"Malformed response from Linear: missing {root} connection")
    try:
        return Page[model].model_validate(connection)  # type: ignore[valid-type]
    except ValidationError as e:
        raise BackendError(f"Malformed {root} connection: {e}") from e
