"""Shared fixtures: in-memory page fetchers and a fake Linear client."""

import asyncio
from datetime import date, datetime, timedelta, timezone
from typing import Any

import pytest

from linear_mcp.errors import UpstreamNotFound
from linear_mcp.models import (
    Comment,
    Cycle,
    Document,
    Initiative,
    Issue,
    IssueRelation,
    Milestone,
    Project,
    Team,
    User,
    UserRef,
)
from linear_mcp.pagination import Page, PageInfo, PaginationOptions


class ListFetcher:
    """Serves a list as cursor pages; cursors are stringified offsets."""

    def __init__(self, items: list[Any], delay: float = 0.0) -> None:
        self.items = items
        self.delay = delay
        self.calls: list[PaginationOptions] = []

    async def __call__(self, options: PaginationOptions) -> Page:
        self.calls.append(options)
        if self.delay:
            await asyncio.sleep(self.delay)
        start = int(options.after) if options.after else 0
        end = start + options.first
        nodes = self.items[start:end]
        has_next = end < len(self.items)
        return Page(
            nodes=nodes,
            page_info=PageInfo(has_next_page=has_next, end_cursor=str(end) if has_next else None),
        )


class FakeLinearClient:
    """Stands in for LinearClient in registrar and tool tests."""

    def __init__(self) -> None:
        now = datetime.now(timezone.utc)
        self.teams = [
            Team(id="t1", name="Engineering", key="ENG"),
            Team(id="t2", name="Design", key="DES"),
            Team(id="t3", name="Ops", key="OPS"),
        ]
        self.cycles = {
            "t1": [
                Cycle(id="c1", number=1, starts_at=now - timedelta(days=20), ends_at=now - timedelta(days=6)),
                Cycle(id="c2", number=2, starts_at=now - timedelta(days=3), ends_at=now + timedelta(days=11)),
            ],
            "t2": [
                Cycle(id="c3", number=1, starts_at=now - timedelta(days=1), ends_at=now + timedelta(days=13)),
                Cycle(id="c4", number=2, starts_at=now + timedelta(days=13), ends_at=now + timedelta(days=27)),
            ],
            "t3": [
                Cycle(id="c5", number=7, name="Hardening", starts_at=now - timedelta(days=40), ends_at=now - timedelta(days=26)),
                Cycle(id="c6", number=8, starts_at=now + timedelta(days=2), ends_at=now + timedelta(days=16)),
            ],
        }
        # Later teams answer first, so completion order differs from team order
        self.cycle_delays = {"t1": 0.03, "t2": 0.02, "t3": 0.0}
        self.issues = [
            Issue.model_validate(
                {
                    "id": f"i{n}",
                    "identifier": f"ENG-{n}",
                    "title": f"Issue {n}",
                    "description": "x" * 150 if n == 1 else None,
                    "state": {"id": "s1", "name": "Todo", "type": "unstarted"},
                    "assignee": {"id": "u1", "name": "Ada"},
                }
            )
            for n in range(1, 4)
        ]
        self.users = [User(id="u1", name="Ada", email="ada@example.com")]
        self.projects = [Project(id="p1", name="Launch", state="started")]
        self.comments = [
            Comment.model_validate(
                {
                    "id": "m1",
                    "body": "Looks good",
                    "user": {"id": "u1", "name": "Ada"},
                    "issue": {"id": "i1", "identifier": "ENG-1", "title": "Issue 1"},
                }
            )
        ]
        self.milestones = [
            Milestone(id="ms1", name="Q3 launch", target_date=date(2026, 9, 30), projects=self.projects)
        ]
        self.documents = [
            Document.model_validate(
                {
                    "id": "d1",
                    "title": "Runbook",
                    "content": "Restart the worker.",
                    "updatedAt": "2026-03-10T12:00:00Z",
                    "creator": {"id": "u1", "name": "Ada"},
                }
            )
        ]
        self.initiatives = [
            Initiative(id="in1", name="Growth", state="active", projects=self.projects)
        ]
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def _page(self, items: list[Any], options: PaginationOptions | None) -> Page:
        options = options or PaginationOptions()
        start = int(options.after) if options.after else 0
        end = start + options.first
        has_next = end < len(items)
        return Page(
            nodes=items[start:end],
            page_info=PageInfo(has_next_page=has_next, end_cursor=str(end) if has_next else None),
        )

    async def list_teams(self, options: PaginationOptions | None = None) -> Page:
        self.calls.append(("list_teams", {}))
        return self._page(self.teams, options)

    async def get_team(self, team_id: str) -> Team:
        for team in self.teams:
            if team.id == team_id:
                return team.model_copy(update={"members": [UserRef(id="u1", name="Ada")]})
        raise UpstreamNotFound("team", team_id)

    async def list_cycles(self, options: PaginationOptions | None = None, *, team_id: str | None = None) -> Page:
        self.calls.append(("list_cycles", {"team_id": team_id}))
        await asyncio.sleep(self.cycle_delays.get(team_id, 0.0))
        return self._page(self.cycles.get(team_id, []), options)

    async def get_cycle(self, cycle_id: str) -> Cycle:
        for cycles in self.cycles.values():
            for cycle in cycles:
                if cycle.id == cycle_id:
                    return cycle
        raise UpstreamNotFound("cycle", cycle_id)

    async def list_issues(self, options: PaginationOptions | None = None, **filters: Any) -> Page:
        self.calls.append(("list_issues", filters))
        return self._page(self.issues, options)

    async def get_issue(self, issue_id: str) -> Issue:
        for issue in self.issues:
            if issue_id in (issue.id, issue.identifier):
                return issue
        raise UpstreamNotFound("issue", issue_id)

    async def search_issues(self, options: PaginationOptions | None = None, *, query: str) -> Page:
        self.calls.append(("search_issues", {"query": query}))
        matches = [issue for issue in self.issues if query.lower() in issue.title.lower()]
        return self._page(matches, options)

    async def get_issues_assigned_to_user(self, options: PaginationOptions | None = None, **kwargs: Any) -> list[Issue]:
        self.calls.append(("get_issues_assigned_to_user", kwargs))
        return list(self.issues)

    async def list_issue_relations(self, options: PaginationOptions | None = None, **kwargs: Any) -> Page:
        self.calls.append(("list_issue_relations", kwargs))
        return self._page([], options)

    async def list_projects(self, options: PaginationOptions | None = None, **filters: Any) -> Page:
        self.calls.append(("list_projects", filters))
        return self._page(self.projects, options)

    async def list_users(self, options: PaginationOptions | None = None, **filters: Any) -> Page:
        self.calls.append(("list_users", filters))
        return self._page(self.users, options)

    async def list_comments(self, options: PaginationOptions | None = None, **filters: Any) -> Page:
        self.calls.append(("list_comments", filters))
        return self._page(self.comments, options)

    async def create_issue(self, title: str, team_id: str, **kwargs: Any) -> Issue:
        self.calls.append(("create_issue", {"title": title, "team_id": team_id, **kwargs}))
        return Issue(id="new", identifier="ENG-99", title=title)

    async def update_issue(self, issue_id: str, **changes: Any) -> Issue:
        self.calls.append(("update_issue", {"issue_id": issue_id, **changes}))
        return Issue(id=issue_id, identifier="ENG-1", title=changes.get("title", "Issue 1"))

    async def create_comment(self, issue_id: str, body: str) -> Comment:
        self.calls.append(("create_comment", {"issue_id": issue_id, "body": body}))
        return Comment(id="m9", body=body)

    async def update_comment(self, comment_id: str, body: str) -> Comment:
        self.calls.append(("update_comment", {"comment_id": comment_id, "body": body}))
        return Comment(id=comment_id, body=body)

    async def delete_comment(self, comment_id: str) -> None:
        self.calls.append(("delete_comment", {"comment_id": comment_id}))

    async def link_issues(self, issue_id: str, related_issue_id: str, relation_type: str) -> IssueRelation:
        self.calls.append(
            ("link_issues", {"issue_id": issue_id, "related_issue_id": related_issue_id, "type": relation_type})
        )
        return IssueRelation(id="r9", type=relation_type)

    async def unlink_issues(self, relation_id: str) -> None:
        self.calls.append(("unlink_issues", {"relation_id": relation_id}))

    async def get_project(self, project_id: str) -> Project:
        for project in self.projects:
            if project.id == project_id:
                return project
        raise UpstreamNotFound("project", project_id)

    async def create_project(self, name: str, team_ids: list[str], **kwargs: Any) -> Project:
        self.calls.append(("create_project", {"name": name, "team_ids": team_ids, **kwargs}))
        return Project(id="p9", name=name, state=kwargs.get("state"))

    async def update_project(self, project_id: str, **changes: Any) -> Project:
        self.calls.append(("update_project", {"project_id": project_id, **changes}))
        return Project(id=project_id, name=changes.get("name", "Launch"))

    async def get_project_initiative(self, project_id: str) -> tuple[Project, Initiative | None]:
        project = await self.get_project(project_id)
        return project, self.initiatives[0] if project_id == "p1" else None

    async def create_cycle(self, team_id: str, starts_at: str, ends_at: str, **kwargs: Any) -> Cycle:
        self.calls.append(("create_cycle", {"team_id": team_id, "starts_at": starts_at, "ends_at": ends_at, **kwargs}))
        return Cycle(id="c9", number=9, name=kwargs.get("name"))

    async def update_cycle(self, cycle_id: str, **changes: Any) -> Cycle:
        self.calls.append(("update_cycle", {"cycle_id": cycle_id, **changes}))
        return Cycle(id=cycle_id, name=changes.get("name"))

    async def list_milestones(self, options: PaginationOptions | None = None) -> Page:
        self.calls.append(("list_milestones", {}))
        return self._page(self.milestones, options)

    async def get_milestone(self, milestone_id: str) -> Milestone:
        for milestone in self.milestones:
            if milestone.id == milestone_id:
                return milestone
        raise UpstreamNotFound("milestone", milestone_id)

    async def list_documents(self, options: PaginationOptions | None = None) -> Page:
        self.calls.append(("list_documents", {}))
        return self._page(self.documents, options)

    async def list_team_documents(self, options: PaginationOptions | None = None, *, team_id: str) -> Page:
        self.calls.append(("list_team_documents", {"team_id": team_id}))
        return self._page(self.documents, options)

    async def list_project_documents(self, options: PaginationOptions | None = None, *, project_id: str) -> Page:
        self.calls.append(("list_project_documents", {"project_id": project_id}))
        return self._page(self.documents, options)

    async def get_document(self, document_id: str) -> Document:
        for document in self.documents:
            if document.id == document_id:
                return document
        raise UpstreamNotFound("document", document_id)

    async def list_initiatives(self, options: PaginationOptions | None = None) -> Page:
        self.calls.append(("list_initiatives", {}))
        return self._page(self.initiatives, options)

    async def get_initiative(self, initiative_id: str) -> Initiative:
        for initiative in self.initiatives:
            if initiative.id == initiative_id:
                return initiative
        raise UpstreamNotFound("initiative", initiative_id)


@pytest.fixture
def fake_client() -> FakeLinearClient:
    return FakeLinearClient()
