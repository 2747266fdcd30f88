"""Cross-references between Linear entities, each returned as a complete list."""

import asyncio
from functools import partial

from .client import LinearClient
from .models import Issue, IssueRef, IssueRelation, Project
from .pagination import DEFAULT_PAGE_SIZE, PaginationOptions, fetch_all_pages


class RelationshipManager:
    """Resolves related entities by walking every page of the relevant connection."""

    def __init__(self, client: LinearClient, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        self.client = client
        self.options = PaginationOptions(first=page_size)

    async def get_issues_for_project(self, project_id: str) -> list[Issue]:
        return await fetch_all_pages(
            partial(self.client.list_issues, project_id=project_id), self.options
        )

    async def get_issues_for_cycle(self, cycle_id: str) -> list[Issue]:
        return await fetch_all_pages(
            partial(self.client.list_issues, cycle_id=cycle_id), self.options
        )

    async def get_issues_with_label(self, label_id: str) -> list[Issue]:
        return await fetch_all_pages(
            partial(self.client.list_issues, label_id=label_id), self.options
        )

    async def get_projects_for_team(self, team_id: str) -> list[Project]:
        return await fetch_all_pages(
            partial(self.client.list_projects, team_ids=[team_id]), self.options
        )

    async def get_projects_for_initiative(self, initiative_id: str) -> list[Project]:
        return (await self.client.get_initiative(initiative_id)).projects

    async def get_issues_assigned_to_user(
        self,
        user_id: str,
        team_id: str | None = None,
        include_canceled: bool = False,
    ) -> list[Issue]:
        return await self.client.get_issues_assigned_to_user(
            self.options,
            user_id=user_id,
            team_id=team_id,
            include_canceled=include_canceled,
        )

    async def get_relations(self, issue_id: str) -> tuple[list[IssueRelation], list[IssueRelation]]:
        """(outgoing, incoming) relations of an issue."""
        outgoing = await fetch_all_pages(
            partial(self.client.list_issue_relations, issue_id=issue_id), self.options
        )
        incoming = await fetch_all_pages(
            partial(self.client.list_issue_relations, issue_id=issue_id, inverse=True),
            self.options,
        )
        return outgoing, incoming

    async def get_related_issues(self, issue_id: str) -> list[IssueRef]:
        """Every issue linked to this one, in either direction and of any type."""
        outgoing, incoming = await self.get_relations(issue_id)
        related = [r.related_issue for r in outgoing if r.related_issue]
        related += [r.issue for r in incoming if r.issue]
        return related

    async def get_blocking_issues(self, issue_id: str) -> list[IssueRef]:
        """Issues that block this one."""
        incoming = await fetch_all_pages(
            partial(self.client.list_issue_relations, issue_id=issue_id, inverse=True),
            self.options,
        )
        return [r.issue for r in incoming if r.type == "blocks" and r.issue]

    async def get_blocked_issues(self, issue_id: str) -> list[IssueRef]:
        """Issues this one blocks."""
        outgoing = await fetch_all_pages(
            partial(self.client.list_issue_relations, issue_id=issue_id), self.options
        )
        return [r.related_issue for r in outgoing if r.type == "blocks" and r.related_issue]

    async def link_issues(self, issue_id: str, related_issue_id: str, relation_type: str) -> IssueRelation:
        return await self.client.link_issues(issue_id, related_issue_id, relation_type)

    async def unlink_issues(self, relation_id: str) -> None:
        await self.client.unlink_issues(relation_id)

    async def assign_issue(self, issue_id: str, user_id: str) -> Issue:
        return await self.client.update_issue(issue_id, assigneeId=user_id)

    async def unassign_issue(self, issue_id: str) -> Issue:
        return await self.client.update_issue(issue_id, assigneeId=None)

    async def add_issue_to_project(self, issue_id: str, project_id: str) -> Issue:
        return await self.client.update_issue(issue_id, projectId=project_id)

    async def add_issues_to_cycle(self, cycle_id: str, issue_ids: list[str]) -> list[Issue]:
        """Move every issue into the cycle; results follow issue_ids order."""
        return await asyncio.gather(
            *(self.client.update_issue(issue_id, cycleId=cycle_id) for issue_id in issue_ids)
        )
