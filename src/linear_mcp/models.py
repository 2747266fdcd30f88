"""
Typed Linear records.

Responses are validated here, at the deserialization boundary, so the
rest of the package reads attributes instead of probing dicts. Every
field the queries may omit is optional; unknown fields are ignored.
"""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class LinearModel(BaseModel):
    """Base model accepting Linear's camelCase field names."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


def _flatten_nodes(value: Any) -> Any:
    """Unwrap a nested connection ({"nodes": [...]}) into a plain list."""
    if isinstance(value, dict) and "nodes" in value:
        return value["nodes"]
    return value


# ============================================
# References (nested objects)
# ============================================


class TeamRef(LinearModel):
    id: str
    name: str | None = None
    key: str | None = None


class UserRef(LinearModel):
    id: str
    name: str | None = None
    email: str | None = None


class StateRef(LinearModel):
    id: str
    name: str | None = None
    type: str | None = None


class IssueRef(LinearModel):
    id: str
    identifier: str | None = None
    title: str | None = None


class ProjectRef(LinearModel):
    id: str
    name: str | None = None


class CycleRef(LinearModel):
    id: str
    name: str | None = None
    number: int | None = None


# ============================================
# Entities
# ============================================


class Team(LinearModel):
    id: str
    name: str
    key: str | None = None
    description: str | None = None
    members: list[UserRef] = []

    @field_validator("members", mode="before")
    @classmethod
    def unwrap_members(cls, value: Any) -> Any:
        return _flatten_nodes(value)


class User(LinearModel):
    id: str
    name: str
    display_name: str | None = None
    email: str | None = None
    admin: bool = False
    active: bool = True
    url: str | None = None
    teams: list[TeamRef] = []

    @field_validator("teams", mode="before")
    @classmethod
    def unwrap_teams(cls, value: Any) -> Any:
        return _flatten_nodes(value)


class WorkflowState(LinearModel):
    id: str
    name: str
    type: str | None = None
    color: str | None = None


class IssueLabel(LinearModel):
    id: str
    name: str
    description: str | None = None
    color: str | None = None


class Cycle(LinearModel):
    id: str
    number: int | None = None
    name: str | None = None
    description: str | None = None
    starts_at: datetime | None = None
    ends_at: datetime | None = None
    completed_at: datetime | None = None
    team: TeamRef | None = None


class Issue(LinearModel):
    id: str
    identifier: str
    title: str
    description: str | None = None
    priority: int | None = None
    url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    completed_at: datetime | None = None
    due_date: date | None = None
    state: StateRef | None = None
    assignee: UserRef | None = None
    team: TeamRef | None = None
    project: ProjectRef | None = None
    cycle: CycleRef | None = None
    labels: list[IssueLabel] = []

    @field_validator("labels", mode="before")
    @classmethod
    def unwrap_labels(cls, value: Any) -> Any:
        return _flatten_nodes(value)


class IssueRelation(LinearModel):
    id: str
    type: str
    issue: IssueRef | None = None
    related_issue: IssueRef | None = None


class Project(LinearModel):
    id: str
    name: str
    description: str | None = None
    state: str | None = None
    url: str | None = None
    target_date: date | None = None
    teams: list[TeamRef] = []

    @field_validator("teams", mode="before")
    @classmethod
    def unwrap_teams(cls, value: Any) -> Any:
        return _flatten_nodes(value)


class Comment(LinearModel):
    id: str
    body: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None
    user: UserRef | None = None
    issue: IssueRef | None = None


class Organization(LinearModel):
    id: str
    name: str
    url_key: str | None = None
    created_at: datetime | None = None
    saml_enabled: bool = False
    user_count: int | None = None
    created_issue_count: int | None = None
    allowed_auth_services: list[str] = []


class Milestone(LinearModel):
    id: str
    name: str
    description: str | None = None
    target_date: date | None = None
    projects: list[Project] = []

    @field_validator("projects", mode="before")
    @classmethod
    def unwrap_projects(cls, value: Any) -> Any:
        return _flatten_nodes(value)


class Document(LinearModel):
    id: str
    title: str
    content: str | None = None
    url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    creator: UserRef | None = None
    project: ProjectRef | None = None


class Initiative(LinearModel):
    id: str
    name: str
    description: str | None = None
    state: str | None = None
    start_date: date | None = None
    target_date: date | None = None
    projects: list[Project] = Field(default=[], validation_alias="initiativeProjects")

    @field_validator("projects", mode="before")
    @classmethod
    def unwrap_projects(cls, value: Any) -> Any:
        # initiativeProjects nodes wrap each project in a join record
        nodes = _flatten_nodes(value)
        if isinstance(nodes, list):
            return [node.get("project", node) if isinstance(node, dict) else node for node in nodes]
        return nodes
