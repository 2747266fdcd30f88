"""Markdown renderings of Linear records for resource content."""

from collections.abc import Callable
from datetime import date, datetime, timezone

from .models import (
    Comment,
    Cycle,
    Document,
    Initiative,
    Issue,
    Milestone,
    Organization,
    Project,
    Team,
    User,
)

PRIORITY_LABELS = {0: "No priority", 1: "Urgent", 2: "High", 3: "Medium", 4: "Low"}


def priority_to_string(priority: int | None) -> str:
    if priority is None:
        return "No priority"
    return PRIORITY_LABELS.get(priority, f"Priority {priority}")


def format_date(value: date | datetime | None) -> str:
    if value is None:
        return "Unknown"
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


def format_datetime(value: datetime | None) -> str:
    if value is None:
        return "Unknown"
    return value.strftime("%Y-%m-%d %H:%M")


def format_cycle_dates(cycle: Cycle) -> str:
    return f"{format_date(cycle.starts_at)} to {format_date(cycle.ends_at)}"


def _as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def cycle_status(cycle: Cycle, now: datetime | None = None) -> str:
    """Upcoming, Active or Completed, judged by the cycle's dates."""
    now = _as_utc(now or datetime.now(timezone.utc))
    if cycle.starts_at and now < _as_utc(cycle.starts_at):
        return "Upcoming"
    if cycle.ends_at and now > _as_utc(cycle.ends_at):
        return "Completed"
    return "Active"


def cycle_name(cycle: Cycle) -> str:
    if cycle.name:
        return cycle.name
    if cycle.number is not None:
        return f"Cycle {cycle.number}"
    return f"Cycle {cycle.id}"


def format_issue_line(issue: Issue, with_assignee: bool = False) -> str:
    state = issue.state.name if issue.state and issue.state.name else "Unknown state"
    line = f"- {issue.identifier}: {issue.title} ({state})"
    if with_assignee and issue.assignee:
        line += f" - Assigned to: {issue.assignee.name or 'Unknown'}"
    return line


def format_issue_list(issues: list[Issue], empty: str = "No issues found.") -> str:
    if not issues:
        return empty
    return "\n".join(format_issue_line(issue) for issue in issues)


def format_issue(issue: Issue) -> str:
    state = issue.state.name if issue.state and issue.state.name else "Unknown"
    assignee = issue.assignee.name if issue.assignee and issue.assignee.name else "Unassigned"
    lines = [
        f"# {issue.identifier}: {issue.title}",
        "",
        f"State: {state}",
        f"Assignee: {assignee}",
        f"Priority: {priority_to_string(issue.priority)}",
        f"Created: {format_datetime(issue.created_at)}",
    ]
    if issue.team:
        lines.append(f"Team: {issue.team.name or issue.team.id}")
    if issue.project:
        lines.append(f"Project: {issue.project.name or issue.project.id}")
    if issue.due_date:
        lines.append(f"Due: {format_date(issue.due_date)}")
    if issue.labels:
        lines.append("Labels: " + ", ".join(label.name for label in issue.labels))
    lines += ["", issue.description or "No description provided."]
    if issue.url:
        lines += ["", issue.url]
    return "\n".join(lines)


def format_project(project: Project) -> str:
    lines = [
        f"# {project.name}",
        "",
        f"State: {project.state or 'Unknown'}",
    ]
    if project.teams:
        lines.append("Teams: " + ", ".join(team.name or team.id for team in project.teams))
    if project.target_date:
        lines.append(f"Target Date: {format_date(project.target_date)}")
    lines += ["", project.description or "No description provided."]
    return "\n".join(lines)


def format_team(team: Team) -> str:
    lines = [
        f"# {team.name}",
        "",
        f"Key: {team.key or 'Unknown'}",
        f"Description: {team.description or 'No description provided.'}",
        "",
    ]
    if team.members:
        lines.append("Members: " + ", ".join(m.name or m.id for m in team.members))
    else:
        lines.append("No members.")
    return "\n".join(lines)


def format_user(user: User) -> str:
    lines = [
        f"# {user.name}",
        "",
        f"Email: {user.email or 'Unknown'}",
        f"Role: {'Admin' if user.admin else 'Member'}",
    ]
    if user.teams:
        lines.append("Teams: " + ", ".join(t.name or t.id for t in user.teams))
    else:
        lines.append("No teams.")
    return "\n".join(lines)


def format_cycle(cycle: Cycle, issues: list[Issue], now: datetime | None = None) -> str:
    total = len(issues)
    completed = sum(1 for issue in issues if issue.completed_at)
    rate = round(completed / total * 100) if total else 0
    team = cycle.team.name if cycle.team and cycle.team.name else "Unknown"
    lines = [
        f"# {cycle_name(cycle)}",
        "",
        f"Team: {team}",
        f"Duration: {format_cycle_dates(cycle)}",
        f"Status: {cycle_status(cycle, now)}",
        f"Completion: {rate}% ({completed}/{total} issues)",
    ]
    if cycle.description:
        lines += ["", "## Description", "", cycle.description]
    return "\n".join(lines)


def format_comment(comment: Comment) -> str:
    author = comment.user.name if comment.user and comment.user.name else "Unknown User"
    lines = [
        f"# Comment by {author}",
        "",
        f"Created: {format_datetime(comment.created_at)}",
    ]
    if comment.updated_at and comment.updated_at != comment.created_at:
        lines.append(f"Updated: {format_datetime(comment.updated_at)}")
    if comment.issue:
        lines.append(
            f"Issue: {comment.issue.identifier or 'Unknown'}: {comment.issue.title or 'Unknown'}"
        )
    lines += ["", "## Content", "", comment.body]
    return "\n".join(lines)


def format_comment_thread(comments: list[Comment], heading: str = "author") -> str:
    """Comments separated by rules; heading is "author", "issue" or "both"."""
    if not comments:
        return "No comments found."
    sections = []
    for comment in comments:
        author = comment.user.name if comment.user and comment.user.name else "Unknown User"
        issue = comment.issue.identifier if comment.issue and comment.issue.identifier else "Unknown Issue"
        if heading == "issue":
            title = comment.issue.title if comment.issue and comment.issue.title else "Unknown Title"
            label = f"{issue}: {title}"
        elif heading == "both":
            label = f"{author} on {issue}"
        else:
            label = author
        sections.append(f"### {label} ({format_datetime(comment.created_at)})\n{comment.body}")
    return "\n\n---\n\n".join(sections)


def format_organization(organization: Organization) -> str:
    lines = [
        f"# {organization.name}",
        "",
        f"Organization ID: {organization.id}",
        f"URL Key: {organization.url_key or 'Unknown'}",
        f"Created: {format_date(organization.created_at)}",
        "",
        "## Statistics",
        "",
        f"Users: {organization.user_count if organization.user_count is not None else 'Unknown'}",
        f"Created Issues: {organization.created_issue_count if organization.created_issue_count is not None else 'Unknown'}",
        "",
        "## Settings",
        "",
        f"SAML Enabled: {'Yes' if organization.saml_enabled else 'No'}",
    ]
    if organization.allowed_auth_services:
        lines.append("Allowed Auth Services: " + ", ".join(organization.allowed_auth_services))
    return "\n".join(lines)


def format_project_list(projects: list[Project], empty: str = "No projects found.") -> str:
    if not projects:
        return empty
    return "\n".join(f"- {project.name} ({project.state or 'Unknown state'})" for project in projects)


def format_project_details(
    projects: list[Project],
    link: Callable[[Project], str] | None = None,
    empty: str = "No projects found.",
) -> str:
    """Each project as a section; link(project), when given, is appended as its resource URI."""
    if not projects:
        return empty
    sections = []
    for project in projects:
        lines = [f"## {project.name}", ""]
        if project.description:
            lines += [project.description, ""]
        lines.append(f"State: {project.state or 'No state'}")
        if project.target_date:
            lines.append(f"Target Date: {format_date(project.target_date)}")
        if project.teams:
            lines.append("Teams: " + ", ".join(team.name or team.id for team in project.teams))
        if link:
            lines += ["", f"Resource: {link(project)}"]
        sections.append("\n".join(lines))
    return "\n\n".join(sections)


def format_milestone(milestone: Milestone) -> str:
    lines = [f"# {milestone.name}", ""]
    if milestone.description:
        lines += [milestone.description, ""]
    if milestone.target_date:
        lines.append(f"Target Date: {format_date(milestone.target_date)}")
    lines += ["", "## Projects", ""]
    if milestone.projects:
        lines += [f"- {project.name} ({project.state or 'No state'})" for project in milestone.projects]
    else:
        lines.append("No projects in this milestone.")
    return "\n".join(lines)


def format_document_line(document: Document) -> str:
    return f"- {document.title} (Updated: {format_date(document.updated_at)})"


def format_document_list(documents: list[Document], empty: str = "No documents found.") -> str:
    if not documents:
        return empty
    return "\n".join(format_document_line(document) for document in documents)


def format_document(document: Document) -> str:
    creator = document.creator.name if document.creator and document.creator.name else "Unknown"
    lines = [
        f"# {document.title}",
        "",
        f"Created by: {creator}",
        f"Created: {format_datetime(document.created_at)}",
        f"Updated: {format_datetime(document.updated_at)}",
    ]
    if document.project:
        lines.append(f"Project: {document.project.name or document.project.id}")
    lines += ["", document.content or "No content."]
    return "\n".join(lines)


def format_initiative(initiative: Initiative) -> str:
    lines = [f"# {initiative.name}", ""]
    if initiative.description:
        lines += [initiative.description, ""]
    lines.append(f"State: {initiative.state or 'Not started'}")
    if initiative.start_date:
        lines.append(f"Start Date: {format_date(initiative.start_date)}")
    if initiative.target_date:
        lines.append(f"Target Date: {format_date(initiative.target_date)}")
    if initiative.projects:
        lines += ["", "## Related Projects", ""]
        lines += [f"- {project.name} ({project.state or 'No state'})" for project in initiative.projects]
    return "\n".join(lines)
