"""
Linear resource registrars.

Each registrar owns one slice of the linear:// address space and is
handed the router and the client explicitly at startup.
"""

from ..client import LinearClient
from ..pagination import DEFAULT_PAGE_SIZE
from ..router import ResourceRouter
from .comments import register_comment_resources
from .cycles import register_cycle_resources
from .documents import register_document_resources
from .initiatives import register_initiative_resources
from .issues import register_issue_resources
from .milestones import register_milestone_resources
from .organization import register_organization_resources
from .projects import register_project_resources
from .teams import register_team_resources
from .users import register_user_resources

__all__ = [
    "register_all_resources",
    "register_comment_resources",
    "register_cycle_resources",
    "register_document_resources",
    "register_initiative_resources",
    "register_issue_resources",
    "register_milestone_resources",
    "register_organization_resources",
    "register_project_resources",
    "register_team_resources",
    "register_user_resources",
]


def register_all_resources(
    router: ResourceRouter,
    client: LinearClient,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> None:
    register_team_resources(router, client, page_size)
    register_cycle_resources(router, client, page_size)
    register_issue_resources(router, client, page_size)
    register_project_resources(router, client, page_size)
    register_user_resources(router, client, page_size)
    register_comment_resources(router, client, page_size)
    register_milestone_resources(router, client, page_size)
    register_document_resources(router, client, page_size)
    register_initiative_resources(router, client, page_size)
    register_organization_resources(router, client)
