"""Document resources: the workspace collection and documents by team or project."""

from functools import partial
from typing import Any

from ..client import LinearClient
from ..formatting import format_document, format_document_list
from ..pagination import DEFAULT_PAGE_SIZE, PaginationOptions, fetch_all_pages
from ..router import ResourceDescriptor, ResourceRouter, UriTemplate

DOCUMENT = UriTemplate("linear://documents/{id}")


def register_document_resources(
    router: ResourceRouter,
    client: LinearClient,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> None:
    options = PaginationOptions(first=page_size)

    async def list_documents(_context: Any) -> list[ResourceDescriptor]:
        documents = await fetch_all_pages(client.list_documents, options)
        return [
            ResourceDescriptor(uri=DOCUMENT.expand(id=document.id), name=document.title)
            for document in documents
        ]

    @router.resource(
        "documents",
        "linear://documents",
        description="List of Linear documents, most recently updated first",
        list_resources=list_documents,
    )
    async def read_documents(uri: str, variables: dict[str, str]) -> str:
        return format_document_list(await fetch_all_pages(client.list_documents, options))

    @router.resource("document", DOCUMENT, description="A Linear document with its content")
    async def read_document(uri: str, variables: dict[str, str]) -> str:
        return format_document(await client.get_document(variables["id"]))

    @router.resource(
        "teamDocuments",
        "linear://teams/{teamId}/documents",
        description="Documents for a specific team",
    )
    async def read_team_documents(uri: str, variables: dict[str, str]) -> str:
        documents = await fetch_all_pages(
            partial(client.list_team_documents, team_id=variables["teamId"]), options
        )
        return format_document_list(documents)

    @router.resource(
        "projectDocuments",
        "linear://projects/{projectId}/documents",
        description="Documents for a specific project",
    )
    async def read_project_documents(uri: str, variables: dict[str, str]) -> str:
        documents = await fetch_all_pages(
            partial(client.list_project_documents, project_id=variables["projectId"]), options
        )
        return format_document_list(documents)
