"""
Linear MCP Server - Linear workspace as linear:// resources

Resources (read-only, Markdown):
- linear://teams, linear://teams/{id} and per-team states, labels, cycles,
  issues, projects, members and documents
- linear://cycles, linear://cycles/active, linear://cycles/{id}
- linear://issues, linear://issues/{id}, relations and comments
- linear://labels/{labelId}/issues
- linear://projects, linear://users, linear://comments/recent
- linear://milestones, linear://documents, linear://initiatives
- linear://organization

Tools: search_linear, list_issues, create_issue, update_issue,
create_comment, update_comment, delete_comment, link_issues, unlink_issues,
assign_issue, unassign_issue, create_project, update_project,
add_issue_to_project, create_cycle, update_cycle, add_issues_to_cycle,
read_resource

Configuration: LINEAR_API_KEY (required), see config.Settings
"""

import asyncio
import logging
import sys
from collections.abc import Iterable
from typing import Any

import mcp.types as types
from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ResourceError
from mcp.server.lowlevel.helper_types import ReadResourceContents
from pydantic import AnyUrl

from .client import LinearClient
from .config import VALID_TRANSPORTS, Settings, get_settings
from .errors import LinearMCPError, ResourceNotFound
from .resources import register_all_resources
from .router import ResourceRouter
from .tools import register_tools

logger = logging.getLogger(__name__)

INSTRUCTIONS = """Linear workspace access.

Read teams, cycles, issues, projects, users, comments, milestones, documents
and initiatives as linear:// resources. Collections (linear://teams,
linear://issues, ...) list their members; use the listed URIs for full details.
linear://issues shows the first page only; use the list_issues tool with its
next_cursor to page further.

Use the tools to search Linear and to change issues, projects, cycles and
comments."""


class LinearMCP(FastMCP):
    """FastMCP server whose resources are served by a ResourceRouter.

    The router matches templates segment by segment, so Linear identifiers
    and relationship paths resolve without registering one FastMCP resource
    per record.
    """

    def __init__(self, router: ResourceRouter, **kwargs: Any) -> None:
        self.router = router
        super().__init__(**kwargs)

    async def list_resources(self) -> list[types.Resource]:
        static = [
            types.Resource(
                uri=registration.template.template,
                name=registration.name,
                description=registration.description,
                mimeType=registration.mime_type,
            )
            for registration in self.router.templates()
            if registration.template.is_static
        ]
        try:
            listed = await self.router.list_all()
        except LinearMCPError as e:
            logger.error("Listing resources failed: %s", e)
            raise ResourceError(f"Error listing resources: {e}") from e
        return static + [
            types.Resource(
                uri=descriptor.uri,
                name=descriptor.name,
                description=descriptor.description,
                mimeType=descriptor.mime_type,
            )
            for descriptor in listed
        ]

    async def list_resource_templates(self) -> list[types.ResourceTemplate]:
        return [
            types.ResourceTemplate(
                uriTemplate=registration.template.template,
                name=registration.name,
                description=registration.description,
                mimeType=registration.mime_type,
            )
            for registration in self.router.templates()
            if not registration.template.is_static
        ]

    async def read_resource(self, uri: AnyUrl | str) -> Iterable[ReadResourceContents]:
        # AnyUrl appends "/" to bare hosts (linear://teams -> linear://teams/)
        uri_str = str(uri)
        if uri_str.endswith("/"):
            uri_str = uri_str.rstrip("/")
        try:
            contents = await self.router.resolve(uri_str)
        except ResourceNotFound as e:
            raise ResourceError(str(e)) from e
        except LinearMCPError as e:
            logger.error("Error reading resource %s: %s", uri_str, e)
            raise ResourceError(f"Error reading resource {uri_str}: {e}") from e
        return [ReadResourceContents(content=contents.text, mime_type=contents.mime_type)]


def build_client(settings: Settings) -> LinearClient:
    return LinearClient(
        settings.linear_api_key.get_secret_value(),
        api_url=settings.linear_api_url,
        timeout=settings.linear_timeout_seconds,
    )


def create_server(settings: Settings, client: LinearClient | None = None) -> LinearMCP:
    """
    Build a fully registered server.

    Args:
        settings: Loaded settings
        client: Linear client to use (default: one built from settings)

    Returns:
        LinearMCP with every resource and tool registered
    """
    if client is None:
        client = build_client(settings)
    router = ResourceRouter()
    register_all_resources(router, client, settings.linear_page_size)

    server = LinearMCP(
        router,
        name="linear",
        instructions=INSTRUCTIONS,
        host=settings.server_host,
        port=settings.server_port,
    )
    register_tools(server, client, router)
    logger.info("Registered %d resource templates", len(router))
    return server


async def serve(server: FastMCP, client: LinearClient, transport: str) -> None:
    """Run the server until its transport closes, then close the Linear client."""
    async with client:
        if transport == "sse":
            await server.run_sse_async()
        else:
            await server.run_stdio_async()


def main() -> None:
    """Entry point for the Linear MCP server."""
    settings = get_settings()
    logging.basicConfig(level=settings.log_level)

    transport = sys.argv[1].lower() if len(sys.argv) > 1 else settings.mcp_transport
    if transport not in VALID_TRANSPORTS:
        logger.error("Unknown transport %s; expected one of %s", transport, sorted(VALID_TRANSPORTS))
        sys.exit(2)

    client = build_client(settings)
    server = create_server(settings, client)
    if transport == "sse":
        logger.info(
            "Starting Linear MCP server on %s:%s (sse)", settings.server_host, settings.server_port
        )
    else:
        logger.info("Starting Linear MCP server (stdio)")
    asyncio.run(serve(server, client, transport))
    logger.info("Linear MCP server stopped")


if __name__ == "__main__":
    main()
