"""Tests for linear_mcp.server module."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from conftest import FakeLinearClient
from mcp.server.fastmcp.exceptions import ResourceError

from linear_mcp.config import Settings
from linear_mcp.client import LinearClient
from linear_mcp.server import LinearMCP, create_server, main, serve


@pytest.fixture
def settings(monkeypatch: pytest.MonkeyPatch) -> Settings:
    monkeypatch.setenv("LINEAR_API_KEY", "lin_api_test")
    return Settings(_env_file=None)  # type: ignore[call-arg]


@pytest.fixture
def server(settings: Settings, fake_client: FakeLinearClient) -> LinearMCP:
    return create_server(settings, client=fake_client)  # type: ignore[arg-type]


class TestCreateServer:
    """Tests for server assembly."""

    def test_registers_router(self, server: LinearMCP) -> None:
        """The server carries a fully registered router."""
        assert len(server.router) == 39

    @pytest.mark.asyncio
    async def test_templates_exclude_static(self, server: LinearMCP) -> None:
        """Only parameterized templates are advertised as templates."""
        templates = await server.list_resource_templates()
        uris = {template.uriTemplate for template in templates}
        assert "linear://teams/{id}" in uris
        assert "linear://teams/{teamId}/issues" in uris
        assert "linear://teams" not in uris
        assert "linear://projects/{projectId}/initiative" in uris

    @pytest.mark.asyncio
    async def test_list_resources(self, server: LinearMCP) -> None:
        """Static collections and their listed members are advertised."""
        resources = await server.list_resources()
        uris = [str(resource.uri).rstrip("/") for resource in resources]
        assert "linear://organization" in uris
        assert "linear://cycles/active" in uris
        assert "linear://teams/t1" in uris
        assert "linear://cycles/c6" in uris


class TestReadResource:
    """Tests for the FastMCP read bridge."""

    @pytest.mark.asyncio
    async def test_reads_collection_with_trailing_slash(self, server: LinearMCP) -> None:
        """A trailing slash added by URL normalization is ignored."""
        contents = list(await server.read_resource("linear://teams/"))
        assert contents[0].mime_type == "text/markdown"
        assert "- Engineering (ENG)" in contents[0].content

    @pytest.mark.asyncio
    async def test_not_found_upstream_is_content(self, server: LinearMCP) -> None:
        """A missing record is readable content, not an error."""
        contents = list(await server.read_resource("linear://issues/ENG-404"))
        assert contents[0].content == "Issue 'ENG-404' not found"

    @pytest.mark.asyncio
    async def test_unknown_uri_raises_resource_error(self, server: LinearMCP) -> None:
        """Unmatched URIs surface as ResourceError."""
        with pytest.raises(ResourceError, match="Resource not found"):
            await server.read_resource("linear://nowhere/1")


class TestServe:
    """Tests for running the server with a managed client."""

    @pytest.mark.asyncio
    async def test_closes_client_after_run(self) -> None:
        """The Linear client is closed once the transport returns."""
        server = MagicMock()
        server.run_stdio_async = AsyncMock()
        client = LinearClient("lin_api_test")

        await serve(server, client, "stdio")

        server.run_stdio_async.assert_awaited_once()
        assert client.client.is_closed

    @pytest.mark.asyncio
    async def test_closes_client_when_run_fails(self) -> None:
        """The Linear client is closed even when the transport raises."""
        server = MagicMock()
        server.run_sse_async = AsyncMock(side_effect=RuntimeError("port in use"))
        client = LinearClient("lin_api_test")

        with pytest.raises(RuntimeError, match="port in use"):
            await serve(server, client, "sse")

        assert client.client.is_closed


class TestMain:
    """Tests for the entry point."""

    def test_transport_from_argv(self, settings: Settings) -> None:
        """The first argument selects the transport."""
        fake_server = MagicMock()
        fake_client = MagicMock()
        run = AsyncMock()
        with (
            patch("linear_mcp.server.get_settings", return_value=settings),
            patch("linear_mcp.server.build_client", return_value=fake_client),
            patch("linear_mcp.server.create_server", return_value=fake_server) as create,
            patch("linear_mcp.server.serve", run),
            patch("sys.argv", ["linear-mcp", "sse"]),
        ):
            main()
        create.assert_called_once_with(settings, fake_client)
        run.assert_awaited_once_with(fake_server, fake_client, "sse")

    def test_default_transport(self, settings: Settings) -> None:
        """Without arguments the configured transport is used."""
        fake_server = MagicMock()
        fake_client = MagicMock()
        run = AsyncMock()
        with (
            patch("linear_mcp.server.get_settings", return_value=settings),
            patch("linear_mcp.server.build_client", return_value=fake_client),
            patch("linear_mcp.server.create_server", return_value=fake_server),
            patch("linear_mcp.server.serve", run),
            patch("sys.argv", ["linear-mcp"]),
        ):
            main()
        run.assert_awaited_once_with(fake_server, fake_client, "stdio")

    def test_unknown_transport_exits(self, settings: Settings) -> None:
        """An unknown transport exits with status 2 before a client is built."""
        with (
            patch("linear_mcp.server.get_settings", return_value=settings),
            patch("linear_mcp.server.build_client") as build,
            patch("sys.argv", ["linear-mcp", "carrier-pigeon"]),
            pytest.raises(SystemExit) as exc_info,
        ):
            main()
        assert exc_info.value.code == 2
        build.assert_not_called()
