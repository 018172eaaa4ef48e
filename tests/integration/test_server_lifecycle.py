"""End-to-end lifecycle tests that bind real sockets."""

import socket
from collections.abc import Callable
from unittest.mock import MagicMock

import httpx
import pytest

from hathor.config.settings import Settings
from hathor.core.errors import TransportStartError
from hathor.server import Server, ServerState


def hello() -> dict[str, str]:
    return {"hello": "world"}


@pytest.mark.integration
class TestServerLifecycle:
    @pytest.mark.asyncio
    async def test_start_before_init_logs_once_and_serves(
        self,
        make_settings: Callable[..., Settings],
        mock_logger: MagicMock,
        logged_events: Callable[..., list[str]],
    ) -> None:
        settings = make_settings(routes=[{"method": "GET", "path": "/hello", "handler": hello}])
        server = Server(settings, logger=mock_logger)

        try:
            assert await server.start() is server
            assert server.state is ServerState.LISTENING
            assert server.transport is not None
            assert server.transport.info is not None

            events = logged_events(mock_logger)
            assert events.count("serving_static_content") == 1
            assert events.count("server_running") == 1
            assert events.index("route_registered") < events.index("server_running")

            uri = server.transport.info.uri
            assert server.transport.info.port != 0
            async with httpx.AsyncClient(base_url=uri) as client:
                hello_response = await client.get("/hello")
                index_response = await client.get("/")

            assert hello_response.json() == {"hello": "world"}
            assert index_response.text == "<h1>home</h1>"
        finally:
            await server.stop()

        assert server.state is ServerState.READY

    @pytest.mark.asyncio
    async def test_start_is_idempotent_once_listening(
        self, settings: Settings, mock_logger: MagicMock
    ) -> None:
        server = Server(settings, logger=mock_logger)

        try:
            await server.start()
            await server.start()
        finally:
            await server.stop()

        events = [c.args[0] for c in mock_logger.info.call_args_list]
        assert events.count("server_running") == 1

    @pytest.mark.asyncio
    async def test_port_in_use_raises_transport_start_error(
        self, make_settings: Callable[..., Settings], mock_logger: MagicMock
    ) -> None:
        blocker = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        blocker.bind(("127.0.0.1", 0))
        blocker.listen()
        port = blocker.getsockname()[1]

        try:
            server = Server(
                make_settings(server={"host": "127.0.0.1", "port": port}),
                logger=mock_logger,
            )
            with pytest.raises(TransportStartError) as exc_info:
                await server.start()
        finally:
            blocker.close()

        assert exc_info.value.port == port
        assert server.state is ServerState.READY
        assert "server_running" not in [c.args[0] for c in mock_logger.info.call_args_list]
