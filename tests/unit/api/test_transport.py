"""Tests for the FastAPI transport adapter."""

from typing import Any
from unittest.mock import MagicMock

import pytest
from fastapi import Header, HTTPException
from fastapi.testclient import TestClient

from hathor.api.transport import ServerInfo, Transport, to_starlette_path
from hathor.core.errors import (
    PluginRegistrationError,
    RouteRegistrationError,
    TransportStartError,
)
from hathor.core.plugins.declaration import PluginRecord
from hathor.core.routes.models import Route


def require_token(x_token: str | None = Header(default=None)) -> str:
    if x_token != "secret":
        raise HTTPException(status_code=401, detail="Unauthorized")
    return x_token


def hello() -> dict[str, str]:
    return {"hello": "world"}


@pytest.mark.unit
class TestPaths:
    def test_wildcard_segments_become_path_params(self) -> None:
        assert to_starlette_path("/{param*}") == "/{param:path}"
        assert to_starlette_path("/files/{rest*2}") == "/files/{rest:path}"
        assert to_starlette_path("/users/{id}") == "/users/{id}"

    def test_server_info_uri(self) -> None:
        assert ServerInfo("127.0.0.1", 8000).uri == "http://127.0.0.1:8000"
        assert ServerInfo("::1", 8000).uri == "http://[::1]:8000"


@pytest.mark.unit
class TestRouting:
    def test_callable_handler(self, transport: Transport) -> None:
        transport.route([Route("GET", "/hello", hello)])

        response = TestClient(transport.app).get("/hello")

        assert response.json() == {"hello": "world"}
        assert transport.table == [Route("GET", "/hello", hello)]

    def test_handler_nested_in_config_with_auth(self, transport: Transport) -> None:
        transport.auth.strategy("token", require_token)
        transport.route(
            [Route("GET", "/secret", config={"auth": "token", "handler": hello})]
        )
        client = TestClient(transport.app)

        denied = client.get("/secret")
        allowed = client.get("/secret", headers={"X-Token": "secret"})

        assert denied.status_code == 401
        assert denied.json()["error"]["message"] == "Unauthorized"
        assert allowed.json() == {"hello": "world"}

    def test_route_options_pass_through(self, transport: Transport) -> None:
        transport.route(
            [Route("POST", "/made", hello, config={"status_code": 201, "ignored": 1})]
        )

        response = TestClient(transport.app).post("/made")

        assert response.status_code == 201

    def test_unknown_strategy_is_rejected(self, transport: Transport) -> None:
        with pytest.raises(RouteRegistrationError, match="strategy"):
            transport.route([Route("GET", "/x", config={"auth": "nope", "handler": hello})])

    def test_unknown_handler_kind_is_rejected(self, transport: Transport) -> None:
        route = Route.from_value(
            {"method": "GET", "path": "/x", "handler": {"directory": {}}}
        )

        with pytest.raises(RouteRegistrationError, match="directory"):
            transport.route([route])

    def test_missing_handler_is_rejected(self, transport: Transport) -> None:
        with pytest.raises(RouteRegistrationError) as exc_info:
            transport.route([Route("GET", "/x")])

        assert exc_info.value.path == "/x"

    def test_duplicate_strategy_is_rejected(self, transport: Transport) -> None:
        transport.auth.strategy("token", require_token)

        with pytest.raises(ValueError):
            transport.auth.strategy("token", require_token)

    def test_unhandled_exception_renders_json(
        self, transport: Transport, mock_logger: MagicMock
    ) -> None:
        def explode() -> None:
            raise RuntimeError("kaboom")

        transport.route([Route("GET", "/boom", explode)])

        response = TestClient(transport.app, raise_server_exceptions=False).get("/boom")

        assert response.status_code == 500
        assert response.json()["error"]["type"] == "internal_server_error"
        assert mock_logger.error.call_args.args[0] == "unhandled_exception"


@pytest.mark.unit
class TestPluginRegistration:
    @pytest.mark.asyncio
    async def test_registers_in_order_with_options(self, transport: Transport) -> None:
        seen: list[tuple[str, dict[str, Any]]] = []

        def first(t: Transport, options: dict[str, Any]) -> None:
            seen.append(("first", options))

        async def second(t: Transport, options: dict[str, Any]) -> None:
            seen.append(("second", options))

        await transport.register(
            [PluginRecord(plugin=first, options={"a": 1}), PluginRecord(plugin=second)]
        )

        assert seen == [("first", {"a": 1}), ("second", {})]
        assert [r.plugin_name for r in transport.registrations] == ["first", "second"]

    @pytest.mark.asyncio
    async def test_failure_is_wrapped(self, transport: Transport) -> None:
        def broken(t: Transport, options: dict[str, Any]) -> None:
            raise KeyError("missing")

        with pytest.raises(PluginRegistrationError) as exc_info:
            await transport.register([PluginRecord(plugin=broken)])

        assert exc_info.value.plugin_name == "broken"

    @pytest.mark.asyncio
    async def test_record_without_register_is_rejected(
        self, transport: Transport
    ) -> None:
        with pytest.raises(PluginRegistrationError, match="register"):
            await transport.register([PluginRecord(plugin=42, name="answer")])

    @pytest.mark.asyncio
    async def test_start_requires_connection(self, transport: Transport) -> None:
        with pytest.raises(TransportStartError):
            await transport.start()
