"""Tests for applying the auth policy to route descriptors."""

import pytest

from hathor.config.auth import AuthSettings
from hathor.core.routes.auth import AuthPolicy, append_auth
from hathor.core.routes.models import Route


def handler() -> dict[str, str]:
    return {"ok": "yes"}


@pytest.mark.unit
class TestAppendAuthDisabled:
    """No policy: every route loses its marker and nothing else changes."""

    def test_strips_auth_marker_from_every_route(self) -> None:
        routes = [
            Route("GET", "/a", handler, auth=True),
            Route("POST", "/b", handler, config={"tags": ["b"]}, auth=False),
            Route("GET", "/c", handler),
        ]

        result = append_auth(routes, None)

        assert [r.auth for r in result] == [None, None, None]
        assert [(r.method, r.path, r.handler, r.config) for r in result] == [
            ("GET", "/a", handler, None),
            ("POST", "/b", handler, {"tags": ["b"]}),
            ("GET", "/c", handler, None),
        ]

    def test_does_not_mutate_inputs(self) -> None:
        route = Route("GET", "/a", handler, auth=True)

        append_auth([route], None)

        assert route.auth is True


@pytest.mark.unit
class TestAppendAuthEnabled:
    """A policy attaches its type to routes that opted in."""

    def test_route_without_config_moves_handler_into_config(self) -> None:
        policy = AuthPolicy(type="session")

        [result] = append_auth([Route("GET", "/x", handler, auth=True)], policy)

        assert result.config == {"auth": "session", "handler": handler}
        assert result.handler is None
        assert result.auth is None
        assert result.resolved_handler is handler
        assert result.auth_strategy == "session"

    def test_route_with_config_keeps_handler_and_other_keys(self) -> None:
        policy = AuthPolicy(type="session")
        route = Route("GET", "/x", handler, config={"tags": ["x"]}, auth=True)

        [result] = append_auth([route], policy)

        assert result.handler is handler
        assert result.config == {"tags": ["x"], "auth": "session"}
        assert route.config == {"tags": ["x"]}

    def test_route_without_marker_is_left_unauthenticated(self) -> None:
        policy = AuthPolicy(type="session")

        [result] = append_auth([Route("GET", "/open", handler)], policy)

        assert result.config is None
        assert result.handler is handler
        assert result.auth_strategy is None

    def test_order_is_preserved(self) -> None:
        policy = AuthPolicy(type="session")
        routes = [Route("GET", f"/{i}", handler, auth=i % 2 == 0) for i in range(5)]

        result = append_auth(routes, policy)

        assert [r.path for r in result] == ["/0", "/1", "/2", "/3", "/4"]


@pytest.mark.unit
class TestAuthPolicy:
    def test_from_settings_none_disables_auth(self) -> None:
        assert AuthPolicy.from_settings(None) is None

    def test_from_settings_copies_fields(self) -> None:
        policy = AuthPolicy.from_settings(
            AuthSettings(type="jwt", module="myapp.auth", static=True)
        )

        assert policy == AuthPolicy(type="jwt", static=True, module="myapp.auth")

    def test_adopt_default_only_fills_missing_type(self) -> None:
        configured = AuthPolicy(type="jwt")
        missing = AuthPolicy()

        configured.adopt_default("session")
        missing.adopt_default("session")

        assert configured.type == "jwt"
        assert missing.type == "session"
