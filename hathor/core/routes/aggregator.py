"""Assembly of the final route table."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from structlog.stdlib import BoundLogger

from hathor.api.handlers import StaticDirectory
from hathor.config.settings import Settings
from hathor.core.errors import RouteRegistrationError

from .auth import AuthPolicy, append_auth
from .discovery import RouteLoader
from .models import Route, coerce_routes


if TYPE_CHECKING:
    from hathor.api.transport import Transport


STATIC_ROUTE_PATH = "/{param*}"


class RouteAggregator:
    """Merge every route source in a fixed order and hand it to the transport.

    Order: static route, default routes from settings, call-time routes,
    discovered route modules, plugin-contributed routes.
    """

    def __init__(
        self,
        transport: Transport,
        settings: Settings,
        policy: AuthPolicy | None,
        loader: RouteLoader,
        logger: BoundLogger,
    ):
        self.transport = transport
        self.settings = settings
        self.policy = policy
        self.loader = loader
        self.logger = logger

    def static_routes(self) -> list[Route]:
        if not self.settings.static:
            return []
        return [
            Route(
                method="GET",
                path=STATIC_ROUTE_PATH,
                auth=bool(self.policy and self.policy.static),
                handler=StaticDirectory(path=".", redirect_to_slash=True, index=True),
            )
        ]

    def collect(
        self,
        extra_routes: Any = None,
        plugin_routes: Iterable[Route] = (),
    ) -> list[Route]:
        """Return the merged, auth-annotated route list without registering it."""
        merged = [
            *self.static_routes(),
            *coerce_routes(self.settings.routes),
            *coerce_routes(extra_routes),
            *self.loader.load(),
            *coerce_routes(list(plugin_routes)),
        ]
        self._require_auth_type(merged)
        return append_auth(merged, self.policy)

    def _require_auth_type(self, routes: list[Route]) -> None:
        """Refuse routes that ask for auth when no auth type was resolved.

        Raises:
            RouteRegistrationError: For the first such route
        """
        if self.policy is None or self.policy.type:
            return
        for route in routes:
            if route.auth:
                method = ",".join(route.methods)
                raise RouteRegistrationError(
                    f"Route {method} {route.path} requires authentication but no "
                    "auth type is configured or declared by the auth module",
                    method=method,
                    path=route.path,
                )

    def register(
        self,
        extra_routes: Any = None,
        plugin_routes: Iterable[Route] = (),
    ) -> list[Route]:
        """Register the merged route list with one bulk transport call."""
        all_routes = self.collect(extra_routes, plugin_routes)

        for route in all_routes:
            self.logger.info(
                "route_registered",
                method=",".join(route.methods),
                path=route.path,
                authenticated=self.policy is not None and bool(route.auth_strategy),
                category="routes",
            )

        self.transport.route(all_routes)
        return all_routes
