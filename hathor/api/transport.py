"""HTTP transport: a FastAPI application served by uvicorn.

The composition layer talks to the transport only through ``connection``,
``route``, ``register``, ``start`` and ``info``. Plugins additionally use
``auth.strategy`` to declare auth schemes, ``handler`` to provide
declarative handler types and ``expose`` to publish capabilities for
post-registration hooks and request handlers.
"""

from __future__ import annotations

import asyncio
import re
import socket
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import uvicorn
from fastapi import Depends, FastAPI
from structlog.stdlib import BoundLogger

from hathor import __version__
from hathor.core.async_utils import maybe_await
from hathor.core.errors import (
    PluginRegistrationError,
    RouteRegistrationError,
    TransportStartError,
)
from hathor.core.plugins.declaration import PluginRecord
from hathor.core.routes.models import Route

from .handlers import HandlerSpec
from .middleware.errors import setup_error_handlers


HandlerFactory = Callable[[Any], Callable[..., Any]]

_WILDCARD_PARAM = re.compile(r"\{(\w+)\*\d*\}")
_ROUTE_OPTIONS = frozenset(
    {
        "name",
        "tags",
        "summary",
        "description",
        "include_in_schema",
        "status_code",
        "response_model",
        "response_class",
    }
)


def to_starlette_path(path: str) -> str:
    """Translate ``{name*}`` wildcard segments into Starlette path params."""
    return _WILDCARD_PARAM.sub(r"{\1:path}", path)


@dataclass(frozen=True)
class ServerInfo:
    """Address the transport is listening on."""

    host: str
    port: int
    protocol: str = "http"

    @property
    def uri(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"{self.protocol}://{host}:{self.port}"


class AuthStrategies:
    """Named auth strategies; each is a FastAPI dependency."""

    def __init__(self) -> None:
        self._strategies: dict[str, Callable[..., Any]] = {}

    def strategy(self, name: str, dependency: Callable[..., Any]) -> None:
        if name in self._strategies:
            raise ValueError(f"Authentication strategy {name!r} already defined")
        self._strategies[name] = dependency

    def get(self, name: str) -> Callable[..., Any] | None:
        return self._strategies.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._strategies

    def names(self) -> list[str]:
        return list(self._strategies)


class Transport:
    """FastAPI + uvicorn implementation of the server transport."""

    def __init__(
        self,
        *,
        files_relative_to: Path,
        logger: BoundLogger,
        title: str = "Hathor",
    ):
        self.app = FastAPI(
            title=title,
            version=__version__,
            docs_url=None,
            redoc_url=None,
        )
        self.app.state.transport = self
        self.files_relative_to = files_relative_to
        self.logger = logger

        self.auth = AuthStrategies()
        self.handlers: dict[str, HandlerFactory] = {}
        self.exposed: dict[str, dict[str, Any]] = {}
        self.registrations: list[PluginRecord] = []
        self.table: list[Route] = []
        self.info: ServerInfo | None = None

        self._connection: dict[str, Any] | None = None
        self._server: uvicorn.Server | None = None
        self._serve_task: asyncio.Task[None] | None = None

        setup_error_handlers(self.app, logger)

    def connection(self, host: str = "0.0.0.0", port: int = 9000, **options: Any) -> None:
        """Set the address to listen on; extra options go to ``uvicorn.Config``."""
        self._connection = {"host": host, "port": port, **options}

    def handler(self, kind: str, factory: HandlerFactory) -> None:
        """Provide endpoints for declarative handlers of ``kind``."""
        self.handlers[kind] = factory

    def expose(self, plugin: str, key: str, value: Any) -> None:
        self.exposed.setdefault(plugin, {})[key] = value

    async def register(self, records: Sequence[PluginRecord]) -> None:
        """Register plugins in order, awaiting each register call.

        Raises:
            PluginRegistrationError: On the first plugin that fails
        """
        for record in records:
            name = record.plugin_name
            register = record.register
            if register is None:
                raise PluginRegistrationError(
                    f"Plugin {name} does not expose a register callable",
                    plugin_name=name,
                )
            try:
                await maybe_await(register(self, dict(record.options)))
            except PluginRegistrationError:
                raise
            except Exception as e:
                raise PluginRegistrationError(
                    f"Plugin {name} failed to register: {e}",
                    plugin_name=name,
                    cause=e,
                ) from e
            self.registrations.append(record)
            self.logger.debug("plugin_registered", plugin=name, category="plugin")

    def route(self, routes: Iterable[Route]) -> None:
        """Add routes to the application.

        Catch-all wildcard routes are kept behind every specific route so
        that routing does not depend on registration order.

        Raises:
            RouteRegistrationError: For a missing handler, an unknown
                handler type or an unknown auth strategy
        """
        for route in routes:
            self._add_route(route)
        self.app.router.routes.sort(
            key=lambda r: ":path}" in getattr(r, "path", "")
        )

    def _add_route(self, route: Route) -> None:
        method = ",".join(route.methods)
        handler = route.resolved_handler

        if isinstance(handler, HandlerSpec):
            factory = self.handlers.get(handler.kind)
            if factory is None:
                raise RouteRegistrationError(
                    f"Unknown handler type {handler.kind!r} for {method} {route.path}",
                    method=method,
                    path=route.path,
                )
            endpoint = factory(handler)
        elif callable(handler):
            endpoint = handler
        else:
            raise RouteRegistrationError(
                f"Route {method} {route.path} has no callable handler",
                method=method,
                path=route.path,
            )

        dependencies = []
        strategy = route.auth_strategy
        if strategy:
            dependency = self.auth.get(strategy)
            if dependency is None:
                raise RouteRegistrationError(
                    f"Unknown authentication strategy {strategy!r} for {method} {route.path}",
                    method=method,
                    path=route.path,
                )
            dependencies.append(Depends(dependency))

        options = {
            key: value
            for key, value in (route.config or {}).items()
            if key in _ROUTE_OPTIONS
        }
        self.app.add_api_route(
            to_starlette_path(route.path),
            endpoint,
            methods=list(route.methods),
            dependencies=dependencies,
            **options,
        )
        self.table.append(route)

    async def start(self) -> ServerInfo:
        """Bind the configured address and serve until ``stop``.

        Raises:
            TransportStartError: If no connection is configured, the address
                cannot be bound or the server exits during startup
        """
        if self._connection is None:
            raise TransportStartError("No connection configured")
        if self._server is not None and self.info is not None:
            return self.info

        options = dict(self._connection)
        host = options.pop("host")
        port = options.pop("port")
        sock = self._bind(host, port)
        bound_port = sock.getsockname()[1]

        config = uvicorn.Config(
            self.app,
            host=host,
            port=bound_port,
            log_config=None,
            **options,
        )
        server = uvicorn.Server(config)
        serve_task = asyncio.create_task(server.serve(sockets=[sock]))

        while not server.started:
            if serve_task.done():
                sock.close()
                cause = None if serve_task.cancelled() else serve_task.exception()
                raise TransportStartError(
                    f"HTTP server exited during startup on {host}:{port}",
                    host=host,
                    port=port,
                    cause=cause if isinstance(cause, Exception) else None,
                )
            await asyncio.sleep(0.01)

        self._server = server
        self._serve_task = serve_task
        self.info = ServerInfo(host=host, port=bound_port)
        return self.info

    async def stop(self) -> None:
        """Stop serving and wait for uvicorn to shut down."""
        if self._server is None or self._serve_task is None:
            return
        self._server.should_exit = True
        await self._serve_task
        self._server = None
        self._serve_task = None
        self.info = None

    def _bind(self, host: str, port: int) -> socket.socket:
        family = socket.AF_INET6 if ":" in host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((host, port))
        except OSError as e:
            sock.close()
            raise TransportStartError(
                f"Cannot bind {host}:{port}: {e}", host=host, port=port, cause=e
            ) from e
        sock.set_inheritable(True)
        return sock
