"""Server lifecycle: plugin registration, route assembly and listening."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from enum import Enum
from pathlib import Path
from typing import Any

import structlog
from structlog.stdlib import BoundLogger

from hathor.api.transport import Transport
from hathor.config.settings import Settings
from hathor.core.logging import configure_logging
from hathor.core.plugins.normalizer import PluginRegistrationInfo
from hathor.core.plugins.registration import PluginRegistrationPipeline
from hathor.core.routes.aggregator import RouteAggregator
from hathor.core.routes.auth import AuthPolicy, append_auth
from hathor.core.routes.discovery import RouteLoader, RouteModuleLoader
from hathor.core.routes.models import Route


class ServerState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    LISTENING = "listening"


class Server:
    """Composes plugins and routes onto a transport, then serves them.

    ``init`` runs one plugin registration pass followed by route
    registration; ``start`` initializes on demand and listens.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        logger: BoundLogger,
        auth_module: Any = None,
        route_loader: RouteLoader | None = None,
        transport_factory: Callable[..., Transport] = Transport,
    ):
        self.settings = settings
        self.logger = logger
        self.policy: AuthPolicy | None = AuthPolicy.from_settings(settings.auth)
        self.web_root: Path = settings.resolved_web_root
        self.routes_path: Path = settings.resolved_routes_path
        self.route_loader: RouteLoader = route_loader or RouteModuleLoader(
            self.routes_path, logger
        )
        self.transport: Transport | None = None
        self.state = ServerState.UNINITIALIZED
        self.plugin_info: PluginRegistrationInfo | None = None

        self._auth_module = auth_module
        self._transport_factory = transport_factory
        self._pipeline: PluginRegistrationPipeline | None = None

    def append_auth(self, routes: Iterable[Route]) -> list[Route]:
        """Apply this server's auth policy to ``routes``."""
        return append_auth(routes, self.policy)

    def register_routes(
        self,
        routes: Any = None,
        *,
        plugin_routes: Iterable[Route] = (),
    ) -> list[Route]:
        """Register static, default, call-time, discovered and plugin routes."""
        transport = self._require_transport()
        aggregator = RouteAggregator(
            transport, self.settings, self.policy, self.route_loader, self.logger
        )
        return aggregator.register(routes, plugin_routes)

    async def register_plugins(
        self, plugins: Sequence[Any] | None = None
    ) -> PluginRegistrationInfo:
        """Run one plugin registration pass and return what it contributed."""
        transport = self._require_transport()
        if self._pipeline is None or self._pipeline.transport is not transport:
            self._pipeline = PluginRegistrationPipeline(
                transport,
                self.settings,
                self.policy,
                self.logger,
                auth_module=self._auth_module,
            )
        return await self._pipeline.run(plugins)

    async def init(self) -> Server:
        """Create the transport, register plugins, then register routes.

        Raises:
            RuntimeError: If called while already initializing
            PluginRegistrationError: If plugins or their hooks fail
            AuthModuleLoadError: If the auth module cannot be loaded
            RouteRegistrationError: If the transport rejects a route
        """
        if self.state is ServerState.INITIALIZING:
            raise RuntimeError("Server initialization already in progress")
        if self.state is not ServerState.UNINITIALIZED:
            return self

        self.state = ServerState.INITIALIZING
        try:
            transport = self._transport_factory(
                files_relative_to=self.web_root, logger=self.logger
            )
            transport.connection(
                self.settings.server.host,
                self.settings.server.port,
                root_path=self.settings.server.root_path,
            )
            self.transport = transport

            info = await self.register_plugins()
            self.register_routes(plugin_routes=info.routes)
        except BaseException:
            self.state = ServerState.UNINITIALIZED
            self.transport = None
            self._pipeline = None
            raise

        self.plugin_info = info
        self.state = ServerState.READY
        return self

    async def start(self) -> Server:
        """Listen on the configured address, initializing first if needed.

        Raises:
            RuntimeError: If called while initializing
            TransportStartError: If the transport cannot listen
        """
        if self.state is ServerState.INITIALIZING:
            raise RuntimeError("Cannot start a server that is still initializing")
        if self.state is ServerState.UNINITIALIZED:
            await self.init()
            return await self.start()
        if self.state is ServerState.LISTENING:
            return self

        transport = self._require_transport()
        info = await transport.start()

        self.logger.info(
            "serving_static_content",
            web_root=str(self.web_root),
            category="lifecycle",
        )
        self.logger.info("server_running", uri=info.uri, category="lifecycle")
        self.state = ServerState.LISTENING
        return self

    async def stop(self) -> None:
        if self.transport is not None and self.state is ServerState.LISTENING:
            await self.transport.stop()
            self.state = ServerState.READY
            self.logger.info("server_stopped", category="lifecycle")

    def _require_transport(self) -> Transport:
        if self.transport is None:
            raise RuntimeError("Server has no transport; call init() first")
        return self.transport


def create_server(settings: Settings | None = None, **kwargs: Any) -> Server:
    """Create a server from settings, loading them from config if omitted.

    Logging is configured from ``settings.logging`` unless structlog was
    already configured by the host application.
    """
    if settings is None:
        settings = Settings.from_config()

    if not structlog.is_configured():
        configure_logging(settings.logging)

    logger = kwargs.pop("logger", None) or structlog.get_logger("hathor.server")
    return Server(settings, logger=logger, **kwargs)
