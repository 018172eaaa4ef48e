"""Hathor: compose plugins, routes and static content into an HTTP server."""

__version__ = "0.1.0"

from hathor.config.settings import Settings  # noqa: E402
from hathor.server import Server, ServerState, create_server  # noqa: E402


__all__ = ["__version__", "Server", "ServerState", "Settings", "create_server"]
