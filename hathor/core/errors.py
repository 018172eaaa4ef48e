"""Core error types for server composition."""

from pathlib import Path
from typing import Any


class HathorError(Exception):
    """Base exception for all server composition errors."""

    def __init__(self, message: str, cause: Exception | None = None):
        """Initialize with a message and optional cause.

        Args:
            message: The error message
            cause: The underlying exception that caused this error
        """
        super().__init__(message)
        self.cause = cause
        if cause:
            self.__cause__ = cause


class RouteModuleLoadError(HathorError):
    """Error raised when a route module cannot be loaded.

    Always contained by route discovery: the failure is logged and the
    module's routes are dropped.
    """

    def __init__(
        self, message: str, path: Path | None = None, cause: Exception | None = None
    ):
        super().__init__(message, cause)
        self.path = path


class PluginRegistrationError(HathorError):
    """Error raised when bulk plugin registration fails."""

    def __init__(
        self,
        message: str,
        plugin_name: str | None = None,
        cause: Exception | None = None,
    ):
        """Initialize with a message, plugin name, and cause.

        Args:
            message: The error message
            plugin_name: Name of the plugin that failed, when known
            cause: The underlying exception
        """
        super().__init__(message, cause)
        self.plugin_name = plugin_name


class PostRegistrationError(PluginRegistrationError):
    """Error raised when a post-registration hook fails or times out."""

    def __init__(
        self, message: str, hook: Any = None, cause: Exception | None = None
    ):
        super().__init__(message, cause=cause)
        self.hook = hook


class AuthModuleLoadError(HathorError):
    """Error raised when the configured auth module cannot be resolved."""

    def __init__(
        self, message: str, module: str | None = None, cause: Exception | None = None
    ):
        super().__init__(message, cause)
        self.module = module


class TransportError(HathorError):
    """Base error for failures reported by the HTTP transport."""


class RouteRegistrationError(TransportError):
    """Error raised when the transport rejects a route."""

    def __init__(
        self,
        message: str,
        method: str | None = None,
        path: str | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message, cause)
        self.method = method
        self.path = path


class TransportStartError(TransportError):
    """Error raised when the transport cannot begin listening."""

    def __init__(
        self,
        message: str,
        host: str | None = None,
        port: int | None = None,
        cause: Exception | None = None,
    ):
        """Initialize with a message, bind address, and cause.

        Args:
            message: The error message
            host: Host the transport tried to bind
            port: Port the transport tried to bind
            cause: The underlying exception
        """
        super().__init__(message, cause)
        self.host = host
        self.port = port
