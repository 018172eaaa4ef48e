"""Core abstractions for Hathor server composition."""

from hathor.core.errors import (
    AuthModuleLoadError,
    HathorError,
    PluginRegistrationError,
    PostRegistrationError,
    RouteModuleLoadError,
    RouteRegistrationError,
    TransportError,
    TransportStartError,
)


__all__ = [
    "HathorError",
    "RouteModuleLoadError",
    "PluginRegistrationError",
    "PostRegistrationError",
    "AuthModuleLoadError",
    "TransportError",
    "RouteRegistrationError",
    "TransportStartError",
]
