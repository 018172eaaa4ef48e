"""Route descriptors.

Routes come from configuration, route modules, call-time arguments and
plugins. They are immutable once produced; every transformation returns a
new ``Route``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, fields
from typing import Any

from hathor.api.handlers import handler_spec_from_mapping
from hathor.utils.imports import import_string


ANY_METHOD = "*"
ALL_METHODS = ("GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS")


@dataclass(frozen=True)
class Route:
    """Declarative mapping of method and path to a handler.

    ``auth`` is the route's opt-in marker. Once the auth policy has been
    applied the marker is cleared and the resolved strategy lives in
    ``config["auth"]``, with the handler moved into ``config`` when the
    route had no config of its own.
    """

    method: str | tuple[str, ...]
    path: str
    handler: Any = None
    config: Mapping[str, Any] | None = None
    auth: bool | None = None

    @property
    def methods(self) -> tuple[str, ...]:
        raw = (self.method,) if isinstance(self.method, str) else self.method
        methods: list[str] = []
        for method in raw:
            if method == ANY_METHOD:
                return ALL_METHODS
            methods.append(method.upper())
        return tuple(methods)

    @property
    def resolved_handler(self) -> Any:
        """The handler to invoke, whether top-level or nested in config."""
        if self.handler is not None:
            return self.handler
        return (self.config or {}).get("handler")

    @property
    def auth_strategy(self) -> str | None:
        """Strategy name from the nested config, if the policy assigned one."""
        return (self.config or {}).get("auth")

    @classmethod
    def from_value(cls, value: Route | Mapping[str, Any]) -> Route:
        """Coerce a mapping (from config or a route module) into a Route.

        String handlers are import paths; single-key mappings such as
        ``{"directory": {...}}`` become handler specs.
        """
        if isinstance(value, Route):
            return value
        if not isinstance(value, Mapping):
            raise TypeError(f"Cannot build a route from {type(value).__name__}")

        data = dict(value)
        if "options" in data and "config" not in data:
            data["config"] = data.pop("options")

        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown route fields: {sorted(unknown)}")

        if isinstance(data.get("method"), list):
            data["method"] = tuple(data["method"])
        data["handler"] = _resolve_handler(data.get("handler"))
        config = data.get("config")
        if config is not None:
            config = dict(config)
            if "handler" in config:
                config["handler"] = _resolve_handler(config["handler"])
            data["config"] = config

        return cls(**data)

    def to_dict(self) -> dict[str, Any]:
        """Plain mapping of the fields that are set."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }


def _resolve_handler(handler: Any) -> Any:
    if isinstance(handler, str):
        return import_string(handler)
    if isinstance(handler, Mapping):
        spec = handler_spec_from_mapping(handler)
        if spec is not None:
            return spec
    return handler


def coerce_routes(value: Any) -> list[Route]:
    """Flatten a route, a route mapping, or nested sequences into routes.

    Falsy entries are dropped.
    """
    if not value:
        return []
    if isinstance(value, Route | Mapping):
        return [Route.from_value(value)]
    if isinstance(value, Iterable) and not isinstance(value, str | bytes):
        routes: list[Route] = []
        for item in value:
            routes.extend(coerce_routes(item))
        return routes
    raise TypeError(f"Cannot build routes from {type(value).__name__}")
