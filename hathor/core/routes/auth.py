"""Authentication policy and its application to route descriptors."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace

from hathor.config.auth import AuthSettings

from .models import Route


@dataclass
class AuthPolicy:
    """Auth scheme applied uniformly to routes that opt in.

    ``type`` names the transport auth strategy. It is fixed at construction
    from settings and may only be filled in later from an auth module's
    declared default, never overwritten.
    """

    type: str | None = None
    static: bool = False
    module: str | None = None

    @classmethod
    def from_settings(cls, settings: AuthSettings | None) -> AuthPolicy | None:
        if settings is None:
            return None
        return cls(type=settings.type, static=settings.static, module=settings.module)

    def adopt_default(self, default_type: str | None) -> None:
        if default_type and not self.type:
            self.type = default_type


def append_auth(routes: Iterable[Route], policy: AuthPolicy | None) -> list[Route]:
    """Return new routes carrying the policy's auth requirement.

    The ``auth`` marker is removed from every route. Routes that requested
    auth get ``config["auth"]`` set to the policy type; a route without a
    config has its handler moved into a new config.
    """
    if policy is None:
        return [replace(route, auth=None) for route in routes]
    return [_apply_policy(route, policy) for route in routes]


def _apply_policy(route: Route, policy: AuthPolicy) -> Route:
    if not route.auth:
        return replace(route, auth=None)
    if route.config is not None:
        return replace(
            route,
            auth=None,
            config={**route.config, "auth": policy.type},
        )
    return replace(
        route,
        auth=None,
        handler=None,
        config={"auth": policy.type, "handler": route.handler},
    )
