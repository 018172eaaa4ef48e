"""Flattening of plugin descriptors into a registration pass."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from hathor.config.settings import Settings
from hathor.core.async_utils import call_maybe_async
from hathor.core.routes.models import Route, coerce_routes

from .declaration import (
    Factory,
    Plugin,
    PluginGroup,
    PluginRecord,
    PostRegisterHook,
    RoutesProvider,
    RoutesSource,
    classify,
)


if TYPE_CHECKING:
    from hathor.api.transport import Transport


@dataclass
class PluginRegistrationInfo:
    """Result of one registration pass, consumed immediately by the caller."""

    plugins: list[PluginRecord] = field(default_factory=list)
    routes: list[Route] = field(default_factory=list)
    post_registration: list[PostRegisterHook] = field(default_factory=list)


class PluginNormalizer:
    """Turn heterogeneous plugin declarations into records, routes and hooks.

    Order is preserved within and across descriptors. A descriptor that
    exposes both routes and plugin units contributes both.
    """

    def __init__(self, transport: Transport, settings: Settings):
        self.transport = transport
        self.settings = settings

    async def normalize(self, descriptors: Iterable[Any]) -> PluginRegistrationInfo:
        info = PluginRegistrationInfo()
        for raw in descriptors:
            descriptor = classify(raw)

            if isinstance(descriptor, Factory):
                produced = await call_maybe_async(
                    descriptor.create, self.transport, self.settings
                )
                descriptor = classify(produced)
                if isinstance(descriptor, Factory):
                    # A factory producing a callable produced a register function
                    descriptor = PluginRecord(plugin=descriptor.create)

            await self._add(info, descriptor)
        return info

    async def _add(self, info: PluginRegistrationInfo, descriptor: Any) -> None:
        if isinstance(descriptor, RoutesProvider | Plugin | PluginGroup):
            info.routes.extend(await self.resolve_routes(descriptor.routes))

        if isinstance(descriptor, Plugin):
            self._add_unit(info, descriptor)
        elif isinstance(descriptor, PluginGroup):
            for member in descriptor.plugins:
                info.routes.extend(await self.resolve_routes(member.routes))
                self._add_unit(info, member)
        elif isinstance(descriptor, PluginRecord):
            info.plugins.append(descriptor)

    def _add_unit(self, info: PluginRegistrationInfo, unit: Plugin) -> None:
        info.plugins.append(unit.to_record())
        if unit.post_register is not None:
            info.post_registration.append(unit.post_register)

    async def resolve_routes(self, source: RoutesSource) -> list[Route]:
        """Resolve literal or computed routes into a flat list."""
        if source is None:
            return []
        if callable(source):
            source = await call_maybe_async(source, self.transport, self.settings)
        return coerce_routes(source)
