"""Plugin descriptor declarations.

Plugins reach the server in several shapes: factories, route providers,
single plugins, groups of plugins and ready-made records. Each shape is an
explicit variant here and ``classify`` is the only place that inspects raw
values (mappings, modules, objects, import paths) to pick one.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeAlias

from hathor.core.async_utils import call_maybe_async
from hathor.utils.imports import import_string


PostRegisterHook: TypeAlias = Callable[[Any, Any], Awaitable[None] | None]
"""Called with ``(transport, settings)`` after bulk registration."""

RoutesSource: TypeAlias = Any
"""Routes (single, list, mappings) or a callable ``(transport, settings)``."""

_DESCRIPTOR_ATTRIBUTES = ("plugin", "plugins", "routes", "register")
_IMPORTABLE_FIELDS = frozenset({"plugin", "register", "post_register", "routes"})


class DescriptorKind(str, Enum):
    """Tags of the plugin descriptor union."""

    FACTORY = "factory"
    ROUTES_PROVIDER = "routes_provider"
    PLUGIN = "plugin"
    PLUGIN_GROUP = "plugin_group"
    RECORD = "record"


@dataclass(frozen=True)
class PluginRecord:
    """Transport-shaped plugin ready for bulk registration.

    ``plugin`` is the registrable unit: an object or module exposing
    ``register(transport, options)``, or that callable itself.
    """

    kind = DescriptorKind.RECORD

    plugin: Any
    options: Mapping[str, Any] = field(default_factory=dict)
    name: str | None = None

    @property
    def plugin_name(self) -> str:
        if self.name:
            return self.name
        declared = getattr(self.plugin, "name", None)
        if isinstance(declared, str) and declared:
            return declared
        return getattr(self.plugin, "__name__", type(self.plugin).__name__)

    @property
    def register(self) -> Callable[..., Any] | None:
        register = getattr(self.plugin, "register", None)
        if callable(register):
            return register  # type: ignore[no-any-return]
        if callable(self.plugin) and not isinstance(self.plugin, type):
            return self.plugin  # type: ignore[no-any-return]
        return None


@dataclass(frozen=True)
class Plugin:
    """A registrable unit with options, an optional hook and optional routes."""

    kind = DescriptorKind.PLUGIN

    plugin: Any
    options: Mapping[str, Any] = field(default_factory=dict)
    post_register: PostRegisterHook | None = None
    routes: RoutesSource = None
    name: str | None = None

    def to_record(self) -> PluginRecord:
        return PluginRecord(plugin=self.plugin, options=dict(self.options), name=self.name)


@dataclass(frozen=True)
class PluginGroup:
    """Several plugins declared together, registered in order."""

    kind = DescriptorKind.PLUGIN_GROUP

    plugins: Sequence[Plugin]
    routes: RoutesSource = None


@dataclass(frozen=True)
class RoutesProvider:
    """Contributes routes without registering a plugin."""

    kind = DescriptorKind.ROUTES_PROVIDER

    routes: RoutesSource


@dataclass(frozen=True)
class Factory:
    """Callable invoked with ``(transport, settings)`` to produce a descriptor."""

    kind = DescriptorKind.FACTORY

    create: Callable[[Any, Any], Any]


PluginDescriptor: TypeAlias = Factory | RoutesProvider | Plugin | PluginGroup | PluginRecord

_VARIANTS = (Factory, RoutesProvider, Plugin, PluginGroup, PluginRecord)


def classify(raw: Any) -> PluginDescriptor:
    """Resolve a raw plugin declaration into exactly one descriptor variant.

    Import-path strings are imported first. Mappings and objects are inspected
    for ``plugin``, ``plugins``, ``register`` and ``routes``; plain callables
    are factories. Anything else falls back to a ``PluginRecord``.
    """
    if isinstance(raw, _VARIANTS):
        return raw
    if isinstance(raw, str):
        return classify(import_string(raw))
    if isinstance(raw, Mapping):
        return _classify_fields(dict(raw), raw)

    present = {
        name: getattr(raw, name)
        for name in (*_DESCRIPTOR_ATTRIBUTES, "post_register", "options", "name")
        if hasattr(raw, name)
    }
    if callable(raw) and not any(name in present for name in _DESCRIPTOR_ATTRIBUTES):
        return Factory(create=raw)
    if "register" in present and "plugin" not in present and "plugins" not in present:
        # A plugin object or module is its own registrable unit
        options = present.get("options")
        name = present.get("name")
        unit = Plugin(
            plugin=raw,
            options=options if isinstance(options, Mapping) else {},
            post_register=present.get("post_register"),
            routes=present.get("routes"),
            name=name if isinstance(name, str) else None,
        )
        if unit.routes is None and unit.post_register is None:
            return unit.to_record()
        return unit
    return _classify_fields(present, raw)


def _resolve_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Import string values of fields that hold code.

    Config files can only name plugins, register callables, hooks and route
    sources by import path.
    """
    return {
        key: import_string(value)
        if key in _IMPORTABLE_FIELDS and isinstance(value, str)
        else value
        for key, value in fields.items()
    }


def _classify_fields(fields: dict[str, Any], raw: Any) -> PluginDescriptor:
    fields = _resolve_fields(fields)
    routes = fields.get("routes")

    if fields.get("plugin") is not None:
        return _wrap_unit(fields)

    if fields.get("plugins") is not None:
        return PluginGroup(
            plugins=[as_plugin(member) for member in fields["plugins"]],
            routes=routes,
        )

    if callable(fields.get("register")):
        unit = Plugin(
            plugin=fields["register"],
            options=fields.get("options") or {},
            post_register=fields.get("post_register"),
            routes=routes,
            name=fields.get("name"),
        )
        if routes is None and unit.post_register is None:
            return unit.to_record()
        return unit

    if routes is not None:
        return RoutesProvider(routes=routes)

    return PluginRecord(plugin=raw)


def _wrap_unit(fields: Mapping[str, Any]) -> Plugin:
    """Build a Plugin from ``{"plugin": unit, ...}``; outer fields win."""
    unit = as_plugin(fields["plugin"])
    routes = fields.get("routes")
    return Plugin(
        plugin=unit.plugin,
        options=fields.get("options") or unit.options,
        post_register=chain_hooks(fields.get("post_register"), unit.post_register),
        routes=routes if routes is not None else unit.routes,
        name=fields.get("name") or unit.name,
    )


def as_plugin(value: Any) -> Plugin:
    """Coerce one member of a plugin group (or a nested unit) into a Plugin.

    Modules and objects keep their own ``options``, ``name``, ``routes`` and
    ``post_register`` attributes.
    """
    if isinstance(value, str):
        value = import_string(value)
    if isinstance(value, Plugin):
        return value
    if isinstance(value, PluginRecord):
        return Plugin(plugin=value.plugin, options=value.options, name=value.name)
    if isinstance(value, Mapping) and "plugin" in value:
        return _wrap_unit(_resolve_fields(value))
    if isinstance(value, Mapping) and "register" in value:
        fields = _resolve_fields(value)
        return Plugin(
            plugin=fields["register"],
            options=fields.get("options") or {},
            post_register=fields.get("post_register"),
            routes=fields.get("routes"),
            name=fields.get("name"),
        )

    options = getattr(value, "options", None)
    name = getattr(value, "name", None)
    return Plugin(
        plugin=value,
        options=options if isinstance(options, Mapping) else {},
        post_register=getattr(value, "post_register", None),
        routes=getattr(value, "routes", None),
        name=name if isinstance(name, str) else None,
    )


def chain_hooks(
    first: PostRegisterHook | None, second: PostRegisterHook | None
) -> PostRegisterHook | None:
    """Combine two hooks into one that runs them in order."""
    if first is None:
        return second
    if second is None:
        return first

    async def chained(transport: Any, settings: Any) -> None:
        for hook in (first, second):
            await call_maybe_async(hook, transport, settings)

    return chained
