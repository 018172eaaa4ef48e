"""Declarative route handlers resolved by transport handler types.

A route may name one of these instead of a callable. The transport looks up
the factory registered for the handler's ``kind`` (the ``files`` plugin
provides ``directory``, the ``views`` plugin provides ``view``) and builds
the endpoint from it.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, ClassVar


@dataclass(frozen=True)
class HandlerSpec:
    kind: ClassVar[str] = ""


@dataclass(frozen=True)
class StaticDirectory(HandlerSpec):
    """Serve files below ``path`` (relative to the transport's web root)."""

    kind: ClassVar[str] = "directory"

    path: str = "."
    redirect_to_slash: bool = True
    index: bool | str = True

    @property
    def index_name(self) -> str | None:
        if self.index is True:
            return "index.html"
        if not self.index:
            return None
        return str(self.index)


@dataclass(frozen=True)
class TemplateView(HandlerSpec):
    """Render ``template`` with a static context."""

    kind: ClassVar[str] = "view"

    template: str
    context: Mapping[str, Any] = field(default_factory=dict)


HANDLER_SPECS: dict[str, type[HandlerSpec]] = {
    StaticDirectory.kind: StaticDirectory,
    TemplateView.kind: TemplateView,
}


def handler_spec_from_mapping(value: Mapping[str, Any]) -> HandlerSpec | None:
    """Build a handler spec from ``{"directory": {...}}`` or ``{"view": ...}``.

    Returns None when the mapping names no known handler kind.
    """
    if len(value) != 1:
        return None
    kind, options = next(iter(value.items()))
    spec_class = HANDLER_SPECS.get(kind)
    if spec_class is None:
        return None
    if spec_class is TemplateView and isinstance(options, str):
        return TemplateView(template=options)
    return spec_class(**dict(options or {}))
