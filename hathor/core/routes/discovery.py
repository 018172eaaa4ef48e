"""Filesystem discovery of route modules.

A routes directory either holds a single ``index.py`` exporting every route,
or one sub-directory per feature, each with its own ``index.py``. A route
module exports a module-level ``routes`` value: a route, a route mapping, or
a (possibly nested) list of them.
"""

import importlib.util
import sys
from pathlib import Path
from typing import Any, Protocol

from structlog.stdlib import BoundLogger

from hathor.core.errors import RouteModuleLoadError

from .models import Route, coerce_routes


INDEX_MODULE = "index.py"


class RouteLoader(Protocol):
    """Anything that can produce the discovered routes."""

    def load(self) -> list[Route]: ...


class RouteModuleLoader:
    """Load routes from ``<routes_path>/index.py`` or ``<routes_path>/*/index.py``."""

    def __init__(self, routes_path: Path, logger: BoundLogger):
        self.routes_path = routes_path
        self.logger = logger

    def load(self) -> list[Route]:
        """Load discovered routes.

        The top-level index wins when it loads. Otherwise every immediate
        sub-directory's index is loaded independently, in sorted order; a
        module that fails is logged and contributes nothing.
        """
        index = self.routes_path / INDEX_MODULE
        if index.is_file():
            try:
                return self.load_module(index)
            except RouteModuleLoadError as e:
                self._log_failure(e)

        routes: list[Route] = []
        for module_path in sorted(self.routes_path.glob(f"*/{INDEX_MODULE}")):
            try:
                routes.extend(self.load_module(module_path))
            except RouteModuleLoadError as e:
                self._log_failure(e)
        return routes

    def load_module(self, module_path: Path) -> list[Route]:
        """Execute one route module and return its exported routes.

        Raises:
            RouteModuleLoadError: If the module fails to import, exports no
                ``routes`` or exports values that are not routes
        """
        module = self._exec_module(module_path)

        if not hasattr(module, "routes"):
            raise RouteModuleLoadError(
                f"Route module {module_path} does not export 'routes'",
                path=module_path,
            )

        try:
            return coerce_routes(module.routes)
        except (TypeError, ValueError, ImportError) as e:
            raise RouteModuleLoadError(
                f"Route module {module_path} exports invalid routes: {e}",
                path=module_path,
                cause=e,
            ) from e

    def _exec_module(self, module_path: Path) -> Any:
        relative = module_path.parent.relative_to(self.routes_path)
        suffix = "_".join(relative.parts) or "root"
        module_name = f"hathor_routes_{suffix}"

        spec = importlib.util.spec_from_file_location(module_name, module_path)
        if not spec or not spec.loader:
            raise RouteModuleLoadError(
                f"Cannot create import spec for {module_path}", path=module_path
            )

        module = importlib.util.module_from_spec(spec)

        # Registered while executing so the module can import itself
        old_module = sys.modules.get(module_name)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception as e:
            raise RouteModuleLoadError(
                f"Error loading route module {module_path}: {e}",
                path=module_path,
                cause=e,
            ) from e
        finally:
            if old_module is not None:
                sys.modules[module_name] = old_module
            else:
                sys.modules.pop(module_name, None)

        return module

    def _log_failure(self, error: RouteModuleLoadError) -> None:
        self.logger.error(
            "route_module_load_failed",
            path=str(error.path),
            error=str(error),
            exc_info=error,
            category="routes",
        )
