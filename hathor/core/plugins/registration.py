"""Plugin registration pipeline.

Resolves the optional auth module, bulk-registers every normalized plugin
with the transport, then runs post-registration hooks strictly one after
another. Hooks never start before bulk registration succeeded, and a
failing hook stops the pass.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from structlog.stdlib import BoundLogger

from hathor.config.settings import Settings
from hathor.core.async_utils import call_maybe_async
from hathor.core.errors import (
    AuthModuleLoadError,
    PluginRegistrationError,
    PostRegistrationError,
)
from hathor.core.routes.auth import AuthPolicy
from hathor.utils.imports import import_string

from .declaration import Factory, PostRegisterHook, classify
from .normalizer import PluginNormalizer, PluginRegistrationInfo


if TYPE_CHECKING:
    from hathor.api.transport import Transport


DEFAULT_BASE_PLUGINS: tuple[str, ...] = (
    "hathor.plugins.files",
    "hathor.plugins.views",
)

_UNRESOLVED = object()


class PluginRegistrationPipeline:
    """One registration pass per ``run`` call; the auth module resolves once."""

    def __init__(
        self,
        transport: Transport,
        settings: Settings,
        policy: AuthPolicy | None,
        logger: BoundLogger,
        *,
        auth_module: Any = None,
        base_plugins: Sequence[Any] = DEFAULT_BASE_PLUGINS,
    ):
        self.transport = transport
        self.settings = settings
        self.policy = policy
        self.logger = logger
        self.base_plugins = list(base_plugins)
        self._injected_auth_module = auth_module
        self._auth_module: Any = _UNRESOLVED

    async def resolve_auth_module(self) -> Any:
        """Return the auth module, resolving it on first use.

        An injected module wins over ``settings.auth.module``. Callable
        modules are factories invoked with ``(transport, settings)``. A
        declared ``type`` becomes the policy type if none is configured.

        Raises:
            AuthModuleLoadError: If the module cannot be imported or built
        """
        if self._auth_module is not _UNRESOLVED:
            return self._auth_module

        module = self._injected_auth_module
        module_path = self.policy.module if self.policy else None
        if module is None and module_path:
            try:
                module = import_string(module_path)
            except Exception as e:
                raise AuthModuleLoadError(
                    f"Cannot import auth module {module_path!r}: {e}",
                    module=module_path,
                    cause=e,
                ) from e

        if module is not None and isinstance(classify(module), Factory):
            try:
                module = await call_maybe_async(module, self.transport, self.settings)
            except Exception as e:
                raise AuthModuleLoadError(
                    f"Auth module factory failed: {e}",
                    module=module_path,
                    cause=e,
                ) from e

        if module is not None and self.policy is not None:
            self.policy.adopt_default(_declared_type(module))

        self._auth_module = module
        return module

    async def run(self, extra_plugins: Sequence[Any] | None = None) -> PluginRegistrationInfo:
        """Normalize, bulk-register and run hooks for one pass.

        Raises:
            AuthModuleLoadError: If the auth module cannot be resolved
            PluginRegistrationError: If normalization or bulk registration fails
            PostRegistrationError: If a post-registration hook fails
        """
        auth_module = await self.resolve_auth_module()

        descriptors = [
            *self.base_plugins,
            *([auth_module] if auth_module is not None else []),
            *self.settings.plugins,
            *(extra_plugins or []),
        ]

        normalizer = PluginNormalizer(self.transport, self.settings)
        try:
            info = await normalizer.normalize(descriptors)
        except Exception as e:
            self.logger.error(
                "plugin_normalization_failed",
                error=str(e),
                exc_info=e,
                category="plugin",
            )
            raise PluginRegistrationError(
                f"Plugin declaration could not be resolved: {e}", cause=e
            ) from e

        try:
            await self.transport.register(info.plugins)
        except Exception as e:
            self.logger.error(
                "plugin_registration_failed",
                error=str(e),
                exc_info=e,
                category="plugin",
            )
            if isinstance(e, PluginRegistrationError):
                raise
            raise PluginRegistrationError(
                f"Plugin registration failed: {e}", cause=e
            ) from e

        for hook in info.post_registration:
            await self._run_hook(hook)

        self.logger.debug(
            "plugins_registered",
            plugins=[record.plugin_name for record in info.plugins],
            hooks=len(info.post_registration),
            routes=len(info.routes),
            category="plugin",
        )
        return info

    async def _run_hook(self, hook: PostRegisterHook) -> None:
        hook_name = getattr(hook, "__qualname__", repr(hook))
        timeout = self.settings.post_register_timeout
        try:
            await call_maybe_async(hook, self.transport, self.settings, timeout=timeout)
        except TimeoutError as e:
            self.logger.error(
                "post_register_timeout",
                hook=hook_name,
                timeout=timeout,
                category="plugin",
            )
            raise PostRegistrationError(
                f"Post-registration hook {hook_name} did not finish within {timeout}s",
                hook=hook,
                cause=e,
            ) from e
        except Exception as e:
            self.logger.error(
                "post_register_failed",
                hook=hook_name,
                error=str(e),
                exc_info=e,
                category="plugin",
            )
            raise PostRegistrationError(
                f"Post-registration hook {hook_name} failed: {e}", hook=hook, cause=e
            ) from e


def _declared_type(module: Any) -> str | None:
    declared = module.get("type") if isinstance(module, Mapping) else getattr(module, "type", None)
    return declared if isinstance(declared, str) else None
