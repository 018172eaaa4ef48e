"""Plugin declarations, normalization and the registration pipeline."""

from .declaration import (
    DescriptorKind,
    Factory,
    Plugin,
    PluginDescriptor,
    PluginGroup,
    PluginRecord,
    PostRegisterHook,
    RoutesProvider,
    as_plugin,
    classify,
)
from .normalizer import PluginNormalizer, PluginRegistrationInfo
from .registration import DEFAULT_BASE_PLUGINS, PluginRegistrationPipeline


__all__ = [
    "DescriptorKind",
    "Factory",
    "Plugin",
    "PluginGroup",
    "PluginRecord",
    "RoutesProvider",
    "PluginDescriptor",
    "PostRegisterHook",
    "classify",
    "as_plugin",
    "PluginNormalizer",
    "PluginRegistrationInfo",
    "PluginRegistrationPipeline",
    "DEFAULT_BASE_PLUGINS",
]
