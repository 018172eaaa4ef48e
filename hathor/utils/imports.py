"""Import-path resolution for configuration values."""

import importlib
from typing import Any


def import_string(path: str) -> Any:
    """Resolve ``"package.module:attribute"`` or ``"package.module"``.

    A dotted path without a colon resolves to the module itself. Nested
    attributes are allowed after the colon (``"pkg.mod:Class.attr"``).

    Raises:
        ImportError: If the module or attribute cannot be found
    """
    module_name, _, attribute = path.partition(":")
    if not module_name:
        raise ImportError(f"Invalid import path: {path!r}")

    module = importlib.import_module(module_name)
    if not attribute:
        return module

    target: Any = module
    for part in attribute.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as e:
            raise ImportError(
                f"Module {module_name!r} has no attribute {attribute!r}"
            ) from e
    return target
