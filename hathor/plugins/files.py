"""Static file support.

Provides the ``directory`` handler type used by the static route and
exposes ``file(path)`` responses relative to the web root.
"""

from functools import partial
from pathlib import Path
from typing import Any

from hathor.api.handlers import StaticDirectory
from hathor.api.static import directory_endpoint, file_response


name = "files"


def register(transport: Any, options: dict[str, Any]) -> None:
    root = Path(options.get("relative_to") or transport.files_relative_to)

    def build(spec: StaticDirectory) -> Any:
        return directory_endpoint(spec, root)

    transport.handler(StaticDirectory.kind, build)
    transport.expose(name, "root", root)
    transport.expose(name, "file", partial(file_response, root))
