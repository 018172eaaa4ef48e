"""Template views rendered with Jinja2.

Templates load from ``options["path"]`` or, by default, the web root. The
plugin provides the ``view`` handler type and exposes ``templates``.
"""

from pathlib import Path
from typing import Any

from fastapi import Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from hathor.api.handlers import TemplateView


name = "views"


def register(transport: Any, options: dict[str, Any]) -> None:
    directory = Path(options.get("path") or transport.files_relative_to)
    templates = Jinja2Templates(directory=str(directory))

    def build(spec: TemplateView) -> Any:
        async def render_view(request: Request) -> HTMLResponse:
            context = {**spec.context, "params": dict(request.path_params)}
            return templates.TemplateResponse(request, spec.template, context)

        return render_view

    transport.handler(TemplateView.kind, build)
    transport.expose(name, "templates", templates)
