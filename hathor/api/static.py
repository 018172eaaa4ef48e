"""Static file endpoints.

Files are resolved below a root directory. Symlinks are resolved and the
final path must stay inside the root.
"""

from collections.abc import Awaitable, Callable
from pathlib import Path

from fastapi import HTTPException, Request
from fastapi.responses import FileResponse, RedirectResponse, Response

from .handlers import StaticDirectory


def resolve_file(root: Path, relative: str) -> Path:
    """Resolve ``relative`` under ``root``.

    Raises:
        HTTPException: 403 when the path escapes the root
    """
    root = root.resolve()
    candidate = (root / relative.lstrip("/")).resolve() if relative else root
    if not candidate.is_relative_to(root):
        raise HTTPException(status_code=403, detail="Forbidden")
    return candidate


def file_response(root: Path, relative: str) -> FileResponse:
    """Serve one file relative to ``root``; 404 if it is not a regular file."""
    path = resolve_file(root, relative)
    if not path.is_file():
        raise HTTPException(status_code=404, detail="Not Found")
    return FileResponse(path)


def directory_endpoint(
    spec: StaticDirectory, root: Path
) -> Callable[[Request], Awaitable[Response]]:
    """Build the endpoint for a ``StaticDirectory`` handler.

    The wildcard path parameter (or the request path when the route has
    none) selects the file. Directories resolve to their index file;
    without a trailing slash they redirect to the slashed URL first.
    """
    base = root / spec.path

    async def serve_directory(request: Request) -> Response:
        params = request.path_params
        relative = str(next(iter(params.values()))) if params else request.url.path
        target = resolve_file(base, relative)

        if target.is_dir():
            url_path = request.url.path
            if spec.redirect_to_slash and not url_path.endswith("/"):
                return RedirectResponse(url=f"{url_path}/", status_code=302)
            index_name = spec.index_name
            if index_name is None or not (target / index_name).is_file():
                raise HTTPException(status_code=404, detail="Not Found")
            return FileResponse(target / index_name)

        if not target.is_file():
            raise HTTPException(status_code=404, detail="Not Found")
        return FileResponse(target)

    return serve_directory
