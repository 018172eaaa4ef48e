"""Error handling for the transport's FastAPI application."""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from structlog.stdlib import BoundLogger

from hathor.core.errors import HathorError


def _error_body(error_type: str, message: str) -> dict[str, Any]:
    return {"error": {"type": error_type, "message": message}}


def setup_error_handlers(app: FastAPI, logger: BoundLogger) -> None:
    """Setup error handlers for the FastAPI application.

    Args:
        app: FastAPI application instance
        logger: Logger receiving server-side failures
    """

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(
                "http_error",
                status_code=exc.status_code,
                path=request.url.path,
                detail=exc.detail,
                category="request",
            )
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body("http_error", str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(HathorError)
    async def hathor_error_handler(request: Request, exc: HathorError) -> JSONResponse:
        logger.error(
            "hathor_error",
            error=str(exc),
            error_type=type(exc).__name__,
            path=request.url.path,
            category="request",
        )
        return JSONResponse(
            status_code=500,
            content=_error_body(type(exc).__name__, str(exc)),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger.error(
            "unhandled_exception",
            error=str(exc),
            path=request.url.path,
            exc_info=exc,
            category="request",
        )
        return JSONResponse(
            status_code=500,
            content=_error_body(
                "internal_server_error", "Internal server error occurred"
            ),
        )
