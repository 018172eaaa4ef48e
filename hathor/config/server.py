"""Connection settings for the HTTP transport."""

from pydantic import BaseModel, Field


class ServerSettings(BaseModel):
    """Host and port the transport binds, plus uvicorn pass-through options."""

    host: str = Field(
        default="0.0.0.0",
        description="Interface to bind",
    )

    port: int = Field(
        default=9000,
        description="Port to bind; 0 picks a free port",
        ge=0,
        le=65535,
    )

    root_path: str = Field(
        default="",
        description="ASGI root path when served behind a path-prefixing proxy",
    )
