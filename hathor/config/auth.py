"""Authentication-related settings."""

from pydantic import BaseModel, ConfigDict, Field


class AuthSettings(BaseModel):
    """Authentication policy applied to every route that opts into auth."""

    model_config = ConfigDict(extra="ignore")

    type: str | None = Field(
        default=None,
        description=(
            "Auth strategy name routes are bound to. When unset, the auth "
            "module's declared default type is adopted."
        ),
    )

    module: str | None = Field(
        default=None,
        description="Import path of the auth module, e.g. 'myapp.auth' or 'myapp.auth:plugin'",
    )

    static: bool = Field(
        default=False,
        description="Require authentication for statically served files",
    )


__all__ = ["AuthSettings"]
