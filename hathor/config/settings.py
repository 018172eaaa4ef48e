import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from hathor.core.logging import get_logger

from .auth import AuthSettings
from .logging import LoggingSettings
from .server import ServerSettings


__all__ = ["Settings", "ConfigurationError", "find_toml_config_file"]

ENV_PREFIX = "HATHOR_"
CONFIG_FILE_NAME = ".hathor.toml"


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""

    pass


def find_toml_config_file() -> Path | None:
    """Return ``.hathor.toml`` from the working directory if it exists."""
    candidate = Path.cwd() / CONFIG_FILE_NAME
    return candidate if candidate.is_file() else None


def _without_env_overrides(data: dict[str, Any], prefix: str) -> dict[str, Any]:
    """Drop file values that an environment variable already sets."""
    kept: dict[str, Any] = {}
    for key, value in data.items():
        env_key = f"{prefix}{key.upper()}"
        if isinstance(value, dict):
            nested = _without_env_overrides(value, f"{env_key}__")
            if nested or os.getenv(env_key) is None:
                kept[key] = nested
        elif os.getenv(env_key) is None:
            kept[key] = value
    return kept


class Settings(BaseSettings):
    """
    Configuration for a composed Hathor server.

    Settings are loaded from environment variables (``HATHOR_`` prefix,
    ``__`` for nesting), a ``.env`` file and an optional TOML file.
    Environment variables take precedence over TOML values. Relative paths
    resolve against the current working directory.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
        arbitrary_types_allowed=True,
    )

    server: ServerSettings = Field(
        default_factory=ServerSettings,
        description="Connection parameters for the transport",
    )

    auth: AuthSettings | None = Field(
        default=None,
        description="Authentication policy; omit to disable auth entirely",
    )

    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Logging configuration",
    )

    plugins: list[Any] = Field(
        default_factory=list,
        description="Plugin descriptors or import paths registered after the built-ins",
    )

    routes: list[Any] = Field(
        default_factory=list,
        description="Default routes registered after the static route",
    )

    web_root: Path = Field(
        default=Path("ui/build"),
        description="Directory static files and views are served from",
    )

    routes_path: Path = Field(
        default=Path("routes"),
        description="Directory holding route modules (index.py or */index.py)",
    )

    static: bool = Field(
        default=True,
        description="Serve the web root through a catch-all GET route",
    )

    post_register_timeout: float | None = Field(
        default=None,
        description=(
            "Seconds each post-registration hook may take. None waits "
            "indefinitely."
        ),
        gt=0,
    )

    @model_validator(mode="before")
    @classmethod
    def _accept_webroot_alias(cls, data: Any) -> Any:
        if isinstance(data, dict) and "web_root" not in data:
            for alias in ("webroot", "webRoot"):
                if alias in data:
                    data = dict(data)
                    data["web_root"] = data.pop(alias)
                    break
        return data

    @property
    def resolved_web_root(self) -> Path:
        return Path.cwd() / self.web_root

    @property
    def resolved_routes_path(self) -> Path:
        return Path.cwd() / self.routes_path

    @property
    def server_url(self) -> str:
        """Get the configured server URL."""
        return f"http://{self.server.host}:{self.server.port}"

    @classmethod
    def load_toml_config(cls, toml_path: Path) -> dict[str, Any]:
        """Load configuration from a TOML file."""
        try:
            with toml_path.open("rb") as f:
                return tomllib.load(f)
        except OSError as e:
            raise ConfigurationError(
                f"Cannot read TOML config file {toml_path}: {e}"
            ) from e
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML syntax in {toml_path}: {e}") from e

    @classmethod
    def from_config(
        cls,
        config_path: Path | str | None = None,
        **kwargs: Any,
    ) -> "Settings":
        """Create Settings from a TOML file, environment and explicit overrides.

        Precedence, highest first: keyword overrides, environment variables,
        TOML values, field defaults.
        """
        if config_path is None:
            config_path_env = os.environ.get(f"{ENV_PREFIX}CONFIG_FILE")
            if config_path_env:
                config_path = Path(config_path_env)

        if isinstance(config_path, str):
            config_path = Path(config_path)

        if config_path is None:
            config_path = find_toml_config_file()

        config_data: dict[str, Any] = {}
        if config_path is not None:
            if config_path.suffix.lower() != ".toml":
                raise ConfigurationError(
                    f"Unsupported config file format: {config_path.suffix}. "
                    "Only TOML (.toml) files are supported."
                )
            config_data = cls.load_toml_config(config_path)
            logger.info(
                "config_file_loaded",
                path=str(config_path),
                category="config",
            )

        values = _without_env_overrides(config_data, ENV_PREFIX)
        values.update(kwargs)

        try:
            return cls(**values)
        except ValueError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e


logger = get_logger(__name__)
