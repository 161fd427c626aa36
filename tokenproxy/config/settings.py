import os
from pathlib import Path
from typing import Any

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from tokenproxy.core.errors import ConfigurationError
from tokenproxy.core.logging import get_logger

from .core import CORSSettings, HTTPSettings, LoggingSettings, ServerSettings
from .provider import ProviderSettings


__all__ = [
    "ENV_FILE_VAR",
    "Settings",
    "ConfigurationError",
    "default_env_file",
    "load_settings",
]


logger = get_logger(__name__)

# Set by `tokenproxy serve` for reloader and worker processes
ENV_FILE_VAR = "TOKENPROXY_ENV_FILE"

_REQUIRED_FIELDS: dict[str, tuple[str, ...]] = {
    "provider": ("client_id", "client_secret", "redirect_uri", "token_url"),
    "cors": ("origins",),
}


class Settings(BaseSettings):
    """
    Configuration settings for the token exchange proxy.

    Settings are loaded once from environment variables and an optional .env
    file. Environment variables take precedence over .env file values. Nested
    values use a double underscore, e.g. ``PROVIDER__CLIENT_ID`` or
    ``CORS__ORIGINS``. The instance is frozen and handed to the application
    explicitly.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
        frozen=True,
    )

    provider: ProviderSettings = Field(
        description="Identity provider credentials and token endpoint",
    )

    cors: CORSSettings = Field(
        description="Origin allow-list and CORS settings",
    )

    server: ServerSettings = Field(
        default_factory=ServerSettings,
        description="Server configuration settings",
    )

    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Logging configuration",
    )

    http: HTTPSettings = Field(
        default_factory=HTTPSettings,
        description="HTTP client configuration settings",
    )

    @property
    def server_url(self) -> str:
        """Get the complete server URL."""
        return f"http://{self.server.host}:{self.server.port}"

    def model_dump_safe(self) -> dict[str, Any]:
        """
        Dump model data with sensitive information masked.

        Returns:
            dict: Configuration with sensitive data masked
        """
        data = self.model_dump(mode="json")
        data["provider"]["client_secret"] = "**********"
        data["cors"]["origins"] = sorted(self.cors.origins)
        return data


def _describe_errors(exc: ValidationError) -> list[str]:
    fields: list[str] = []
    for error in exc.errors():
        loc = tuple(str(part) for part in error["loc"])
        if len(loc) == 1 and loc[0] in _REQUIRED_FIELDS and error["type"] == "missing":
            fields.extend(f"{loc[0]}.{name}" for name in _REQUIRED_FIELDS[loc[0]])
        else:
            fields.append(".".join(loc))
    return fields


def default_env_file() -> str:
    """Env file to read when none is given explicitly."""
    return os.environ.get(ENV_FILE_VAR) or ".env"


def load_settings(env_file: Path | str | None = ".env", **overrides: Any) -> Settings:
    """Load settings once at process start.

    Args:
        env_file: Optional .env file to read in addition to the environment
        **overrides: Explicit values that take precedence over the environment

    Returns:
        The frozen settings instance

    Raises:
        ConfigurationError: If a required value is missing or invalid
    """
    try:
        settings = Settings(_env_file=env_file, **overrides)  # type: ignore[call-arg]
    except ValidationError as e:
        fields = _describe_errors(e)
        messages = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigurationError(
            f"Invalid or missing configuration ({', '.join(fields)}): {messages}",
            fields=fields,
        ) from e

    logger.info(
        "settings_loaded",
        token_url=settings.provider.token_url,
        allowed_origins=len(settings.cors.origins),
        timeout=settings.provider.timeout,
        max_retries=settings.provider.max_retries,
        category="config",
    )
    return settings
