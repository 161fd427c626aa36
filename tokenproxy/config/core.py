"""Core configuration settings - server, HTTP, CORS, and logging."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import NoDecode


# === Server Configuration ===


class ServerSettings(BaseModel):
    """Server-specific configuration settings."""

    model_config = ConfigDict(frozen=True)

    host: str = Field(
        default="127.0.0.1",
        description="Server host address",
    )

    port: int = Field(
        default=8000,
        description="Server port number",
        ge=1,
        le=65535,
    )

    workers: int = Field(
        default=1,
        description="Number of worker processes",
        ge=1,
        le=32,
    )

    reload: bool = Field(
        default=False,
        description="Enable auto-reload for development",
    )


# === HTTP Configuration ===


class HTTPSettings(BaseModel):
    """HTTP client configuration settings for the provider connection pool."""

    model_config = ConfigDict(frozen=True)

    max_connections: int = Field(
        default=100,
        description="Max total concurrent connections to the provider",
        ge=1,
    )

    max_keepalive_connections: int = Field(
        default=20,
        description="Max keep-alive connections kept for reuse",
        ge=0,
    )

    verify: bool = Field(
        default=True,
        description="Verify the provider's TLS certificate",
    )


# === CORS Configuration ===


class CORSSettings(BaseModel):
    """Origin allow-list and CORS response settings.

    The allow-list is matched exactly. It drives both the request validation
    and the ``Access-Control-Allow-Origin`` header, which always echoes the
    validated origin and is never a wildcard.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    origins: Annotated[frozenset[str], NoDecode] = Field(
        description="Allowed caller origins (comma-separated in the environment)",
    )

    methods: tuple[str, ...] = Field(
        default=("POST", "OPTIONS"),
        description="CORS allowed methods",
    )

    headers: tuple[str, ...] = Field(
        default=("Content-Type", "Accept", "X-Request-ID"),
        description="CORS allowed headers",
    )

    max_age: int = Field(
        default=600,
        description="CORS preflight max age in seconds",
        ge=0,
    )

    @field_validator("origins", mode="before")
    @classmethod
    def validate_cors_origins(cls, v: str | list[str] | set[str]) -> list[str]:
        """Parse CORS origins from string or list."""
        if isinstance(v, str):
            # Split comma-separated string
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return [origin.strip() for origin in v if origin and origin.strip()]

    @field_validator("origins")
    @classmethod
    def validate_origins_not_empty(cls, v: frozenset[str]) -> frozenset[str]:
        if not v:
            raise ValueError("allowed origins must not be empty")
        if "*" in v:
            raise ValueError("wildcard origin '*' is not allowed")
        return v

    @field_validator("methods", mode="before")
    @classmethod
    def validate_cors_methods(cls, v: str | list[str]) -> list[str]:
        """Parse CORS methods from string or list."""
        if isinstance(v, str):
            return [method.strip().upper() for method in v.split(",") if method.strip()]
        return [method.upper() for method in v]

    @field_validator("headers", mode="before")
    @classmethod
    def validate_cors_headers(cls, v: str | list[str]) -> list[str]:
        """Parse CORS headers from string or list."""
        if isinstance(v, str):
            return [header.strip() for header in v.split(",") if header.strip()]
        return list(v)

    def is_origin_allowed(self, origin: str | None) -> bool:
        """Check if an origin exactly matches an allow-listed origin.

        Args:
            origin: The origin to check (from request Origin header)

        Returns:
            bool: True if origin is allowed, False otherwise
        """
        if not origin:
            return False
        return origin in self.origins

    def get_allowed_origin(self, request_origin: str | None) -> str | None:
        """Get the CORS origin value for response headers.

        Args:
            request_origin: The origin from the request

        Returns:
            str | None: The origin to set in Access-Control-Allow-Origin header,
                       or None if origin is not allowed
        """
        if self.is_origin_allowed(request_origin):
            return request_origin
        return None


# === Logging Configuration ===


class LoggingSettings(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(frozen=True)

    level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    format: str = Field(
        default="auto",
        description="Logging output format: 'rich' for development, 'json' for production, 'auto' for automatic selection",
    )

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize log level."""
        upper_v = v.upper()
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if upper_v not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return upper_v

    @field_validator("format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate and normalize log format."""
        lower_v = v.lower()
        valid_formats = ["auto", "rich", "json"]
        if lower_v not in valid_formats:
            raise ValueError(f"Invalid log format: {v}. Must be one of {valid_formats}")
        return lower_v

    def use_json(self, is_tty: bool) -> bool:
        """Resolve the 'auto' format: JSON unless attached to a terminal."""
        if self.format == "auto":
            return not is_tty
        return self.format == "json"
