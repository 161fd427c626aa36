"""Custom exceptions for the token exchange proxy."""

from typing import Any


class TokenProxyError(Exception):
    """Base exception for token proxy errors."""

    def __init__(
        self,
        message: str,
        error_type: str = "internal_server_error",
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.status_code = status_code
        self.details = details or {}


class OriginNotAllowedError(TokenProxyError):
    """Caller origin is missing or not allow-listed (403)."""

    def __init__(self, message: str = "origin not allowed") -> None:
        super().__init__(
            message=message, error_type="origin_not_allowed", status_code=403
        )


class BadRequestError(TokenProxyError):
    """Malformed body or missing authorization code (400)."""

    def __init__(
        self,
        message: str = "missing code",
        details: dict[str, Any] | None = None,
        origin: str | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_type="bad_request",
            status_code=400,
            details=details,
        )
        # Set once the origin has been validated
        self.origin = origin


class UpstreamTimeoutError(TokenProxyError):
    """Provider did not answer within the configured timeout (504)."""

    def __init__(self, message: str = "timeout") -> None:
        super().__init__(
            message=message, error_type="upstream_timeout", status_code=504
        )


class UpstreamError(TokenProxyError):
    """Provider rejected the code or could not be reached (502).

    ``provider_error`` and ``provider_error_description`` carry the provider's
    own error fields when it sent any.
    """

    def __init__(
        self,
        message: str = "upstream error",
        provider_error: str | None = None,
        provider_error_description: str | None = None,
        upstream_status: int | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_type="upstream_error",
            status_code=502,
            details={
                "provider_error": provider_error,
                "provider_error_description": provider_error_description,
                "upstream_status": upstream_status,
            },
        )
        self.provider_error = provider_error
        self.provider_error_description = provider_error_description
        self.upstream_status = upstream_status


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""

    def __init__(self, message: str, fields: list[str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.fields = fields or []


__all__ = [
    "TokenProxyError",
    "OriginNotAllowedError",
    "BadRequestError",
    "UpstreamTimeoutError",
    "UpstreamError",
    "ConfigurationError",
]
