"""Models for the authorization-code exchange."""

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from tokenproxy.core.errors import (
    BadRequestError,
    OriginNotAllowedError,
    TokenProxyError,
    UpstreamError,
    UpstreamTimeoutError,
)


class ExchangeState(str, Enum):
    """Lifecycle of a single exchange invocation."""

    RECEIVED = "received"
    VALIDATING = "validating"
    REJECTED = "rejected"
    VALIDATED = "validated"
    EXCHANGING = "exchanging"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    RESPONDED = "responded"


class FailureKind(str, Enum):
    """Runtime error kinds surfaced to the caller."""

    ORIGIN_NOT_ALLOWED = "origin_not_allowed"
    BAD_REQUEST = "bad_request"
    UPSTREAM_TIMEOUT = "upstream_timeout"
    UPSTREAM_ERROR = "upstream_error"


_KIND_STATUS: dict[FailureKind, int] = {
    FailureKind.ORIGIN_NOT_ALLOWED: 403,
    FailureKind.BAD_REQUEST: 400,
    FailureKind.UPSTREAM_TIMEOUT: 504,
    FailureKind.UPSTREAM_ERROR: 502,
}


class ExchangeRequest(BaseModel):
    """A validated inbound exchange request."""

    model_config = ConfigDict(frozen=True)

    origin: str
    authorization_code: str = Field(min_length=1)


class UpstreamTokenRequest(BaseModel):
    """Token request sent to the provider, including the server-held secret."""

    model_config = ConfigDict(frozen=True)

    code: str
    client_id: str
    client_secret: SecretStr
    redirect_uri: str
    grant_type: Literal["authorization_code"] = "authorization_code"

    def to_payload(self) -> dict[str, str]:
        """Serialize for the provider; the only place the secret is revealed."""
        return {
            "grant_type": self.grant_type,
            "code": self.code,
            "client_id": self.client_id,
            "client_secret": self.client_secret.get_secret_value(),
            "redirect_uri": self.redirect_uri,
        }


class TokenSuccess(BaseModel):
    """Provider token payload, kept as the exact bytes the provider sent."""

    model_config = ConfigDict(frozen=True)

    success: Literal[True] = True
    raw: bytes
    upstream_status: int = 200


class TokenFailure(BaseModel):
    """A failed exchange, with the provider's error detail when available."""

    model_config = ConfigDict(frozen=True)

    success: Literal[False] = False
    kind: FailureKind
    message: str
    provider_error: str | None = None
    provider_error_description: str | None = None
    upstream_status: int | None = None

    @property
    def status_code(self) -> int:
        return _KIND_STATUS[self.kind]

    @classmethod
    def from_error(cls, exc: TokenProxyError) -> "TokenFailure":
        """Build a failure from a proxy exception."""
        if isinstance(exc, OriginNotAllowedError):
            return cls(kind=FailureKind.ORIGIN_NOT_ALLOWED, message=exc.message)
        if isinstance(exc, BadRequestError):
            return cls(kind=FailureKind.BAD_REQUEST, message=exc.message)
        if isinstance(exc, UpstreamTimeoutError):
            return cls(kind=FailureKind.UPSTREAM_TIMEOUT, message=exc.message)
        if isinstance(exc, UpstreamError):
            return cls(
                kind=FailureKind.UPSTREAM_ERROR,
                message=exc.message,
                provider_error=exc.provider_error,
                provider_error_description=exc.provider_error_description,
                upstream_status=exc.upstream_status,
            )
        return cls(kind=FailureKind.UPSTREAM_ERROR, message="upstream error")


TokenResult = TokenSuccess | TokenFailure


class ExchangeBody(BaseModel):
    """Inbound request body, documented for OpenAPI."""

    code: str = Field(description="Authorization code issued by the provider")


class ExchangeSuccessResponse(BaseModel):
    success: Literal[True] = True
    body: dict[str, Any] = Field(description="Provider token payload, unmodified")


class ExchangeErrorResponse(BaseModel):
    success: Literal[False] = False
    error: str
