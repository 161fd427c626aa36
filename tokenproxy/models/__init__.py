"""Data models for the token exchange proxy."""

from .exchange import (
    ExchangeBody,
    ExchangeErrorResponse,
    ExchangeRequest,
    ExchangeState,
    ExchangeSuccessResponse,
    FailureKind,
    TokenFailure,
    TokenResult,
    TokenSuccess,
    UpstreamTokenRequest,
)


__all__ = [
    "ExchangeBody",
    "ExchangeErrorResponse",
    "ExchangeRequest",
    "ExchangeState",
    "ExchangeSuccessResponse",
    "FailureKind",
    "TokenFailure",
    "TokenResult",
    "TokenSuccess",
    "UpstreamTokenRequest",
]
