"""Services for the token exchange proxy."""

from .exchange import ExchangeOutcome, ExchangeService
from .response_mapper import ResponseMapper
from .token_exchange import TokenExchangeClient
from .validator import RequestValidator


__all__ = [
    "ExchangeOutcome",
    "ExchangeService",
    "RequestValidator",
    "ResponseMapper",
    "TokenExchangeClient",
]
