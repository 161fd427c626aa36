"""Orchestrates one authorization-code exchange invocation."""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx
from starlette.responses import Response

from tokenproxy.config.settings import Settings
from tokenproxy.core.errors import BadRequestError, TokenProxyError
from tokenproxy.core.logging import get_logger
from tokenproxy.models.exchange import (
    ExchangeRequest,
    ExchangeState,
    TokenFailure,
    TokenResult,
)
from tokenproxy.services.response_mapper import ResponseMapper
from tokenproxy.services.token_exchange import TokenExchangeClient
from tokenproxy.services.validator import RequestValidator
from tokenproxy.utils.cors import get_cors_headers


logger = get_logger(__name__)


@dataclass(frozen=True)
class ExchangeOutcome:
    """Terminal result of one invocation."""

    result: TokenResult
    state: ExchangeState
    origin: str | None = None
    request: ExchangeRequest | None = None


class ExchangeService:
    """Moves one request from received through validation and exchange to a response.

    Holds only read-only collaborators, so a single instance serves any number
    of concurrent invocations.
    """

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient,
        **retry_kwargs: Any,
    ) -> None:
        self.settings = settings
        self.validator = RequestValidator(settings.cors)
        self.client = TokenExchangeClient(settings.provider, http_client, **retry_kwargs)
        self.mapper = ResponseMapper()

    async def run(self, headers: Mapping[str, str], body: bytes) -> ExchangeOutcome:
        """Validate the request and, if valid, perform the exchange.

        Args:
            headers: Inbound request headers
            body: Raw inbound request body

        Returns:
            The terminal outcome; rejected requests never reach the provider
        """
        self._transition(ExchangeState.RECEIVED)
        self._transition(ExchangeState.VALIDATING)
        try:
            request = self.validator.validate(headers, body)
        except TokenProxyError as e:
            origin = e.origin if isinstance(e, BadRequestError) else None
            self._transition(ExchangeState.REJECTED, reason=e.error_type)
            return ExchangeOutcome(
                result=TokenFailure.from_error(e),
                state=ExchangeState.REJECTED,
                origin=origin,
            )

        self._transition(ExchangeState.VALIDATED, origin=request.origin)
        self._transition(ExchangeState.EXCHANGING)
        result = await self.client.exchange(request)

        if result.success:
            self._transition(ExchangeState.SUCCEEDED)
        else:
            self._transition(
                ExchangeState.FAILED,
                reason=result.kind.value,
                upstream_status=result.upstream_status,
            )
        return ExchangeOutcome(
            result=result,
            state=ExchangeState.RESPONDED,
            origin=request.origin,
            request=request,
        )

    async def handle(self, headers: Mapping[str, str], body: bytes) -> Response:
        """Run the exchange and render the HTTP response."""
        outcome = await self.run(headers, body)
        return self.respond(outcome)

    def respond(self, outcome: ExchangeOutcome) -> Response:
        # CORS headers only for an origin that passed validation
        cors_headers = (
            get_cors_headers(self.settings.cors, outcome.origin)
            if outcome.origin
            else {}
        )
        response = self.mapper.to_response(outcome.result, cors_headers)
        if outcome.state is ExchangeState.RESPONDED:
            self._transition(ExchangeState.RESPONDED, status_code=response.status_code)
        return response

    @staticmethod
    def _transition(state: ExchangeState, **context: Any) -> None:
        logger.debug("exchange_state", state=state.value, **context)
