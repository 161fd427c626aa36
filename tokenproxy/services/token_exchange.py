"""Client for the provider's token endpoint."""

import asyncio
import json
import time
from typing import Any

import httpx

from tokenproxy.config.provider import ProviderSettings
from tokenproxy.core.logging import get_logger
from tokenproxy.models.exchange import (
    ExchangeRequest,
    FailureKind,
    TokenFailure,
    TokenResult,
    TokenSuccess,
    UpstreamTokenRequest,
)
from tokenproxy.services.retry import build_retrying


logger = get_logger(__name__)

_JSON_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
}


class TokenExchangeClient:
    """Performs the single outbound authorization-code exchange.

    The client secret is merged in here and nowhere else. Each call to
    :meth:`exchange` sends the code to the provider once; only connection
    failures that happen before the request is delivered are retried, within
    the bound set by ``provider.max_retries`` and the overall
    ``provider.timeout``. Any response the provider sends back, success or
    error, is final.
    """

    def __init__(
        self,
        provider: ProviderSettings,
        http_client: httpx.AsyncClient,
        **retry_kwargs: Any,
    ) -> None:
        """Initialize the exchange client.

        Args:
            provider: Provider credentials, endpoint and timeout
            http_client: Shared HTTP client used for the outbound call
            **retry_kwargs: Extra tenacity options (e.g. ``sleep`` in tests)
        """
        self.provider = provider
        self.http_client = http_client
        self._retry_kwargs = retry_kwargs

    def build_upstream_request(self, request: ExchangeRequest) -> UpstreamTokenRequest:
        return UpstreamTokenRequest(
            code=request.authorization_code,
            client_id=self.provider.client_id,
            client_secret=self.provider.client_secret,
            redirect_uri=self.provider.redirect_uri,
        )

    async def exchange(self, request: ExchangeRequest) -> TokenResult:
        """Exchange the authorization code for a token.

        Args:
            request: Validated exchange request

        Returns:
            TokenSuccess with the provider's bytes, or TokenFailure
        """
        upstream = self.build_upstream_request(request)
        started = time.monotonic()
        attempts = 0

        logger.debug(
            "token_exchange_start",
            endpoint=self.provider.token_url,
            has_code=bool(upstream.code),
            timeout=self.provider.timeout,
        )

        try:
            async with asyncio.timeout(self.provider.timeout):
                async for attempt in build_retrying(
                    self.provider.max_retries,
                    self.provider.retry_backoff,
                    **self._retry_kwargs,
                ):
                    with attempt:
                        attempts += 1
                        response = await self.http_client.post(
                            self.provider.token_url,
                            json=upstream.to_payload(),
                            headers=_JSON_HEADERS,
                        )

        except (TimeoutError, httpx.TimeoutException) as e:
            logger.error(
                "token_exchange_timeout",
                error_type=type(e).__name__,
                attempts=attempts,
                elapsed=round(time.monotonic() - started, 3),
            )
            return TokenFailure(kind=FailureKind.UPSTREAM_TIMEOUT, message="timeout")

        except httpx.ConnectError as e:
            logger.error(
                "token_exchange_connection_error",
                error=str(e),
                attempts=attempts,
            )
            return TokenFailure(
                kind=FailureKind.UPSTREAM_ERROR, message="upstream unavailable"
            )

        except httpx.HTTPError as e:
            logger.error(
                "token_exchange_http_error",
                error_type=type(e).__name__,
                error=str(e),
                attempts=attempts,
            )
            return TokenFailure(kind=FailureKind.UPSTREAM_ERROR, message="upstream error")

        result = parse_token_response(response)
        logger.info(
            "token_exchange_completed",
            success=result.success,
            upstream_status=response.status_code,
            attempts=attempts,
            elapsed=round(time.monotonic() - started, 3),
        )
        return result


def parse_token_response(response: httpx.Response) -> TokenResult:
    """Turn the provider's response into a TokenResult.

    Args:
        response: Response from the token endpoint

    Returns:
        TokenSuccess for a 2xx JSON object without an ``error`` field,
        TokenFailure otherwise
    """
    status_code = response.status_code
    data = _decode_json_object(response.content)

    if response.is_success:
        if data is None:
            logger.error(
                "token_exchange_invalid_response",
                upstream_status=status_code,
                content_type=response.headers.get("content-type"),
            )
            return TokenFailure(
                kind=FailureKind.UPSTREAM_ERROR,
                message="invalid upstream response",
                upstream_status=status_code,
            )
        # Some providers (GitHub) report a rejected code with a 200 status
        if "error" in data and "access_token" not in data:
            return _provider_failure(data, status_code)
        return TokenSuccess(raw=response.content, upstream_status=status_code)

    logger.warning("token_exchange_rejected", upstream_status=status_code)
    return _provider_failure(data or {}, status_code, fallback_text=response.text)


def _decode_json_object(content: bytes) -> dict[str, Any] | None:
    # Strict UTF-8; a BOM or any other encoding is rejected
    try:
        data = json.loads(content.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    return data if isinstance(data, dict) else None


def _provider_failure(
    data: dict[str, Any], status_code: int, fallback_text: str | None = None
) -> TokenFailure:
    error = data.get("error")
    description = data.get("error_description")

    if isinstance(error, dict):
        # {"error": {"type": ..., "message": ...}} style
        description = description or error.get("message")
        error = error.get("type") or error.get("code")

    error_code = str(error) if error else None
    error_description = str(description) if description else None

    if error_code and error_description:
        message = f"{error_code}: {error_description}"
    elif error_code or error_description:
        message = error_code or error_description or ""
    elif data.get("message"):
        message = str(data["message"])
    elif fallback_text and fallback_text.strip():
        message = _truncate_error_text(fallback_text.strip())
    else:
        message = "upstream error"

    return TokenFailure(
        kind=FailureKind.UPSTREAM_ERROR,
        message=message,
        provider_error=error_code,
        provider_error_description=error_description,
        upstream_status=status_code,
    )


def _truncate_error_text(text: str, max_length: int = 200) -> str:
    """Truncate error text to reasonable length."""
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."
