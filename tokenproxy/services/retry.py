"""Retry policy for calls to the provider token endpoint.

Only failures that happen before the provider could have seen the request are
retried. An authorization code is consumed by the first request that reaches
the provider, so anything after the connection is established (read timeouts,
dropped responses, error statuses) is final.
"""

from collections.abc import Callable
from typing import Any

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from tokenproxy.core.logging import get_logger


logger = get_logger(__name__)

# Cap on a single backoff sleep; the overall exchange timeout still applies.
MAX_BACKOFF_SECONDS = 2.0


def should_retry_before_response(exception: BaseException) -> bool:
    """Check if the exception happened before any request byte reached the provider.

    ``ConnectError`` covers DNS failures, refused/reset connections and TLS
    handshake failures. ``ConnectTimeout`` means the connection never opened.

    Args:
        exception: Exception to check

    Returns:
        True if the request can be sent again safely
    """
    return isinstance(exception, (httpx.ConnectError, httpx.ConnectTimeout))


retry_if_pre_response = retry_if_exception(should_retry_before_response)


def log_retry_attempt(max_attempts: int) -> Callable[[RetryCallState], None]:
    """Create a before_sleep callback that logs retry attempts."""

    def before_sleep(retry_state: RetryCallState) -> None:
        exception = retry_state.outcome.exception() if retry_state.outcome else None
        wait_time = retry_state.next_action.sleep if retry_state.next_action else 0
        logger.warning(
            "token_exchange_retry",
            error_type=type(exception).__name__,
            attempt=retry_state.attempt_number,
            max_attempts=max_attempts,
            wait_seconds=round(wait_time, 3),
        )

    return before_sleep


def build_retrying(max_retries: int, backoff: float, **kwargs: Any) -> AsyncRetrying:
    """Build the bounded retry controller for one exchange.

    Args:
        max_retries: Number of retries after the first attempt
        backoff: Exponential backoff multiplier in seconds

    Returns:
        An AsyncRetrying that re-raises the last exception when exhausted
    """
    max_attempts = max_retries + 1
    return AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        retry=retry_if_pre_response,
        wait=wait_exponential(multiplier=backoff, max=MAX_BACKOFF_SECONDS),
        before_sleep=log_retry_attempt(max_attempts),
        reraise=True,
        **kwargs,
    )
