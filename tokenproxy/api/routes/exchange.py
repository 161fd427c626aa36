"""Authorization-code exchange endpoint."""

import asyncio
import contextlib
from collections.abc import Awaitable

from fastapi import APIRouter, Request, Response

from tokenproxy.api.dependencies import ExchangeServiceDep, SettingsDep
from tokenproxy.core.logging import get_logger
from tokenproxy.models.exchange import (
    ExchangeBody,
    ExchangeErrorResponse,
    ExchangeSuccessResponse,
)
from tokenproxy.utils.cors import get_cors_headers, get_request_origin


router = APIRouter(tags=["exchange"])
logger = get_logger(__name__)

DISCONNECT_POLL_INTERVAL = 0.1

# Non-standard status used by nginx for "client closed request"
CLIENT_CLOSED_REQUEST = 499


async def run_until_disconnected(
    request: Request,
    awaitable: Awaitable[Response],
    poll_interval: float = DISCONNECT_POLL_INTERVAL,
) -> Response:
    """Await ``awaitable`` and cancel it if the caller goes away first.

    Cancelling only aborts the outbound call; a code the provider already
    consumed stays consumed.
    """
    task = asyncio.ensure_future(awaitable)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=poll_interval)
            if done:
                return task.result()
            if await request.is_disconnected():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
                logger.warning("client_disconnected_exchange_cancelled")
                return Response(status_code=CLIENT_CLOSED_REQUEST)
    finally:
        if not task.done():
            task.cancel()


@router.post(
    "/exchange",
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {
                "application/json": {"schema": ExchangeBody.model_json_schema()}
            },
        }
    },
    responses={
        200: {"model": ExchangeSuccessResponse},
        400: {"model": ExchangeErrorResponse},
        403: {"model": ExchangeErrorResponse},
        502: {"model": ExchangeErrorResponse},
        504: {"model": ExchangeErrorResponse},
    },
)
async def exchange_code(request: Request, service: ExchangeServiceDep) -> Response:
    """Exchange an authorization code for the provider's token payload.

    The origin is checked before the body is looked at, and both before the
    provider is contacted.
    """
    body = await request.body()
    return await run_until_disconnected(request, service.handle(request.headers, body))


@router.options("/exchange", include_in_schema=False)
async def exchange_preflight(request: Request, settings: SettingsDep) -> Response:
    """Answer CORS preflight for allow-listed origins only."""
    origin = get_request_origin(request.headers)
    headers = get_cors_headers(settings.cors, origin, preflight=True)
    if not headers:
        logger.info("preflight_origin_rejected", origin=origin)
        return Response(status_code=403)
    return Response(status_code=204, headers=headers)
