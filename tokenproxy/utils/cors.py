"""CORS utilities for the exchange endpoint."""

from collections.abc import Mapping
from typing import TYPE_CHECKING

from tokenproxy.core.logging import get_logger


if TYPE_CHECKING:
    from tokenproxy.config.core import CORSSettings

logger = get_logger(__name__)


def get_cors_headers(
    cors_settings: "CORSSettings",
    request_origin: str | None = None,
    preflight: bool = False,
) -> dict[str, str]:
    """Get CORS headers based on configuration and request.

    Headers are only produced for an allow-listed origin, and the allowed
    origin is always echoed back verbatim.

    Args:
        cors_settings: CORS configuration settings
        request_origin: Origin from the request Origin header
        preflight: Include the preflight-only headers

    Returns:
        dict: CORS headers to add to response
    """
    allowed_origin = cors_settings.get_allowed_origin(request_origin)
    if not allowed_origin:
        logger.debug("cors_origin_rejected", request_origin=request_origin)
        return {}

    headers = {
        "Access-Control-Allow-Origin": allowed_origin,
        "Vary": "Origin",
    }

    if preflight:
        if cors_settings.methods:
            headers["Access-Control-Allow-Methods"] = ", ".join(cors_settings.methods)
        if cors_settings.headers:
            headers["Access-Control-Allow-Headers"] = ", ".join(cors_settings.headers)
        if cors_settings.max_age > 0:
            headers["Access-Control-Max-Age"] = str(cors_settings.max_age)

    return headers


def get_request_origin(request_headers: Mapping[str, str] | None) -> str | None:
    """Extract origin from request headers.

    Args:
        request_headers: Request headers

    Returns:
        str | None: Origin value or None if not present
    """
    if not request_headers:
        return None

    # Find origin header (case-insensitive)
    for key, value in request_headers.items():
        if key.lower() == "origin":
            return value

    return None
