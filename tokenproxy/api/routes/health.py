"""Health check endpoints for the token proxy.

- /health/live: Liveness probe (minimal, fast)
- /health/ready: Readiness probe (configuration loaded, HTTP client open)

Follows the IETF Health Check Response Format draft.
"""

from typing import Any

from fastapi import APIRouter, Request, Response

from tokenproxy import __version__
from tokenproxy.core.logging import get_logger


router = APIRouter(tags=["health"])
logger = get_logger(__name__)


@router.get("/health/live")
async def liveness_probe(response: Response) -> dict[str, Any]:
    """Liveness probe: the process is running."""
    response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"

    logger.debug("liveness_probe_request")

    return {
        "status": "pass",
        "version": __version__,
        "output": "Application process is running",
    }


@router.get("/health/ready")
async def readiness_probe(request: Request, response: Response) -> dict[str, Any]:
    """Readiness probe: the exchange service is initialized.

    The provider itself is not contacted; probing it would need a code.
    """
    response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"

    logger.debug("readiness_probe_request")

    service = getattr(request.app.state, "exchange_service", None)
    if service is None or service.client.http_client.is_closed:
        response.status_code = 503
        return {
            "status": "fail",
            "version": __version__,
            "output": "Exchange service is not initialized",
        }

    return {
        "status": "pass",
        "version": __version__,
        "output": "Service is ready to accept traffic",
    }
