"""Error handling for the token proxy API.

Every error leaves the service in the same shape as a failed exchange:
``{"success": false, "error": "<message>"}``. Messages are fixed strings or
provider detail; configuration values and the client secret never appear.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from tokenproxy.core.errors import TokenProxyError
from tokenproxy.core.logging import get_logger
from tokenproxy.utils.cors import get_cors_headers, get_request_origin


logger = get_logger(__name__)


def _error_response(request: Request, status_code: int, message: str) -> JSONResponse:
    headers: dict[str, str] = {}
    settings = getattr(request.app.state, "settings", None)
    if settings is not None:
        headers = get_cors_headers(settings.cors, get_request_origin(request.headers))
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message},
        headers=headers,
    )


def setup_error_handlers(app: FastAPI) -> None:
    """Setup error handlers for the FastAPI application.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(TokenProxyError)
    async def token_proxy_error_handler(
        request: Request, exc: TokenProxyError
    ) -> JSONResponse:
        log_func = logger.warning if exc.status_code < 500 else logger.error
        log_func(
            exc.error_type,
            error_message=exc.message,
            status_code=exc.status_code,
            request_method=request.method,
            request_url=str(request.url.path),
        )
        return _error_response(request, exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.info("request_validation_error", request_url=str(request.url.path))
        return _error_response(request, 400, "malformed request body")

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        """Handle HTTP exceptions (404, 405, ...)."""
        logger.debug(
            "http_exception",
            status_code=exc.status_code,
            error_message=exc.detail,
            request_method=request.method,
            request_url=str(request.url.path),
        )
        return _error_response(request, exc.status_code, str(exc.detail).lower())

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle all other unhandled exceptions."""
        logger.error(
            "unhandled_exception",
            error_type=type(exc).__name__,
            request_method=request.method,
            request_url=str(request.url.path),
            exc_info=exc,
        )
        return _error_response(request, 500, "internal error")
