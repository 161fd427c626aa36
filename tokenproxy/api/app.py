"""FastAPI application factory for the token exchange proxy."""

import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from tokenproxy import __version__
from tokenproxy.api.middleware.errors import setup_error_handlers
from tokenproxy.api.middleware.request_id import RequestIDMiddleware
from tokenproxy.api.routes.exchange import router as exchange_router
from tokenproxy.api.routes.health import router as health_router
from tokenproxy.config.settings import Settings, default_env_file, load_settings
from tokenproxy.core.http_client import HTTPClientFactory
from tokenproxy.core.logging import get_logger, setup_logging
from tokenproxy.services.exchange import ExchangeService


logger = get_logger(__name__)


def create_app(
    settings: Settings | None = None,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Loaded settings. When omitted they are loaded from the
            environment and the file named by $TOKENPROXY_ENV_FILE (default
            .env), and logging is configured from them. A missing value
            raises ConfigurationError before the app exists.
        http_client: Optional provider HTTP client. The app only closes
            clients it created itself.

    Returns:
        The configured application
    """
    if settings is None:
        settings = load_settings(env_file=default_env_file())
        setup_logging(
            json_logs=settings.logging.use_json(sys.stderr.isatty()),
            log_level_name=settings.logging.level,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan manager."""
        owns_client = http_client is None
        client = http_client or HTTPClientFactory.create_client(settings)
        app.state.exchange_service = ExchangeService(settings, client)

        logger.info(
            "server_ready",
            version=__version__,
            token_url=settings.provider.token_url,
            allowed_origins=sorted(settings.cors.origins),
            category="lifecycle",
        )
        try:
            yield
        finally:
            if owns_client:
                await client.aclose()
            logger.info("server_shutdown", category="lifecycle")

    app = FastAPI(
        title="Token Exchange Proxy",
        description="Exchanges OAuth2 authorization codes for browser-only clients without exposing the client secret",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(RequestIDMiddleware)
    setup_error_handlers(app)

    app.include_router(health_router)
    app.include_router(exchange_router)

    return app
