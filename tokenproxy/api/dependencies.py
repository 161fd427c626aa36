"""Shared dependencies for the token proxy API."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from tokenproxy.config.settings import Settings
from tokenproxy.core.logging import get_logger
from tokenproxy.services.exchange import ExchangeService


logger = get_logger(__name__)


def get_settings(request: Request) -> Settings:
    """Get the settings the application was created with."""
    settings: Settings = request.app.state.settings
    return settings


def get_exchange_service(request: Request) -> ExchangeService:
    """Get the exchange service created during application startup."""
    service: ExchangeService | None = getattr(
        request.app.state, "exchange_service", None
    )
    if service is None:
        logger.error("exchange_service_missing_on_app_state", category="lifecycle")
        raise HTTPException(status_code=503, detail="service not initialized")
    return service


SettingsDep = Annotated[Settings, Depends(get_settings)]
ExchangeServiceDep = Annotated[ExchangeService, Depends(get_exchange_service)]
