"""Shared test fixtures for the token proxy.

Real components are used throughout; only the identity provider is faked,
either through pytest-httpx or an ``httpx.MockTransport``.
"""

import os
from collections.abc import Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from tokenproxy.api.app import create_app
from tokenproxy.config.settings import Settings
from tokenproxy.core.logging import setup_logging
from tests.helpers.settings import make_settings


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom settings."""
    setup_logging(json_logs=False, log_level_name="DEBUG", configure_uvicorn=False)


_CONFIG_PREFIXES = ("PROVIDER__", "CORS__", "SERVER__", "LOGGING__", "HTTP__")


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep configuration from the developer's shell out of the tests."""
    for name in list(os.environ):
        if name.upper().startswith(_CONFIG_PREFIXES):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def app(settings: Settings) -> FastAPI:
    return create_app(settings)


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """Test client with the application lifespan running."""
    with TestClient(app) as test_client:
        yield test_client

