"""Tests for the exchange orchestration."""

import json

import httpx
import pytest

from tokenproxy.models.exchange import ExchangeState, FailureKind
from tokenproxy.services.exchange import ExchangeService
from tests.helpers.settings import (
    ALLOWED_ORIGIN,
    CLIENT_SECRET,
    DISALLOWED_ORIGIN,
    make_settings,
)


class CountingProvider:
    def __init__(self, response: httpx.Response) -> None:
        self.response = response
        self.calls = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        return self.response


@pytest.fixture
def provider() -> CountingProvider:
    return CountingProvider(
        httpx.Response(200, content=b'{"access_token":"xyz","token_type":"bearer"}')
    )


@pytest.fixture
async def service(provider: CountingProvider):
    async with httpx.AsyncClient(transport=httpx.MockTransport(provider)) as client:
        yield ExchangeService(make_settings(), client)


@pytest.mark.unit
class TestRun:
    async def test_valid_request_is_exchanged(
        self, service: ExchangeService, provider: CountingProvider
    ) -> None:
        outcome = await service.run({"origin": ALLOWED_ORIGIN}, b'{"code":"abc"}')

        assert outcome.state is ExchangeState.RESPONDED
        assert outcome.origin == ALLOWED_ORIGIN
        assert outcome.request is not None
        assert outcome.request.authorization_code == "abc"
        assert outcome.result.success
        assert provider.calls == 1

    async def test_disallowed_origin_never_reaches_provider(
        self, service: ExchangeService, provider: CountingProvider
    ) -> None:
        outcome = await service.run({"origin": DISALLOWED_ORIGIN}, b'{"code":"abc"}')

        assert outcome.state is ExchangeState.REJECTED
        assert outcome.origin is None
        assert outcome.result.kind is FailureKind.ORIGIN_NOT_ALLOWED
        assert provider.calls == 0

    async def test_missing_code_never_reaches_provider(
        self, service: ExchangeService, provider: CountingProvider
    ) -> None:
        outcome = await service.run({"origin": ALLOWED_ORIGIN}, b"{}")

        assert outcome.state is ExchangeState.REJECTED
        assert outcome.origin == ALLOWED_ORIGIN
        assert outcome.result.kind is FailureKind.BAD_REQUEST
        assert outcome.result.message == "missing code"
        assert provider.calls == 0


@pytest.mark.unit
class TestHandle:
    async def test_success_response(self, service: ExchangeService) -> None:
        response = await service.handle(
            {"origin": ALLOWED_ORIGIN}, b'{"code":"abc"}'
        )

        assert response.status_code == 200
        assert response.body == (
            b'{"success":true,"body":{"access_token":"xyz","token_type":"bearer"}}'
        )
        assert response.headers["access-control-allow-origin"] == ALLOWED_ORIGIN
        assert CLIENT_SECRET.encode() not in response.body

    async def test_forbidden_response_has_no_cors_headers(
        self, service: ExchangeService
    ) -> None:
        response = await service.handle({"origin": DISALLOWED_ORIGIN}, b"{}")

        assert response.status_code == 403
        assert json.loads(response.body) == {
            "success": False,
            "error": "origin not allowed",
        }
        assert "access-control-allow-origin" not in response.headers

    async def test_bad_request_is_readable_by_allowed_origin(
        self, service: ExchangeService
    ) -> None:
        response = await service.handle({"origin": ALLOWED_ORIGIN}, b"garbage")

        assert response.status_code == 400
        assert json.loads(response.body)["error"] == "malformed request body"
        assert response.headers["access-control-allow-origin"] == ALLOWED_ORIGIN


@pytest.mark.unit
async def test_provider_error_never_echoes_secret() -> None:
    provider = CountingProvider(
        httpx.Response(
            401,
            json={"error": "invalid_client", "error_description": "Bad credentials"},
        )
    )
    async with httpx.AsyncClient(transport=httpx.MockTransport(provider)) as client:
        service = ExchangeService(make_settings(), client)
        response = await service.handle({"origin": ALLOWED_ORIGIN}, b'{"code":"abc"}')

    assert response.status_code == 502
    assert json.loads(response.body) == {
        "success": False,
        "error": "invalid_client: Bad credentials",
    }
    assert CLIENT_SECRET.encode() not in response.body
