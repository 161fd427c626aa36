"""End-to-end tests for POST /exchange against a faked provider."""

import asyncio
import json
import time

import httpx
import pytest
from fastapi.testclient import TestClient
from pytest_httpx import HTTPXMock

from tokenproxy.api.app import create_app
from tests.fixtures.external_apis.provider_api import TOKEN_PAYLOAD, FakeTokenEndpoint
from tests.helpers.settings import (
    ALLOWED_ORIGIN,
    CLIENT_SECRET,
    DISALLOWED_ORIGIN,
    OTHER_ALLOWED_ORIGIN,
    TOKEN_URL,
    make_settings,
)


def post_exchange(
    client: TestClient, body: dict | bytes | None, origin: str | None = ALLOWED_ORIGIN
) -> httpx.Response:
    headers = {"Content-Type": "application/json"}
    if origin is not None:
        headers["Origin"] = origin
    content = body if isinstance(body, bytes) else json.dumps(body).encode()
    return client.post("/exchange", content=content, headers=headers)


@pytest.mark.integration
class TestSuccessfulExchange:
    def test_returns_provider_payload(
        self, client: TestClient, mock_provider_api: FakeTokenEndpoint
    ) -> None:
        response = post_exchange(client, {"code": "abc123"})

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "body": {"access_token": "xyz", "token_type": "bearer"},
        }
        assert response.headers["access-control-allow-origin"] == ALLOWED_ORIGIN
        assert response.headers["cache-control"] == "no-store"
        assert mock_provider_api.call_count == 1

    def test_payload_is_byte_for_byte(
        self, client: TestClient, mock_provider_api: FakeTokenEndpoint
    ) -> None:
        response = post_exchange(client, {"code": "abc123"})

        assert response.content == b'{"success":true,"body":' + TOKEN_PAYLOAD + b"}"

    def test_second_allowed_origin_is_echoed(
        self, client: TestClient, mock_provider_api: FakeTokenEndpoint
    ) -> None:
        response = post_exchange(client, {"code": "abc123"}, origin=OTHER_ALLOWED_ORIGIN)

        assert response.status_code == 200
        assert (
            response.headers["access-control-allow-origin"] == OTHER_ALLOWED_ORIGIN
        )

    def test_secret_sent_upstream_but_never_returned(
        self, client: TestClient, mock_provider_api: FakeTokenEndpoint
    ) -> None:
        response = post_exchange(client, {"code": "abc123"})

        assert mock_provider_api.payloads()[0]["client_secret"] == CLIENT_SECRET
        assert mock_provider_api.payloads()[0]["code"] == "abc123"
        assert CLIENT_SECRET not in response.text
        assert CLIENT_SECRET not in str(response.headers)

    def test_code_reused_fails_at_provider(
        self, client: TestClient, mock_provider_api: FakeTokenEndpoint
    ) -> None:
        first = post_exchange(client, {"code": "abc123"})
        second = post_exchange(client, {"code": "abc123"})

        assert first.status_code == 200
        assert second.status_code == 502
        assert second.json() == {
            "success": False,
            "error": "invalid_grant: The code has already been used",
        }
        assert mock_provider_api.call_count == 2


@pytest.mark.integration
class TestRejectedBeforeProvider:
    def test_disallowed_origin(
        self, client: TestClient, httpx_mock: HTTPXMock
    ) -> None:
        response = post_exchange(client, {"code": "abc123"}, origin=DISALLOWED_ORIGIN)

        assert response.status_code == 403
        assert response.json() == {"success": False, "error": "origin not allowed"}
        assert "access-control-allow-origin" not in response.headers
        assert httpx_mock.get_requests() == []

    def test_missing_origin(self, client: TestClient, httpx_mock: HTTPXMock) -> None:
        response = post_exchange(client, {"code": "abc123"}, origin=None)

        assert response.status_code == 403
        assert httpx_mock.get_requests() == []

    def test_missing_code(self, client: TestClient, httpx_mock: HTTPXMock) -> None:
        response = post_exchange(client, {})

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "missing code"}
        assert response.headers["access-control-allow-origin"] == ALLOWED_ORIGIN
        assert httpx_mock.get_requests() == []

    def test_empty_body(self, client: TestClient, httpx_mock: HTTPXMock) -> None:
        response = post_exchange(client, b"")

        assert response.status_code == 400
        assert response.json()["error"] == "missing code"
        assert httpx_mock.get_requests() == []

    def test_malformed_body(self, client: TestClient, httpx_mock: HTTPXMock) -> None:
        response = post_exchange(client, b"{not json")

        assert response.status_code == 400
        assert response.json()["error"] == "malformed request body"
        assert httpx_mock.get_requests() == []


@pytest.mark.integration
class TestProviderFailures:
    def test_provider_rejects_code(
        self, client: TestClient, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_response(
            url=TOKEN_URL,
            method="POST",
            status_code=400,
            json={"error": "invalid_grant", "error_description": "Code expired"},
        )

        response = post_exchange(client, {"code": "stale"})

        assert response.status_code == 502
        assert response.json() == {
            "success": False,
            "error": "invalid_grant: Code expired",
        }
        assert response.headers["access-control-allow-origin"] == ALLOWED_ORIGIN

    def test_provider_error_with_200_status(
        self, client: TestClient, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_response(
            url=TOKEN_URL,
            method="POST",
            status_code=200,
            json={
                "error": "bad_verification_code",
                "error_description": "The code passed is incorrect or expired.",
            },
        )

        response = post_exchange(client, {"code": "stale"})

        assert response.status_code == 502
        assert response.json()["success"] is False

    def test_provider_read_timeout(
        self, client: TestClient, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_exception(httpx.ReadTimeout("timed out"), url=TOKEN_URL)

        response = post_exchange(client, {"code": "abc123"})

        assert response.status_code == 504
        assert response.json() == {"success": False, "error": "timeout"}
        assert len(httpx_mock.get_requests()) == 1

    def test_provider_unreachable(
        self, client: TestClient, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_exception(
            httpx.ConnectError("Name or service not known"),
            url=TOKEN_URL,
            is_reusable=True,
        )

        response = post_exchange(client, {"code": "abc123"})

        assert response.status_code == 502
        assert response.json() == {"success": False, "error": "upstream unavailable"}
        # first attempt plus the configured two retries
        assert len(httpx_mock.get_requests()) == 3

    def test_provider_non_json_success(
        self, client: TestClient, httpx_mock: HTTPXMock
    ) -> None:
        httpx_mock.add_response(
            url=TOKEN_URL, method="POST", status_code=200, text="<html>hi</html>"
        )

        response = post_exchange(client, {"code": "abc123"})

        assert response.status_code == 502
        assert response.json()["error"] == "invalid upstream response"


@pytest.mark.integration
def test_request_id_round_trip(
    client: TestClient, mock_provider_api: FakeTokenEndpoint
) -> None:
    response = client.post(
        "/exchange",
        json={"code": "abc123"},
        headers={"Origin": ALLOWED_ORIGIN, "X-Request-ID": "trace-42"},
    )

    assert response.status_code == 200
    assert response.headers["x-request-id"] == "trace-42"


@pytest.mark.integration
def test_openapi_documents_exchange(client: TestClient) -> None:
    schema = client.get("/openapi.json").json()

    assert "/exchange" in schema["paths"]
    assert "post" in schema["paths"]["/exchange"]


@pytest.mark.integration
def test_provider_hang_returns_timeout() -> None:
    async def hang(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(5)
        return httpx.Response(200, json={"access_token": "late"})

    provider_client = httpx.AsyncClient(transport=httpx.MockTransport(hang))
    app = create_app(make_settings(timeout=0.3), http_client=provider_client)

    with TestClient(app) as client:
        started = time.monotonic()
        response = post_exchange(client, {"code": "abc123"})
        elapsed = time.monotonic() - started

    assert response.status_code == 504
    assert response.json() == {"success": False, "error": "timeout"}
    assert response.headers["access-control-allow-origin"] == ALLOWED_ORIGIN
    assert elapsed < 2.0
