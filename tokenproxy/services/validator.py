"""Inbound request validation for the exchange endpoint."""

import json
from collections.abc import Mapping

from tokenproxy.config.core import CORSSettings
from tokenproxy.core.errors import BadRequestError, OriginNotAllowedError
from tokenproxy.core.logging import get_logger
from tokenproxy.models.exchange import ExchangeRequest
from tokenproxy.utils.cors import get_request_origin


logger = get_logger(__name__)


class RequestValidator:
    """Turns a raw inbound request into an ExchangeRequest or rejects it.

    Validation is pure: no network calls, no state. The origin check runs
    first, so a disallowed caller never reaches the body parsing, let alone
    the provider.
    """

    def __init__(self, cors_settings: CORSSettings) -> None:
        self.cors_settings = cors_settings

    def validate(self, headers: Mapping[str, str], body: bytes) -> ExchangeRequest:
        """Validate origin and body.

        Args:
            headers: Inbound request headers (any key case)
            body: Raw inbound request body

        Returns:
            The validated exchange request

        Raises:
            OriginNotAllowedError: Origin header absent or not allow-listed
            BadRequestError: Body malformed or ``code`` missing/empty. Its
                ``origin`` carries the already validated origin.
        """
        origin = self.validate_origin(headers)
        try:
            code = self.parse_code(body)
        except BadRequestError as e:
            e.origin = origin
            raise
        return ExchangeRequest(origin=origin, authorization_code=code)

    def validate_origin(self, headers: Mapping[str, str]) -> str:
        origin = get_request_origin(headers)
        if origin is None or not self.cors_settings.is_origin_allowed(origin):
            logger.warning("origin_rejected", origin=origin)
            raise OriginNotAllowedError()
        return origin

    def parse_code(self, body: bytes) -> str:
        if not body or not body.strip():
            raise BadRequestError("missing code")

        try:
            data = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.info("request_body_invalid_json", error=str(e))
            raise BadRequestError("malformed request body") from e

        if not isinstance(data, dict):
            raise BadRequestError("malformed request body")

        code = data.get("code")
        if code is None:
            raise BadRequestError("missing code")
        if not isinstance(code, str):
            raise BadRequestError("malformed request body")
        if not code.strip():
            raise BadRequestError("missing code")

        return code
