"""Maps exchange results onto the proxy's response contract."""

import json

from starlette.responses import Response

from tokenproxy.models.exchange import TokenFailure, TokenResult, TokenSuccess


JSON_MEDIA_TYPE = "application/json"


class ResponseMapper:
    """Renders a TokenResult as ``{"success": ..., "body"|"error": ...}``.

    The provider's token payload is embedded byte-for-byte; the proxy never
    adds, strips, or reinterprets token fields.
    """

    def to_body(self, result: TokenResult) -> bytes:
        if isinstance(result, TokenSuccess):
            return b'{"success":true,"body":' + result.raw + b"}"
        return json.dumps(
            {"success": False, "error": result.message},
            separators=(",", ":"),
        ).encode("utf-8")

    def status_code(self, result: TokenResult) -> int:
        if isinstance(result, TokenFailure):
            return result.status_code
        return 200

    def to_response(
        self, result: TokenResult, headers: dict[str, str] | None = None
    ) -> Response:
        """Build the HTTP response for a result.

        Args:
            result: Exchange outcome
            headers: Extra headers, typically CORS headers for the validated origin
        """
        response_headers = {"Cache-Control": "no-store", "Pragma": "no-cache"}
        if headers:
            response_headers.update(headers)
        return Response(
            content=self.to_body(result),
            status_code=self.status_code(result),
            headers=response_headers,
            media_type=JSON_MEDIA_TYPE,
        )
