"""HTTP client construction for calls to the identity provider.

A single client is created per application lifespan and shared by every
request; httpx connection pools are safe for concurrent use.
"""

import os
import ssl
from pathlib import Path
from typing import Any

import httpx

from tokenproxy.config.settings import Settings
from tokenproxy.core.logging import get_logger


logger = get_logger(__name__)


class HTTPClientFactory:
    """Factory for provider HTTP clients.

    Provides centralized configuration for HTTP clients with:
    - Timeouts bounded by the configured provider timeout
    - Connection limits from the HTTP settings
    - Proxy and CA bundle discovery from the environment
    """

    @staticmethod
    def create_client(
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        **kwargs: Any,
    ) -> httpx.AsyncClient:
        """Create a provider HTTP client.

        Args:
            settings: Application settings
            transport: Optional transport override (used by tests)
            **kwargs: Additional httpx.AsyncClient arguments

        Returns:
            Configured httpx.AsyncClient instance
        """
        upstream_timeout = settings.provider.timeout

        # Every phase is capped by the overall exchange timeout
        timeout = httpx.Timeout(
            connect=min(5.0, upstream_timeout),
            read=upstream_timeout,
            write=upstream_timeout,
            pool=upstream_timeout,
        )

        if transport is None:
            verify: ssl.SSLContext | bool = (
                _get_ssl_context() if settings.http.verify else False
            )
            limits = httpx.Limits(
                max_keepalive_connections=settings.http.max_keepalive_connections,
                max_connections=settings.http.max_connections,
            )
            transport = httpx.AsyncHTTPTransport(
                limits=limits,
                verify=verify,
                proxy=_get_proxy_url(),
            )

        headers = {"accept-encoding": "identity"}
        if "headers" in kwargs:
            headers.update(kwargs.pop("headers"))

        logger.debug(
            "http_client_created",
            timeout=upstream_timeout,
            max_connections=settings.http.max_connections,
            verify=settings.http.verify,
        )

        return httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            headers=headers,
            follow_redirects=False,
            **kwargs,
        )


def _get_proxy_url() -> str | None:
    """Get proxy URL from environment variables.

    Returns:
        str or None: Proxy URL if any proxy is set
    """
    # For HTTPS requests, prioritize HTTPS_PROXY
    https_proxy = os.environ.get("HTTPS_PROXY") or os.environ.get("https_proxy")
    all_proxy = os.environ.get("ALL_PROXY")
    http_proxy = os.environ.get("HTTP_PROXY") or os.environ.get("http_proxy")

    proxy_url = https_proxy or all_proxy or http_proxy

    if proxy_url:
        logger.debug("proxy_configured", operation="get_proxy_url")

    return proxy_url


def _get_ssl_context() -> ssl.SSLContext | bool:
    """Get SSL verification configuration from environment variables.

    Returns:
        A context trusting the CA bundle from the environment, or True for
        default verification
    """
    ca_bundle = os.environ.get("REQUESTS_CA_BUNDLE") or os.environ.get("SSL_CERT_FILE")

    if ca_bundle and Path(ca_bundle).exists():
        logger.info(
            "ssl_ca_bundle_configured",
            ca_bundle_path=ca_bundle,
            operation="get_ssl_context",
        )
        return ssl.create_default_context(cafile=ca_bundle)
    return True
