"""
HTTP adapter — portal round trips via one httpx.Client and its cookie jar.

Adapter layer — implements the HttpGateway port.

The client follows the portal redirect chains and keeps every cookie it
receives, so one gateway instance IS the portal session of one identity.
Never share an instance between identities.

All httpx errors, HTTP error statuses and empty bodies are converted into
TransportError tagged with the protocol step. No retry happens here; the
caller decides (see cfdi_sat_scraper.pipeline).
"""

from __future__ import annotations

from collections.abc import Mapping
from types import TracebackType

import httpx
import structlog

from cfdi_sat_scraper import portal
from cfdi_sat_scraper.domain.errors import TransportError

log = structlog.get_logger()


class HttpxSatGateway:
    """
    Blocking portal gateway backed by httpx.

    Implements the HttpGateway port.
    """

    def __init__(
        self,
        client: httpx.Client | None = None,
        timeout: float = 30,
        verify_tls: bool = True,
        user_agent: str = portal.USER_AGENT,
    ) -> None:
        self._client = client or httpx.Client(
            timeout=timeout,
            verify=verify_tls,
            follow_redirects=True,
            headers={"User-Agent": user_agent},
        )

    @property
    def client(self) -> httpx.Client:
        return self._client

    def get(self, url: str, headers: Mapping[str, str] | None = None) -> str:
        return self._request("GET", url, "get page", headers=headers)

    def post(
        self,
        url: str,
        form: Mapping[str, str],
        headers: Mapping[str, str] | None = None,
    ) -> str:
        return self._request("POST", url, "post form", headers=headers, data=dict(form))

    def is_cookie_jar_empty(self) -> bool:
        return len(self._client.cookies.jar) == 0

    def clear_cookie_jar(self) -> None:
        self._client.cookies.clear()

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> HttpxSatGateway:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _request(
        self,
        method: str,
        url: str,
        when: str,
        headers: Mapping[str, str] | None = None,
        data: dict[str, str] | None = None,
    ) -> str:
        """Send one request; every failure leaves as TransportError."""
        try:
            response = self._client.request(
                method,
                url,
                headers=dict(headers) if headers else None,
                data=data,
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            log.warning("gateway.request_failed", method=method, url=url, error=str(e))
            raise TransportError(when, url, e) from e

        body = response.text
        if body == "":
            log.warning("gateway.empty_response", method=method, url=url)
            raise TransportError(when, url, ValueError("empty response body"))

        log.debug(
            "gateway.response",
            method=method,
            url=url,
            status=response.status_code,
            size_bytes=len(response.content),
        )
        return body
