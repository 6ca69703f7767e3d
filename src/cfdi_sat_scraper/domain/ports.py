"""
Ports — Protocol-based interfaces for the collaborators of the core.

These define WHAT the protocols need without specifying HOW it is done:

  Domain ← Ports (protocols) ← Adapters (implementations)

  HttpGateway       GET/POST against the portal sharing one cookie jar
  FormExtractor     name → value of the fields of one HTML form
  CredentialSigner  the FIEL certificate and its private key
  SessionManager    login state machine producing an authenticated gateway

Adapters satisfy a port simply by implementing its methods.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Protocol, runtime_checkable

from cfdi_sat_scraper.domain.models import SessionState


@runtime_checkable
class HttpGateway(Protocol):
    """
    Port: blocking HTTP round trips bound to a shared cookie jar.

    Both request methods return the response body as text and raise
    TransportError on network failure, HTTP error status or empty body.
    """

    def get(self, url: str, headers: Mapping[str, str] | None = None) -> str: ...

    def post(
        self,
        url: str,
        form: Mapping[str, str],
        headers: Mapping[str, str] | None = None,
    ) -> str: ...

    def is_cookie_jar_empty(self) -> bool: ...

    def clear_cookie_jar(self) -> None: ...


@runtime_checkable
class FormExtractor(Protocol):
    """
    Port: read the submittable fields of the form matched by a CSS selector.

    Returns an empty mapping when the selector matches nothing; callers
    treat that as a parse failure wherever the form is mandatory.
    Field names matching any of the `exclude` regular expressions are skipped.
    """

    def extract_fields(
        self,
        html: str,
        selector: str,
        exclude: Iterable[str] = (),
    ) -> dict[str, str]: ...


@runtime_checkable
class CredentialSigner(Protocol):
    """Port: a FIEL credential able to sign the login challenge."""

    def subject_id(self) -> str: ...

    def serial_number(self) -> str: ...

    def valid_to_timestamp(self) -> str: ...

    def is_valid(self) -> bool: ...

    def sign(self, data: bytes, algorithm: str = "sha1") -> bytes: ...


@runtime_checkable
class SessionManager(Protocol):
    """Port: produce and keep an authenticated portal session for one identity."""

    @property
    def state(self) -> SessionState: ...

    @property
    def http_gateway(self) -> HttpGateway: ...

    def set_http_gateway(self, gateway: HttpGateway) -> None: ...

    def get_identity(self) -> str: ...

    def has_active_session(self) -> bool: ...

    def login(self) -> None: ...

    def logout(self) -> None: ...
