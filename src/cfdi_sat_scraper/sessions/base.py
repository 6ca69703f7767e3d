"""
Common base of the login strategies.

Owns what both strategies share: the bound HttpGateway, the SessionState
machine, the session probe and the post-login identity check. A strategy
only implements `get_identity()` and `_authenticate()`, which runs its
handshake and returns the HTML of the page reached after login.

State transitions:

  UNAUTHENTICATED ──login()──▶ AUTHENTICATING ──▶ AUTHENTICATED
                                     │
                                     └──────────▶ FAILED (failure_reason)

  any state ──logout()──▶ UNAUTHENTICATED
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager

import structlog

from cfdi_sat_scraper import portal
from cfdi_sat_scraper.adapters.html_form import BeautifulSoupFormExtractor
from cfdi_sat_scraper.domain.errors import LoginError, TransportError
from cfdi_sat_scraper.domain.models import SessionState
from cfdi_sat_scraper.domain.ports import FormExtractor, HttpGateway

log = structlog.get_logger()


class BaseSessionManager(ABC):
    """Login state machine bound to one identity and one HttpGateway."""

    def __init__(self, form_extractor: FormExtractor | None = None) -> None:
        self._http_gateway: HttpGateway | None = None
        self._form_extractor: FormExtractor = form_extractor or BeautifulSoupFormExtractor()
        self._state = SessionState.UNAUTHENTICATED
        self._failure_reason: LoginError | None = None

    @abstractmethod
    def get_identity(self) -> str:
        """RFC of the identity this manager logs in."""

    @abstractmethod
    def _authenticate(self, gateway: HttpGateway) -> str:
        """Run the strategy handshake and return the page reached after login."""

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def failure_reason(self) -> LoginError | None:
        return self._failure_reason

    @property
    def http_gateway(self) -> HttpGateway:
        if self._http_gateway is None:
            raise RuntimeError("Must set http gateway property before use")
        return self._http_gateway

    def set_http_gateway(self, gateway: HttpGateway) -> None:
        self._http_gateway = gateway

    def has_active_session(self) -> bool:
        """
        Probe the portal home page for the identity marker.

        Never raises on transport failures: an unreachable portal is
        reported as "no session" so the check is safe to poll.
        """
        gateway = self.http_gateway
        if gateway.is_cookie_jar_empty():
            return False
        try:
            html = gateway.get(portal.URL_PORTAL_CFDI)
        except TransportError as e:
            log.debug("session.probe_failed", rfc=self.get_identity(), error=str(e))
            return False
        return self.is_authenticated_page(html)

    def is_authenticated_page(self, html: str) -> bool:
        return portal.authenticated_marker(self.get_identity()) in html

    def login(self) -> None:
        """
        Authenticate against the portal.

        On any failure the state becomes FAILED and LoginError is raised
        carrying the identity, the step and the underlying cause.
        """
        gateway = self.http_gateway
        rfc = self.get_identity()
        self._state = SessionState.AUTHENTICATING
        self._failure_reason = None
        log.info("session.login_started", rfc=rfc, strategy=type(self).__name__)
        try:
            html = self._authenticate(gateway)
            self.access_portal_main_page(html)
        except LoginError as e:
            self._fail(e)
            raise
        except Exception as e:
            error = LoginError(rfc, f"Unexpected error during login for {rfc}: {e}", step="login", cause=e)
            self._fail(error)
            raise error from e
        self._state = SessionState.AUTHENTICATED
        log.info("session.login_completed", rfc=rfc)

    def _fail(self, error: LoginError) -> None:
        self._state = SessionState.FAILED
        self._failure_reason = error
        log.error("session.login_failed", rfc=error.identity, step=error.step, error=str(error))

    def access_portal_main_page(self, html: str) -> None:
        if not self.is_authenticated_page(html):
            raise LoginError.not_registered_after_login(self.get_identity())

    def logout(self) -> None:
        gateway = self.http_gateway
        if not gateway.is_cookie_jar_empty():
            try:
                gateway.get(portal.URL_PORTAL_CFDI_LOGOUT)
            except TransportError as e:
                log.info("session.logout_request_failed", rfc=self.get_identity(), error=str(e))
        gateway.clear_cookie_jar()
        self._state = SessionState.UNAUTHENTICATED
        self._failure_reason = None
        log.info("session.logged_out", rfc=self.get_identity())

    @contextmanager
    def _login_step(self, step: str) -> Iterator[None]:
        """Turn a TransportError raised inside the block into a LoginError for `step`."""
        log.debug("session.login_step", rfc=self.get_identity(), step=step)
        try:
            yield
        except TransportError as e:
            raise LoginError.connection_error(step, self.get_identity(), e) from e
