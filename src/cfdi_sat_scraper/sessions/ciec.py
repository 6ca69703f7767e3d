"""
CIEC login — RFC and password posted to the portal login form.

The login page may show a captcha image. When a captcha resolver callable
is configured it receives the image bytes and returns the typed text;
without one the form is posted without the captcha answer.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeAlias

import structlog

from cfdi_sat_scraper import portal
from cfdi_sat_scraper.adapters.html_form import read_embedded_image
from cfdi_sat_scraper.domain.ports import FormExtractor, HttpGateway
from cfdi_sat_scraper.sessions.base import BaseSessionManager

log = structlog.get_logger()

CAPTCHA_IMAGE_SELECTOR = "#divCaptcha img"

CaptchaResolver: TypeAlias = Callable[[bytes], str]


class CiecSessionManager(BaseSessionManager):
    """Session manager that logs in with RFC and CIEC password."""

    def __init__(
        self,
        rfc: str,
        password: str,
        captcha_resolver: CaptchaResolver | None = None,
        form_extractor: FormExtractor | None = None,
    ) -> None:
        super().__init__(form_extractor)
        self._rfc = rfc.upper()
        self._password = password
        self._captcha_resolver = captcha_resolver

    def get_identity(self) -> str:
        return self._rfc

    def _authenticate(self, gateway: HttpGateway) -> str:
        with self._login_step("get password login page"):
            html = gateway.get(portal.URL_CIEC_LOGIN)

        form = {
            "Ecom_User_ID": self._rfc,
            "Ecom_Password": self._password,
            "option": "credential",
            "submit": "Enviar",
        }
        captcha = self._resolve_captcha(html)
        if captcha:
            form["userCaptcha"] = captcha

        with self._login_step("post password login data"):
            gateway.post(
                portal.URL_CIEC_LOGIN,
                form,
                portal.post_headers(portal.HOST_CFDI_AUTH, portal.URL_CIEC_LOGIN),
            )

        with self._login_step("get portal main page"):
            html = gateway.get(portal.URL_PORTAL_CFDI)
        if self.is_authenticated_page(html):
            return html

        # the portal may answer with the wsfed auto-submit form first
        inputs = self._form_extractor.extract_fields(html, "form")
        if not inputs:
            return html
        with self._login_step("post to portal main page"):
            return gateway.post(
                portal.URL_PORTAL_CFDI,
                inputs,
                portal.post_headers(portal.HOST_PORTAL_CFDI, portal.URL_CIEC_LOGIN),
            )

    def _resolve_captcha(self, html: str) -> str:
        image = read_embedded_image(html, CAPTCHA_IMAGE_SELECTOR)
        if image is None:
            return ""
        if self._captcha_resolver is None:
            log.warning("ciec_login.captcha_unresolved", rfc=self._rfc)
            return ""
        return self._captcha_resolver(image).strip()
