"""
FIEL login — certificate challenge/response handshake.

  1. GET portal home            (portal redirects toward the password login)
  2. POST {} to password login  (mirrors the portal redirect chain, result discarded)
  3. GET FIEL login page        (Referer: password login) → challenge in #certform
  4. read the challenge token   (field "" or "guid", "" when missing)
  5. sign "token|rfc|serial"    → base64(base64(source) "#" base64(base64(signature)))
  6. POST signed challenge      → auto-submit form
  7. POST auto-submit fields to the portal home
  8. the resulting page must show the identity marker

The double base64 encoding and the "#" separator are the portal wire
format and must be kept byte for byte.
"""

from __future__ import annotations

import base64

import structlog

from cfdi_sat_scraper import portal
from cfdi_sat_scraper.domain.errors import CredentialError, LoginError
from cfdi_sat_scraper.domain.ports import CredentialSigner, FormExtractor, HttpGateway
from cfdi_sat_scraper.sessions.base import BaseSessionManager

log = structlog.get_logger()

CHALLENGE_FORM_SELECTOR = "#certform"
AUTO_SUBMIT_FORM_SELECTOR = "form"
SIGNATURE_ALGORITHM = "sha1"


class FielSessionManager(BaseSessionManager):
    """Session manager that logs in by signing the portal challenge with a FIEL."""

    def __init__(
        self,
        credential: CredentialSigner,
        form_extractor: FormExtractor | None = None,
    ) -> None:
        super().__init__(form_extractor)
        self._credential = credential

    @property
    def credential(self) -> CredentialSigner:
        return self._credential

    def get_identity(self) -> str:
        return self._credential.subject_id()

    def _authenticate(self, gateway: HttpGateway) -> str:
        rfc = self.get_identity()
        if not self._credential.is_valid():
            raise LoginError(rfc, f"The FIEL credential of {rfc} is not valid", step="check credential")

        with self._login_step("contact portal main page"):
            gateway.get(portal.URL_PORTAL_CFDI)

        with self._login_step("post to password login page"):
            gateway.post(
                portal.URL_CIEC_LOGIN,
                {},
                portal.post_headers(portal.HOST_CFDI_AUTH, portal.URL_CIEC_LOGIN),
            )

        with self._login_step("get FIEL challenge page"):
            html = gateway.get(portal.URL_FIEL_LOGIN, portal.get_headers(portal.URL_CIEC_LOGIN))

        inputs = self.resolve_challenge(html)

        with self._login_step("post FIEL signed challenge"):
            html = gateway.post(
                portal.URL_FIEL_LOGIN,
                inputs,
                portal.post_headers(portal.HOST_CFDI_AUTH, portal.URL_FIEL_LOGIN),
            )

        # wa, wresult, wctx
        inputs = self._form_extractor.extract_fields(html, AUTO_SUBMIT_FORM_SELECTOR)
        if not inputs:
            raise LoginError(rfc, "The FIEL login response has no form to submit", step="read auto-submit form")

        with self._login_step("post to portal main page"):
            return gateway.post(
                portal.URL_PORTAL_CFDI,
                inputs,
                portal.post_headers(portal.HOST_PORTAL_CFDI, portal.URL_FIEL_LOGIN),
            )

    def resolve_challenge(self, html: str) -> dict[str, str]:
        """Build the form that answers the challenge found in the FIEL login page."""
        inputs = self._form_extractor.extract_fields(html, CHALLENGE_FORM_SELECTOR)
        token_uuid = inputs.get("") or inputs.get("guid") or ""
        if not token_uuid:
            log.warning("fiel_login.challenge_token_missing", rfc=self.get_identity())
        try:
            token = self.create_token(token_uuid)
        except CredentialError as e:
            raise LoginError(self.get_identity(), str(e), step="sign FIEL challenge", cause=e) from e
        log.debug("fiel_login.challenge_resolved", rfc=self.get_identity())
        return {
            "token": token,
            "credentialsRequired": "CERT",
            "guid": token_uuid,
            "ks": "null",
            "seeder": "",
            "arc": "",
            "tan": "",
            "placer": "",
            "secuence": "",
            "urlApplet": portal.URL_FIEL_APPLET,
            "fert": self._credential.valid_to_timestamp(),
        }

    def create_token(self, token_uuid: str) -> str:
        rfc = self._credential.subject_id()
        serial = self._credential.serial_number()
        source = f"{token_uuid}|{rfc}|{serial}".encode()
        signature = self._credential.sign(source, SIGNATURE_ALGORITHM)
        encoded_signature = base64.b64encode(base64.b64encode(signature))
        return base64.b64encode(base64.b64encode(source) + b"#" + encoded_signature).decode("ascii")
