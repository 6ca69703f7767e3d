"""
Credential adapter — FIEL certificate and private key via cryptography (PyCA).

Adapter layer — implements the CredentialSigner port on top of objects
already loaded by the caller (x509.Certificate and an RSA private key).

SAT specifics:
  - the RFC lives in the subject x500UniqueIdentifier (OID 2.5.4.45),
    possibly followed by " / <CURP RFC>"; the first token is the RFC
  - the certificate serial number is an integer whose hex digits are the
    ASCII codes of the 20-digit SAT serial ("3330..." → "30...")
  - the portal expects the validity end as "yymmddHHMMSSZ"
"""

from __future__ import annotations

from datetime import UTC, datetime

import structlog
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.x509.oid import NameOID

from cfdi_sat_scraper.domain.errors import CredentialError

log = structlog.get_logger()

_HASHES: dict[str, type[hashes.HashAlgorithm]] = {
    "sha1": hashes.SHA1,
    "sha256": hashes.SHA256,
    "sha512": hashes.SHA512,
}


class FielCredential:
    """
    A FIEL (e.firma) credential able to sign the login challenge.

    Implements the CredentialSigner port.
    """

    def __init__(
        self,
        certificate: x509.Certificate,
        private_key: rsa.RSAPrivateKey | None,
    ) -> None:
        self._certificate = certificate
        self._private_key = private_key

    @property
    def certificate(self) -> x509.Certificate:
        return self._certificate

    def subject_id(self) -> str:
        attributes = self._certificate.subject.get_attributes_for_oid(NameOID.X500_UNIQUE_IDENTIFIER)
        if not attributes:
            return ""
        value = attributes[0].value
        if isinstance(value, bytes):
            value = value.decode()
        return value.split("/")[0].strip()

    def serial_number(self) -> str:
        hex_serial = format(self._certificate.serial_number, "x")
        if len(hex_serial) % 2:
            hex_serial = "0" + hex_serial
        raw = bytes.fromhex(hex_serial)
        try:
            return raw.decode("ascii")
        except UnicodeDecodeError:
            # not a SAT issued certificate, keep the plain decimal serial
            return str(self._certificate.serial_number)

    def valid_from(self) -> datetime:
        return self._certificate.not_valid_before_utc

    def valid_to(self) -> datetime:
        return self._certificate.not_valid_after_utc

    def valid_to_timestamp(self) -> str:
        return self.valid_to().strftime("%y%m%d%H%M%S") + "Z"

    def is_valid(self, moment: datetime | None = None) -> bool:
        if self._private_key is None:
            return False
        moment = moment or datetime.now(UTC)
        return self.valid_from() <= moment <= self.valid_to()

    def sign(self, data: bytes, algorithm: str = "sha1") -> bytes:
        """
        Sign `data` with PKCS#1 v1.5 and the given hash algorithm.

        Raises CredentialError if the credential has no private key or is
        outside its validity window.
        """
        if self._private_key is None:
            raise CredentialError("The credential has no private key")
        if not self.is_valid():
            raise CredentialError(
                f"The credential is not valid now (valid from {self.valid_from().isoformat()} "
                f"to {self.valid_to().isoformat()})"
            )
        try:
            hash_type = _HASHES[algorithm.lower()]
        except KeyError:
            raise CredentialError(f"Unsupported signature algorithm {algorithm!r}") from None
        signature = self._private_key.sign(data, padding.PKCS1v15(), hash_type())
        log.debug("credential.signed", algorithm=algorithm, size_bytes=len(signature))
        return signature
