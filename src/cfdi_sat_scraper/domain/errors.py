"""
Error hierarchy for the portal protocols.

  ScraperError
   ├── TransportError   network / HTTP failure of one round trip
   ├── LoginError       authentication handshake failed
   ├── ParseError       expected form or table not found in a response
   ├── CredentialError  signing with an expired or incomplete credential
   └── InputError       invalid value object input (also a ValueError)

Nothing in the core retries on any of these; retry is a caller policy
(see cfdi_sat_scraper.pipeline).
"""

from __future__ import annotations


class ScraperError(Exception):
    """Base class of every error raised by cfdi_sat_scraper."""


class TransportError(ScraperError):
    """
    A request to the portal failed (network error, HTTP error status or empty body).

    `when` names the protocol step that issued the request.
    """

    def __init__(self, when: str, url: str, cause: BaseException | None = None) -> None:
        message = f"Unable to {when} ({url})"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.when = when
        self.url = url
        self.cause = cause


class LoginError(ScraperError):
    """The login handshake did not end with an authenticated session."""

    def __init__(
        self,
        identity: str,
        message: str,
        step: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.identity = identity
        self.step = step
        self.cause = cause

    @classmethod
    def connection_error(cls, step: str, identity: str, cause: TransportError) -> LoginError:
        return cls(
            identity,
            f"Connection error when {step} for {identity}: {cause}",
            step=step,
            cause=cause,
        )

    @classmethod
    def not_registered_after_login(cls, identity: str) -> LoginError:
        return cls(
            identity,
            f"It was expected to have the session registered on portal home page with RFC {identity}",
            step="access portal main page",
        )


class ParseError(ScraperError):
    """A response lacked the form, field or table the protocol step requires."""

    def __init__(self, step: str, message: str) -> None:
        super().__init__(f"{step}: {message}")
        self.step = step


class CredentialError(ScraperError):
    """The credential cannot sign: it is expired, not yet valid or has no private key."""


class InputError(ScraperError, ValueError):
    """Invalid input given to a value object."""

    @classmethod
    def empty_input(cls, name: str) -> InputError:
        return cls(f"The value of {name} cannot be empty")
