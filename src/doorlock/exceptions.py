"""Custom exception hierarchy for doorlock."""

from __future__ import annotations


class DoorlockError(Exception):
    """Base exception for all doorlock errors."""


class DoorlockConfigError(DoorlockError):
    """Invalid or missing configuration."""


class DoorlockHardwareError(DoorlockError):
    """The GPIO daemon could not be reached."""


class VerificationError(DoorlockError):
    """A verification round trip did not produce a usable outcome."""


class VerificationTransportError(VerificationError):
    """HTTP-level failure talking to the verification authority (network, non-200)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class VerificationParseError(VerificationError):
    """The verification authority answered with a body we cannot interpret."""

    def __init__(self, message: str, *, body: str = "") -> None:
        self.body = body
        super().__init__(message)


class VerificationDeniedError(VerificationError):
    """The verification authority answered ``succeed=false``.

    Only raised into a waiting requester when a repeated session is
    configured with ``respond_on_denied``; the default is to leave the
    requester unresolved.
    """
