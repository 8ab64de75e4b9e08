"""Exception types raised by the interaction router."""

from __future__ import annotations


class InteractionRouterError(Exception):
    """Base error for the interaction router."""


class SignatureDecodeError(InteractionRouterError):
    """Signature headers or the configured public key are not valid hex."""


class InteractionDecodeError(InteractionRouterError):
    """The request body is not a well-formed interaction."""


class RestError(InteractionRouterError):
    """An outbound API call did not succeed.

    The message is the response body text so it can be shown to the user as-is.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = message


class CapabilityError(InteractionRouterError, LookupError):
    """A capability binding was requested that is not configured."""
