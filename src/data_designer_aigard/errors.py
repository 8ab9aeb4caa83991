from __future__ import annotations


class AigardError(Exception):
    """Base class for errors raised by the scoring engine."""


class InputTooShortError(AigardError, ValueError):
    def __init__(self, length: int, minimum: int) -> None:
        super().__init__(f"Text too short: {length} characters, need at least {minimum}")
        self.length = length
        self.minimum = minimum


class ExternalUnavailableError(AigardError):
    """The external classifier could not be reached or refused the request."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(ExternalUnavailableError):
    pass


class RateLimitError(ExternalUnavailableError):
    pass


class MalformedExternalResponseError(AigardError):
    """The external classifier replied with something that is not a verdict."""
