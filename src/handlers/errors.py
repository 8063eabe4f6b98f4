from __future__ import annotations

from typing import Any


class SubscribeError(Exception):
    """Terminal failure of one subscribe request, rendered as a JSON error body."""

    status_code = 500
    error = "Internal server error"

    def __init__(self, message: str | None = None, *, details: Any = None) -> None:
        super().__init__(message or self.error)
        self.message = message
        self.details = details

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.error}
        if self.message is not None:
            payload["message"] = self.message
        if self.details is not None:
            payload["details"] = self.details
        return payload


class InvalidSubscription(SubscribeError):
    status_code = 400

    def __init__(self, error: str) -> None:
        self.error = error
        super().__init__()


class VerificationFailed(SubscribeError):
    status_code = 400
    error = "reCAPTCHA verification failed"


class RateLimited(SubscribeError):
    status_code = 429
    error = "too_many_requests"

    def __init__(self, message: str, *, reason: str) -> None:
        super().__init__(message)
        self.reason = reason


class DuplicateEmail(SubscribeError):
    status_code = 400
    error = "duplicate"

    def __init__(self) -> None:
        super().__init__("This email is already registered")


class ConfigurationError(SubscribeError):
    error = "Server configuration error"


class UpstreamError(SubscribeError):
    """A verification or sheet call failed; ``message`` carries the underlying cause."""
