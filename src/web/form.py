from __future__ import annotations

from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel

from src.models.subscriber import EMAIL_PATTERN, is_valid_email

FeedbackKind = Literal["success", "duplicate", "rate_limited", "verification", "invalid", "error"]

MESSAGES: dict[str, str] = {
    "success": "You're on the list! We'll be in touch soon.",
    "duplicate": "This email is already registered.",
    "rate_limited": "Too many attempts. Please wait a moment and try again.",
    "verification": "We couldn't verify your request. Please try again.",
    "invalid": "Please enter a valid email address.",
    "error": "Something went wrong. Please try again.",
}


class FormStatus(StrEnum):
    IDLE = "idle"
    READY = "ready"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    ERROR = "error"


class FormFeedback(BaseModel):
    kind: FeedbackKind
    text: str

    @property
    def ok(self) -> bool:
        return self.kind == "success"


def describe_response(status_code: int | None, payload: dict[str, Any] | None) -> FormFeedback:
    """Map a subscribe response to the text shown under the form.

    ``status_code=None`` means the request never completed (network failure).
    """
    body = payload or {}
    if status_code is None:
        return FormFeedback(kind="error", text=MESSAGES["error"])
    if body.get("rateLimited") or status_code == 429 or body.get("error") == "too_many_requests":
        return FormFeedback(kind="rate_limited", text=body.get("message") or MESSAGES["rate_limited"])
    if 200 <= status_code < 300 and body.get("success"):
        return FormFeedback(kind="success", text=MESSAGES["success"])
    error = body.get("error")
    if error == "duplicate":
        return FormFeedback(kind="duplicate", text=MESSAGES["duplicate"])
    if isinstance(error, str) and "verification" in error.lower():
        return FormFeedback(kind="verification", text=MESSAGES["verification"])
    if error == "Invalid email format":
        return FormFeedback(kind="invalid", text=MESSAGES["invalid"])
    if status_code >= 500:
        return FormFeedback(kind="error", text=MESSAGES["error"])
    return FormFeedback(kind="error", text=body.get("message") or error or MESSAGES["error"])


class SignupForm:
    """State of the signup form. Submit stays disabled while a request is in flight.

    The page itself runs the same transitions in ``static/signup.js``; this class
    is the Python model of those transitions and no route uses it.
    """

    def __init__(self) -> None:
        self.email = ""
        self.status = FormStatus.IDLE
        self.feedback: FormFeedback | None = None

    @property
    def submit_enabled(self) -> bool:
        if self.status in (FormStatus.SUBMITTING, FormStatus.SUCCESS):
            return False
        return is_valid_email(self.email.strip())

    def update_email(self, value: str) -> None:
        if self.status == FormStatus.SUBMITTING:
            return
        self.email = value
        self.feedback = None
        self.status = FormStatus.READY if is_valid_email(value.strip()) else FormStatus.IDLE

    def begin_submit(self) -> bool:
        if not self.submit_enabled:
            self.feedback = FormFeedback(kind="invalid", text=MESSAGES["invalid"])
            self.status = FormStatus.ERROR
            return False
        self.status = FormStatus.SUBMITTING
        return True

    def finish_submit(self, status_code: int | None, payload: dict[str, Any] | None) -> FormFeedback:
        feedback = describe_response(status_code, payload)
        self.feedback = feedback
        self.status = FormStatus.SUCCESS if feedback.ok else FormStatus.ERROR
        return feedback

    def reset(self) -> None:
        self.email = ""
        self.status = FormStatus.IDLE
        self.feedback = None


def client_config(*, site_key: str | None, action: str, endpoint: str = "/api/subscribe") -> dict[str, Any]:
    """Settings handed to the browser script so both sides share one pattern and one wording."""
    return {
        "endpoint": endpoint,
        "siteKey": site_key or "",
        "action": action,
        "emailPattern": EMAIL_PATTERN,
        "messages": MESSAGES,
    }
