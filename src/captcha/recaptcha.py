from __future__ import annotations

import logging

import httpx
from pydantic import BaseModel, ConfigDict, Field

from src.config import Settings
from src.handlers.errors import UpstreamError

logger = logging.getLogger(__name__)


class RecaptchaVerification(BaseModel):
    """Body returned by the siteverify endpoint (v3 adds ``score`` and ``action``)."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = False
    score: float | None = None
    action: str | None = None
    challenge_ts: str | None = None
    hostname: str | None = None
    error_codes: list[str] = Field(default_factory=list, alias="error-codes")


class RecaptchaVerifier:
    def __init__(self, *, secret_key: str, verify_url: str, http_timeout_seconds: float) -> None:
        self._secret_key = secret_key
        self._verify_url = verify_url
        self._timeout = http_timeout_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> RecaptchaVerifier:
        return cls(
            secret_key=settings.recaptcha_secret_key or "",
            verify_url=settings.recaptcha_verify_url,
            http_timeout_seconds=settings.recaptcha_http_timeout_seconds,
        )

    async def verify(self, token: str, remote_ip: str | None = None) -> RecaptchaVerification:
        data = {"secret": self._secret_key, "response": token}
        if remote_ip:
            data["remoteip"] = remote_ip
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(self._verify_url, data=data)
        except httpx.HTTPError as exc:
            logger.exception("reCAPTCHA verification request failed")
            raise UpstreamError(f"reCAPTCHA verification request failed: {exc}") from exc

        if response.status_code >= 400:
            logger.error("reCAPTCHA siteverify error %d: %s", response.status_code, response.text)
            raise UpstreamError(f"reCAPTCHA verification returned HTTP {response.status_code}")

        try:
            result = RecaptchaVerification.model_validate(response.json())
        except ValueError as exc:
            # pydantic's ValidationError is a ValueError too
            logger.error("reCAPTCHA siteverify returned an unreadable body: %s", response.text)
            raise UpstreamError("reCAPTCHA verification returned an invalid response") from exc
        logger.info(
            "reCAPTCHA verification response: success=%s score=%s action=%s challenge_ts=%s hostname=%s errors=%s",
            result.success,
            result.score,
            result.action,
            result.challenge_ts,
            result.hostname,
            result.error_codes,
        )
        return result
