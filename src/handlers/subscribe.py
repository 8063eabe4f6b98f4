from __future__ import annotations

import logging
import traceback
from datetime import UTC, datetime
from typing import Protocol

from src.captcha.recaptcha import RecaptchaVerification
from src.config import Settings
from src.handlers.abuse import RATE_LIMIT_MESSAGE, check_subscribe_rate, is_duplicate
from src.handlers.errors import (
    ConfigurationError,
    DuplicateEmail,
    InvalidSubscription,
    RateLimited,
    UpstreamError,
    VerificationFailed,
)
from src.models.subscriber import SubscriberRow, is_valid_email
from src.sheets.client import SheetsError
from src.sheets.store import SubscriberStore

logger = logging.getLogger(__name__)


class TokenVerifier(Protocol):
    async def verify(self, token: str, remote_ip: str | None = None) -> RecaptchaVerification: ...


def validate_subscription(email: str | None, recaptcha_token: str | None) -> str:
    """Return the trimmed email or raise ``InvalidSubscription``."""
    cleaned = (email or "").strip()
    if not cleaned or not (recaptcha_token or "").strip():
        raise InvalidSubscription("Email and reCAPTCHA token are required")
    if not is_valid_email(cleaned):
        raise InvalidSubscription("Invalid email format")
    return cleaned


async def verify_token(
    *,
    verifier: TokenVerifier | None,
    token: str,
    requester_ip: str,
    settings: Settings,
) -> None:
    if not settings.recaptcha_enabled():
        logger.warning("reCAPTCHA verification skipped (development mode)")
        return
    if verifier is None:
        logger.error("reCAPTCHA secret is set but no verifier is available")
        raise ConfigurationError()

    result = await verifier.verify(token, requester_ip or None)
    if not result.success:
        codes = result.error_codes
        raise VerificationFailed(
            ", ".join(codes) if codes else "reCAPTCHA verification failed",
            details=codes or "Unknown error",
        )

    # A success without a score (reCAPTCHA v2 keys) is accepted.
    threshold = settings.recaptcha_score_threshold
    score = result.score
    if score is not None and score < threshold:
        logger.warning("reCAPTCHA score too low: %s (threshold: %s)", score, threshold)
        raise VerificationFailed(details=f"Score {score} is below threshold {threshold}")


async def subscribe_email(
    *,
    email: str | None,
    recaptcha_token: str | None,
    requester_ip: str,
    settings: Settings,
    store: SubscriberStore | None,
    verifier: TokenVerifier | None,
    now: datetime | None = None,
) -> SubscriberRow:
    """Validate, verify, rate-limit and append one signup.

    The duplicate and rate-limit checks read the sheet and the append happens
    afterwards without any lock, so two concurrent requests for the same
    address can both be accepted.
    """
    cleaned_email = validate_subscription(email, recaptcha_token)
    try:
        await verify_token(
            verifier=verifier,
            token=(recaptcha_token or "").strip(),
            requester_ip=requester_ip,
            settings=settings,
        )
    except UpstreamError as exc:
        if not settings.is_production:
            exc.details = traceback.format_exc()
        raise

    if store is None or not settings.sheets_configured():
        logger.error("Google Sheets credentials not found in environment variables")
        raise ConfigurationError()

    moment = now or datetime.now(UTC)
    try:
        rows = await store.fetch_rows()

        rate = check_subscribe_rate(
            rows,
            requester_ip=requester_ip,
            email=cleaned_email,
            settings=settings,
            now=moment,
        )
        if not rate.allowed:
            raise RateLimited(RATE_LIMIT_MESSAGE, reason=rate.reason or "rate_limited")

        if is_duplicate(rows, cleaned_email):
            raise DuplicateEmail()

        row = SubscriberRow.new(email=cleaned_email, ip=requester_ip, now=moment)
        await store.append(row)
    except SheetsError as exc:
        logger.exception("Error in subscribe pipeline")
        raise UpstreamError(
            str(exc) or "Unknown error occurred",
            details=None if settings.is_production else traceback.format_exc(),
        ) from exc

    logger.info("New subscriber appended from ip=%s", requester_ip)
    return row
