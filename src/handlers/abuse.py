from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime, timedelta

from pydantic import BaseModel

from src.config import Settings
from src.models.subscriber import SubscriberRow, normalize_email

logger = logging.getLogger(__name__)

MINUTE = timedelta(minutes=1)
HOUR = timedelta(hours=1)

RATE_LIMIT_MESSAGE = "Too many signup attempts. Please wait a moment and try again."


class RateLimitResult(BaseModel):
    allowed: bool
    reason: str | None = None


class WindowCounts(BaseModel):
    ip_last_minute: int = 0
    ip_last_hour: int = 0
    email_last_minute: int = 0
    email_last_hour: int = 0


def _in_window(row: SubscriberRow, cutoff: datetime) -> bool:
    created_at = row.created_at()
    return created_at is not None and created_at >= cutoff


def count_recent(
    rows: Iterable[SubscriberRow],
    *,
    now: datetime,
    window: timedelta,
    ip: str | None = None,
    email: str | None = None,
) -> int:
    """Count rows inside the trailing ``window`` whose IP or email matches."""
    cutoff = now - window
    wanted_ip = ip.strip().lower() if ip is not None else None
    wanted_email = normalize_email(email) if email is not None else None
    count = 0
    for row in rows:
        # An unknown caller IP matches nothing, including rows written without one.
        if wanted_ip is not None and (not wanted_ip or row.normalized_ip != wanted_ip):
            continue
        if wanted_email is not None and row.normalized_email != wanted_email:
            continue
        if _in_window(row, cutoff):
            count += 1
    return count


def compute_window_counts(
    rows: Sequence[SubscriberRow],
    *,
    requester_ip: str,
    email: str,
    now: datetime,
) -> WindowCounts:
    return WindowCounts(
        ip_last_minute=count_recent(rows, now=now, window=MINUTE, ip=requester_ip),
        ip_last_hour=count_recent(rows, now=now, window=HOUR, ip=requester_ip),
        email_last_minute=count_recent(rows, now=now, window=MINUTE, email=email),
        email_last_hour=count_recent(rows, now=now, window=HOUR, email=email),
    )


def check_subscribe_rate(
    rows: Sequence[SubscriberRow],
    *,
    requester_ip: str,
    email: str,
    settings: Settings,
    now: datetime | None = None,
) -> RateLimitResult:
    moment = now or datetime.now(UTC)
    counts = compute_window_counts(rows, requester_ip=requester_ip, email=email, now=moment)
    limits = (
        (counts.ip_last_minute, settings.max_per_min_ip, "ip_minute_limit"),
        (counts.ip_last_hour, settings.max_per_hour_ip, "ip_hourly_limit"),
        (counts.email_last_minute, settings.max_per_min_email, "email_minute_limit"),
        (counts.email_last_hour, settings.max_per_hour_email, "email_hourly_limit"),
    )
    for count, limit, reason in limits:
        if count >= limit:
            logger.warning("Subscribe rate limit hit: ip=%s reason=%s count=%d", requester_ip, reason, count)
            return RateLimitResult(allowed=False, reason=reason)
    return RateLimitResult(allowed=True)


def is_duplicate(rows: Iterable[SubscriberRow], email: str) -> bool:
    wanted = normalize_email(email)
    return any(row.normalized_email == wanted for row in rows)
