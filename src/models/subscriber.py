from __future__ import annotations

import re
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel

EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"
EMAIL_RE = re.compile(EMAIL_PATTERN)

SHEET_COLUMNS = ("email", "timestamp", "ip")


def is_valid_email(value: str) -> bool:
    return EMAIL_RE.fullmatch(value) is not None


def normalize_email(value: str) -> str:
    return value.strip().lower()


def iso_timestamp(moment: datetime) -> str:
    """UTC, millisecond precision, ``Z`` suffix."""
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime | None:
    raw = value.strip()
    if not raw:
        return None
    if raw.endswith(("Z", "z")):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


class SubscriberRow(BaseModel):
    """One mailing-list row: columns A (email), B (ISO timestamp), C (IP)."""

    email: str
    timestamp: str = ""
    ip: str = ""

    @classmethod
    def from_sheet_row(cls, values: Sequence[Any]) -> SubscriberRow:
        cells = [str(item) if item is not None else "" for item in values[: len(SHEET_COLUMNS)]]
        cells += [""] * (len(SHEET_COLUMNS) - len(cells))
        return cls(email=cells[0], timestamp=cells[1], ip=cells[2])

    @classmethod
    def new(cls, *, email: str, ip: str, now: datetime | None = None) -> SubscriberRow:
        moment = now or datetime.now(UTC)
        return cls(email=email.strip(), timestamp=iso_timestamp(moment), ip=ip)

    @property
    def normalized_email(self) -> str:
        return normalize_email(self.email)

    @property
    def normalized_ip(self) -> str:
        return self.ip.strip().lower()

    def created_at(self) -> datetime | None:
        return parse_timestamp(self.timestamp)

    def to_sheet_row(self) -> list[str]:
        return [self.email, self.timestamp, self.ip]
