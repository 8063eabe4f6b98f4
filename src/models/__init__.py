from src.models.subscriber import (
    EMAIL_PATTERN,
    SubscriberRow,
    is_valid_email,
    normalize_email,
)

__all__ = [
    "EMAIL_PATTERN",
    "SubscriberRow",
    "is_valid_email",
    "normalize_email",
]
