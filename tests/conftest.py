from __future__ import annotations

import pytest

_MANAGED_ENV = (
    "APP_ENV",
    "RECAPTCHA_SECRET_KEY",
    "RECAPTCHA_SITE_KEY",
    "SKIP_RECAPTCHA",
    "SOFT_RATE_LIMIT",
    "GOOGLE_SHEETS_CLIENT_EMAIL",
    "GOOGLE_SHEETS_PRIVATE_KEY",
    "GOOGLE_SHEETS_SPREADSHEET_ID",
    "GOOGLE_SHEETS_SHEET_NAME",
)


@pytest.fixture(autouse=True)
def _default_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _MANAGED_ENV:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("APP_ENV", "development")
    monkeypatch.setenv("CORS_ALLOW_ORIGINS", "http://localhost:3000")
    from src.config import get_settings

    get_settings.cache_clear()
