from __future__ import annotations

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

RECAPTCHA_VERIFY_URL = "https://www.google.com/recaptcha/api/siteverify"


class Settings(BaseSettings):
    app_env: str = "development"
    cors_allow_origins: str = "http://localhost:3000"

    recaptcha_secret_key: str | None = None
    recaptcha_site_key: str | None = None
    recaptcha_action: str = "subscribe"
    recaptcha_score_threshold: float = 0.3
    recaptcha_verify_url: str = RECAPTCHA_VERIFY_URL
    recaptcha_http_timeout_seconds: float = 10.0
    skip_recaptcha: bool = False

    google_sheets_client_email: str | None = None
    google_sheets_private_key: str | None = None
    google_sheets_spreadsheet_id: str | None = None
    google_sheets_sheet_name: str = "Sheet1"
    sheets_http_timeout_seconds: float = 20.0

    soft_rate_limit: bool = False
    max_per_min_ip: int = 3
    max_per_hour_ip: int = 10
    max_per_min_email: int = 1
    max_per_hour_email: int = 10

    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    @field_validator("google_sheets_private_key")
    @classmethod
    def unescape_private_key(cls, value: str | None) -> str | None:
        # Hosting dashboards store the PEM on one line with literal "\n".
        if value is None:
            return None
        return value.replace("\\n", "\n")

    @field_validator("app_env")
    @classmethod
    def normalize_app_env(cls, value: str) -> str:
        return value.strip().lower() or "development"

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    def recaptcha_enabled(self) -> bool:
        return bool(self.recaptcha_secret_key) and not self.skip_recaptcha

    def soft_rate_limit_enabled(self) -> bool:
        return self.soft_rate_limit and not self.is_production

    def sheets_configured(self) -> bool:
        return bool(
            self.google_sheets_client_email
            and self.google_sheets_private_key
            and self.google_sheets_spreadsheet_id
        )

    def cors_allow_origin_list(self) -> list[str]:
        return [item.strip() for item in self.cors_allow_origins.split(",") if item.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
