from __future__ import annotations

import asyncio
import logging
from typing import Any
from urllib.parse import quote

import httpx
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request as GoogleAuthRequest
from google.oauth2 import service_account

from src.config import Settings

logger = logging.getLogger(__name__)

SHEETS_API_BASE = "https://sheets.googleapis.com/v4/spreadsheets"
SHEETS_SCOPE = "https://www.googleapis.com/auth/spreadsheets"
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"


class SheetsError(RuntimeError):
    pass


def build_service_account_credentials(
    *, client_email: str, private_key: str
) -> service_account.Credentials:
    info = {
        "type": "service_account",
        "client_email": client_email,
        "private_key": private_key,
        "token_uri": GOOGLE_TOKEN_URI,
    }
    try:
        return service_account.Credentials.from_service_account_info(info, scopes=[SHEETS_SCOPE])
    except (ValueError, KeyError) as exc:
        raise SheetsError(f"Invalid Google service account credentials: {exc}") from exc


class SheetsClient:
    """Minimal Sheets v4 ``values`` client: read a range, append rows, overwrite a range.

    Pass either ready ``credentials`` or the service-account ``client_email`` and
    ``private_key``, which are turned into credentials on the first request.
    """

    def __init__(
        self,
        *,
        spreadsheet_id: str,
        credentials: Any = None,
        client_email: str = "",
        private_key: str = "",
        http_timeout_seconds: float = 20.0,
    ) -> None:
        self._spreadsheet_id = spreadsheet_id
        self._credentials = credentials
        self._client_email = client_email
        self._private_key = private_key
        self._timeout = http_timeout_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> SheetsClient:
        if not settings.sheets_configured():
            raise SheetsError("Google Sheets credentials are not configured")
        return cls(
            spreadsheet_id=settings.google_sheets_spreadsheet_id or "",
            client_email=settings.google_sheets_client_email or "",
            private_key=settings.google_sheets_private_key or "",
            http_timeout_seconds=settings.sheets_http_timeout_seconds,
        )

    def _get_credentials(self) -> Any:
        if self._credentials is None:
            self._credentials = build_service_account_credentials(
                client_email=self._client_email,
                private_key=self._private_key,
            )
        return self._credentials

    async def _access_token(self) -> str:
        credentials = self._get_credentials()
        if not credentials.valid:
            # google-auth refreshes synchronously over ``requests``.
            try:
                await asyncio.to_thread(credentials.refresh, GoogleAuthRequest())
            except GoogleAuthError as exc:
                raise SheetsError(f"Failed to obtain Google access token: {exc}") from exc
        return str(credentials.token)

    def _values_url(self, cell_range: str, suffix: str = "") -> str:
        return f"{SHEETS_API_BASE}/{self._spreadsheet_id}/values/{quote(cell_range, safe='')}{suffix}"

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        token = await self._access_token()
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.request(
                    method,
                    url,
                    params=params,
                    json=json,
                    headers={"Authorization": f"Bearer {token}"},
                )
        except httpx.HTTPError as exc:
            raise SheetsError(f"Sheets request failed: {exc}") from exc
        if response.status_code >= 400:
            logger.error("Sheets API error %d: %s", response.status_code, response.text)
            raise SheetsError(f"Sheets API error: {response.status_code} {response.text}")
        try:
            data = response.json()
        except ValueError as exc:
            raise SheetsError(f"Sheets API returned a non-JSON body: {response.text[:200]}") from exc
        if not isinstance(data, dict):
            raise SheetsError("Sheets API returned an unexpected body")
        return data

    async def get_values(self, cell_range: str) -> list[list[Any]]:
        data = await self._request("GET", self._values_url(cell_range))
        return data.get("values") or []

    async def append_values(
        self,
        cell_range: str,
        rows: list[list[Any]],
        *,
        value_input_option: str = "USER_ENTERED",
    ) -> dict[str, Any]:
        return await self._request(
            "POST",
            self._values_url(cell_range, ":append"),
            params={"valueInputOption": value_input_option, "insertDataOption": "INSERT_ROWS"},
            json={"values": rows},
        )

    async def update_values(
        self,
        cell_range: str,
        rows: list[list[Any]],
        *,
        value_input_option: str = "RAW",
    ) -> dict[str, Any]:
        return await self._request(
            "PUT",
            self._values_url(cell_range),
            params={"valueInputOption": value_input_option},
            json={"values": rows},
        )
