from __future__ import annotations

import logging
from typing import Protocol

from src.config import Settings
from src.models.subscriber import SHEET_COLUMNS, SubscriberRow
from src.sheets.client import SheetsClient

logger = logging.getLogger(__name__)


class SubscriberStore(Protocol):
    async def fetch_rows(self) -> list[SubscriberRow]: ...

    async def append(self, row: SubscriberRow) -> None: ...


class SheetSubscriberStore:
    """Mailing list kept in one sheet: row 1 is the header, data in columns A-C."""

    def __init__(self, client: SheetsClient, *, sheet_name: str = "Sheet1") -> None:
        self._client = client
        self._sheet_name = sheet_name

    @classmethod
    def from_settings(cls, settings: Settings) -> SheetSubscriberStore:
        return cls(SheetsClient.from_settings(settings), sheet_name=settings.google_sheets_sheet_name)

    @property
    def data_range(self) -> str:
        return f"{self._sheet_name}!A2:C"

    @property
    def append_range(self) -> str:
        return f"{self._sheet_name}!A:C"

    @property
    def header_range(self) -> str:
        return f"{self._sheet_name}!A1:C1"

    async def fetch_rows(self) -> list[SubscriberRow]:
        values = await self._client.get_values(self.data_range)
        return [SubscriberRow.from_sheet_row(item) for item in values if item]

    async def append(self, row: SubscriberRow) -> None:
        await self._client.append_values(self.append_range, [row.to_sheet_row()])

    async def ensure_header(self) -> bool:
        """Write the column header into row 1 when it is empty. Returns True if written."""
        existing = await self._client.get_values(self.header_range)
        if existing and any(str(cell).strip() for cell in existing[0]):
            return False
        await self._client.update_values(self.header_range, [list(SHEET_COLUMNS)])
        logger.info("Wrote header row to %s", self.header_range)
        return True
