#!/usr/bin/env python3
"""Prepare the mailing-list sheet.

Checks that the Google Sheets credentials from .env work, writes the
``email, timestamp, ip`` header into row 1 if it is empty, and prints how many
subscriber rows are already stored.

Usage:
    uv run python scripts/init_sheet.py
    uv run python scripts/init_sheet.py --check   # read only, never writes
"""
from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from src.config import Settings
from src.sheets.client import SheetsError
from src.sheets.store import SheetSubscriberStore


async def run(*, check_only: bool) -> int:
    settings = Settings()
    if not settings.sheets_configured():
        print("GOOGLE_SHEETS_CLIENT_EMAIL, GOOGLE_SHEETS_PRIVATE_KEY and GOOGLE_SHEETS_SPREADSHEET_ID must be set")
        return 2

    try:
        store = SheetSubscriberStore.from_settings(settings)
        if not check_only:
            written = await store.ensure_header()
            print(f"header     {'written' if written else 'already present'}  ({store.header_range})")
        rows = await store.fetch_rows()
    except SheetsError as exc:
        print(f"FAIL  {exc}")
        return 1

    print(f"rows       {len(rows)}  ({store.data_range})")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--check", action="store_true", help="only verify access, do not write the header")
    args = parser.parse_args()
    sys.exit(asyncio.run(run(check_only=args.check)))


if __name__ == "__main__":
    main()
