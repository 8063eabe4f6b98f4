from src.sheets.client import SheetsClient, SheetsError
from src.sheets.store import SheetSubscriberStore, SubscriberStore

__all__ = ["SheetSubscriberStore", "SheetsClient", "SheetsError", "SubscriberStore"]
