"""
Google Sheets Storage Implementation

DESIGN DECISION: A worksheet with "key | value | updated_at" columns is used
as a remote key-value store because:
1. Users can look at their ledger snapshots directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- One cell holds at most 50,000 characters, which caps a snapshot's size
- No transactions (each key is a single row, written in one call)
- Lookups scan the sheet (fine for a handful of keys)

The implementation follows the abstract interface, so the ledger does not
know which backend it runs on.
"""

import base64
import binascii
from datetime import datetime, timezone
from typing import Optional

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from carihesap.config import GoogleSheetsSettings, get_settings
from carihesap.services.storage.interface import (
    KeyValueStore,
    StorageConnectionError,
    StorageError,
)


# Column mappings for the store sheet
STORE_COLUMNS = [
    "key",
    "value",
    "updated_at",
]

MAX_CELL_CHARS = 50000
BINARY_PREFIX = "base64:"


def encode_cell(value: bytes) -> str:
    """Snapshots are UTF-8 JSON; anything else is kept as base64 text."""
    try:
        return value.decode("utf-8")
    except UnicodeDecodeError:
        return BINARY_PREFIX + base64.b64encode(value).decode("ascii")


def decode_cell(text: str) -> bytes:
    if text.startswith(BINARY_PREFIX):
        try:
            return base64.b64decode(text[len(BINARY_PREFIX):], validate=True)
        except binascii.Error as e:
            raise StorageError(f"Malformed binary cell: {e}")
    return text.encode("utf-8")


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @property
    def settings(self) -> GoogleSheetsSettings:
        return self._settings

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise StorageConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise StorageConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise StorageConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_store_sheet(self) -> gspread.Worksheet:
        """Get or create the key/value worksheet."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(self._settings.store_sheet_name)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=self._settings.store_sheet_name,
                rows=100,
                cols=len(STORE_COLUMNS),
            )
            sheet.append_row(STORE_COLUMNS)
        return sheet


class GoogleSheetsKeyValueStore(KeyValueStore):
    """
    Google Sheets implementation of the key-value store.

    One row per key; the value column holds the snapshot text.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @property
    def client(self) -> GoogleSheetsClient:
        return self._client

    def _find_row(self, sheet: gspread.Worksheet, key: str) -> tuple[Optional[int], list]:
        """Return (1-based row index, row values) for a key, or (None, [])."""
        all_rows = sheet.get_all_values()
        for idx, row in enumerate(all_rows[1:], start=2):  # Row 1 is the header
            if row and row[0] == key:
                return idx, row
        return None, []

    def load(self, key: str) -> Optional[bytes]:
        """Read the value stored under a key."""
        try:
            sheet = self._client.get_store_sheet()
            idx, row = self._find_row(sheet, key)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to load {key}: {e}")

        if idx is None or len(row) < 2 or not row[1]:
            return None
        return decode_cell(row[1])

    def save(self, key: str, value: bytes) -> None:
        """Insert or replace the row for a key."""
        text = encode_cell(value)
        if len(text) > MAX_CELL_CHARS:
            raise StorageError(
                f"Value for {key} is {len(text)} characters; "
                f"a sheet cell holds at most {MAX_CELL_CHARS}"
            )
        self._write(key, text)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _write(self, key: str, text: str) -> None:
        updated_at = datetime.now(timezone.utc).isoformat()

        try:
            sheet = self._client.get_store_sheet()
            idx, _ = self._find_row(sheet, key)
            if idx is None:
                sheet.append_row([key, text, updated_at], value_input_option="RAW")
            else:
                sheet.update_cells(
                    [
                        gspread.Cell(idx, 2, text),
                        gspread.Cell(idx, 3, updated_at),
                    ],
                    value_input_option="RAW",
                )
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save {key}: {e}")

    def delete(self, key: str) -> bool:
        """Delete the row for a key."""
        try:
            sheet = self._client.get_store_sheet()
            idx, _ = self._find_row(sheet, key)
            if idx is None:
                return False
            sheet.delete_rows(idx)
            return True
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete {key}: {e}")
