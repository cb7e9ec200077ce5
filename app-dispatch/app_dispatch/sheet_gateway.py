from __future__ import annotations

import logging
from typing import Any, List, Optional, Protocol, Sequence

import gspread
from google.auth.exceptions import GoogleAuthError
from gspread.exceptions import GSpreadException

from .config import SheetSettings
from .errors import ErrorCode, ServiceError

logger = logging.getLogger(__name__)

# requests' transport errors derive from OSError.
_SHEET_ERRORS = (GSpreadException, GoogleAuthError, OSError)


class SheetGateway(Protocol):
    def get_rows(self, range_spec: str) -> List[List[str]]:
        ...

    def append_row(self, range_spec: str, values: Sequence[Any]) -> None:
        ...

    def ping(self) -> None:
        ...


class GspreadSheetGateway:
    def __init__(self, client: gspread.Client, settings: SheetSettings):
        self._client = client
        self._settings = settings
        self._spreadsheet: Optional[gspread.Spreadsheet] = None

    @property
    def spreadsheet(self) -> gspread.Spreadsheet:
        if self._spreadsheet is None:
            self._spreadsheet = self._call("open spreadsheet", self._client.open_by_key, self._settings.spreadsheet_id)
        return self._spreadsheet

    def get_rows(self, range_spec: str) -> List[List[str]]:
        result = self._call("read rows", self.spreadsheet.values_get, range_spec)
        return [list(row) for row in result.get("values", [])]

    def append_row(self, range_spec: str, values: Sequence[Any]) -> None:
        self._call(
            "append row",
            self.spreadsheet.values_append,
            range_spec,
            params={"valueInputOption": "USER_ENTERED"},
            body={"values": [list(values)]},
        )

    def ping(self) -> None:
        self._call("fetch metadata", self.spreadsheet.fetch_sheet_metadata)

    def _call(self, action: str, func, *args, **kwargs):
        try:
            return func(*args, **kwargs)
        except _SHEET_ERRORS as exc:
            logger.warning("sheet %s failed: %s", action, exc)
            raise ServiceError(
                ErrorCode.SHEET_UNAVAILABLE,
                502,
                f"Google Sheets {action} failed: {exc}",
            ) from exc


class MemorySheetGateway:
    """In-memory sheet: ``rows[0]`` is the header, ranges are ignored."""

    def __init__(self, rows: Optional[Sequence[Sequence[str]]] = None, *, header: Optional[Sequence[str]] = None):
        self.rows: list[list[Any]] = [list(row) for row in rows] if rows else []
        if header is not None and not self.rows:
            self.rows.append(list(header))
        self.fail_reads = False
        self.fail_writes = False

    def get_rows(self, range_spec: str) -> List[List[str]]:
        if self.fail_reads:
            raise ServiceError(ErrorCode.SHEET_UNAVAILABLE, 502, f"Sheet range {range_spec} is unavailable")
        return [list(row) for row in self.rows]

    def append_row(self, range_spec: str, values: Sequence[Any]) -> None:
        if self.fail_writes:
            raise ServiceError(ErrorCode.SHEET_UNAVAILABLE, 502, f"Sheet range {range_spec} is read-only")
        self.rows.append(list(values))

    def ping(self) -> None:
        if self.fail_reads:
            raise ServiceError(ErrorCode.SHEET_UNAVAILABLE, 502, "Sheet is unavailable")


__all__ = ["GspreadSheetGateway", "MemorySheetGateway", "SheetGateway"]
