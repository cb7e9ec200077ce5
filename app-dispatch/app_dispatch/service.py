from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional, Union

from .config import AppSettings
from .dispatch_numbers import DispatchNumberCache, DispatchNumbers
from .drive_gateway import DriveGateway
from .errors import ErrorCode, ServiceError
from .schemas import AddEntryRequest, AttachedFile, UploadResult
from .sheet_gateway import SheetGateway

logger = logging.getLogger(__name__)

MISSING_FIELDS_MESSAGE = "Missing required fields: dispatchNumber, date, and subject are required"


class DispatchService:
    def __init__(
        self,
        settings: AppSettings,
        sheets: SheetGateway,
        drive: DriveGateway,
        cache: DispatchNumberCache,
        *,
        identity: Optional[dict[str, Any]] = None,
    ) -> None:
        self.settings = settings
        self.sheets = sheets
        self.drive = drive
        self.cache = cache
        self.identity = identity or {}

    def upload_file(self, filename: str, content_type: Optional[str], data: bytes) -> UploadResult:
        if not data:
            raise ServiceError(ErrorCode.VALIDATION_ERROR, 400, "No file uploaded")
        limit = self.settings.drive.max_upload_bytes
        if len(data) > limit:
            raise ServiceError(
                ErrorCode.FILE_TOO_LARGE,
                413,
                f"File exceeds the {self.settings.drive.max_upload_mb} MB upload limit",
            )

        result = self.drive.upload(filename, content_type or "application/octet-stream", data)
        logger.info("uploaded %s to drive as %s", filename, result.fileId)
        return result

    def add_entry(self, payload: AddEntryRequest) -> None:
        if not payload.dispatchNumber or not payload.date or not payload.subject:
            raise ServiceError(ErrorCode.VALIDATION_ERROR, 400, MISSING_FIELDS_MESSAGE)

        file_type = payload.fileType or ""
        row = [
            payload.dispatchNumber,
            payload.date,
            payload.subject,
            file_type,
            payload.fileCategory or "",
            format_tags(payload.tags),
            payload.user or "",
            format_file_links(payload.files or []),
        ]
        self.sheets.append_row(self.settings.sheet.entries_range, row)

        advanced = self.cache.advance(file_type, payload.dispatchNumber)
        logger.info(
            "dispatch entry appended",
            extra={"dispatch_number": payload.dispatchNumber, "file_type": file_type},
        )
        if not advanced:
            logger.warning("dispatch number %r has no trailing number; cache unchanged", payload.dispatchNumber)

    def refresh_dispatch_numbers(self) -> DispatchNumbers:
        rows = self.sheets.get_rows(self.settings.sheet.numbers_range)
        used = self.cache.rescan(rows)
        snapshot = self.cache.snapshot()
        logger.info(
            "dispatch numbers rescanned from %d rows (%d usable)",
            max(len(rows) - 1, 0),
            used,
            extra=snapshot.as_dict(),
        )
        return snapshot

    def check_credentials(self) -> dict[str, Optional[str]]:
        self.sheets.ping()
        return {
            "projectId": self.identity.get("project_id"),
            "clientEmail": self.identity.get("client_email"),
        }


def format_file_links(files: Iterable[AttachedFile]) -> str:
    return "\n".join(f"{item.name}: {item.webViewLink}" for item in files)


def format_tags(tags: Union[str, List[str], None]) -> str:
    if isinstance(tags, list):
        return ", ".join(tags)
    return tags or ""


__all__ = ["DispatchService", "MISSING_FIELDS_MESSAGE", "format_file_links", "format_tags"]
