from __future__ import annotations

import io
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Protocol

from google.auth.exceptions import GoogleAuthError
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseUpload

from .config import DriveSettings
from .errors import ErrorCode, ServiceError
from .schemas import UploadResult

logger = logging.getLogger(__name__)


class DriveGateway(Protocol):
    def upload(self, name: str, mime_type: str, data: bytes) -> UploadResult:
        ...


class GoogleDriveGateway:
    def __init__(self, service: Any, settings: DriveSettings):
        # `service` is the resource returned by googleapiclient.discovery.build("drive", "v3", ...)
        self._service = service
        self._settings = settings

    def upload(self, name: str, mime_type: str, data: bytes) -> UploadResult:
        metadata = {"name": name, "parents": [self._settings.folder_id]}
        media = MediaIoBaseUpload(io.BytesIO(data), mimetype=mime_type, resumable=False)
        try:
            created = (
                self._service.files()
                .create(body=metadata, media_body=media, fields="id, webViewLink")
                .execute()
            )
        except (HttpError, GoogleAuthError, OSError) as exc:
            logger.warning("drive upload of %s failed: %s", name, exc)
            raise ServiceError(ErrorCode.DRIVE_UPLOAD_ERROR, 502, f"Google Drive upload failed: {exc}") from exc

        return UploadResult(fileId=created["id"], webViewLink=created.get("webViewLink"))


@dataclass
class StoredFile:
    file_id: str
    name: str
    mime_type: str
    data: bytes
    folder_id: str


class MemoryDriveGateway:
    def __init__(self, folder_id: str = "memory-folder"):
        self.folder_id = folder_id
        self.files: list[StoredFile] = []

    def upload(self, name: str, mime_type: str, data: bytes) -> UploadResult:
        file_id = uuid.uuid4().hex
        self.files.append(StoredFile(file_id, name, mime_type, data, self.folder_id))
        return UploadResult(fileId=file_id, webViewLink=f"https://drive.google.com/file/d/{file_id}/view")


__all__ = ["DriveGateway", "GoogleDriveGateway", "MemoryDriveGateway", "StoredFile"]
