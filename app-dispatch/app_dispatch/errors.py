from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    SHEET_UNAVAILABLE = "SHEET_UNAVAILABLE"
    DRIVE_UPLOAD_ERROR = "DRIVE_UPLOAD_ERROR"
    CREDENTIALS_ERROR = "CREDENTIALS_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


@dataclass
class ServiceError(Exception):
    code: ErrorCode
    http_status: int
    message: str

    def __str__(self) -> str:  # pragma: no cover - convenience
        return f"{self.code.value} ({self.http_status}): {self.message}"


__all__ = ["ErrorCode", "ServiceError"]
