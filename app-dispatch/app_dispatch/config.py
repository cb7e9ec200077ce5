from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

DEFAULT_CONFIG_FILE = Path(__file__).resolve().parent.parent / "config" / "dispatch.local.yml"

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive.file",
]


class SheetSettings(BaseModel):
    spreadsheet_id: str = Field(..., min_length=1)
    entries_range: str = Field(default="Sheet1!A:H")
    numbers_range: str = Field(default="Sheet1!A:D")


class DriveSettings(BaseModel):
    folder_id: str = Field(..., min_length=1)
    max_upload_mb: int = Field(default=10, ge=1)

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024


class AppSettings(BaseModel):
    sheet: SheetSettings
    drive: DriveSettings
    service_account_file: Optional[Path] = None
    service_account_info: Optional[dict[str, Any]] = None
    environment: str = Field(default="development")
    log_level: str = Field(default="INFO")


def _load_yaml(path: Path) -> dict[str, Any]:
    try:
        return yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except FileNotFoundError:
        return {}


def _split_credentials(raw: Optional[str]) -> tuple[Optional[dict[str, Any]], Optional[Path]]:
    # GOOGLE_APPLICATION_CREDENTIALS holds either the key JSON itself or a path to it.
    if not raw or not raw.strip():
        return None, None
    if raw.lstrip().startswith("{"):
        return json.loads(raw), None
    return None, Path(raw)


def load_settings(
    *,
    env: Optional[Mapping[str, str]] = None,
    config_path: Optional[Path] = None,
) -> AppSettings:
    if env is None:
        load_dotenv()
        env = os.environ

    if config_path is None:
        cfg_path = env.get("DISPATCH_CONFIG")
        config_path = Path(cfg_path) if cfg_path else DEFAULT_CONFIG_FILE

    data = _load_yaml(config_path)
    sheet_cfg = data.get("sheet") or {}
    drive_cfg = data.get("drive") or {}

    credentials_info, credentials_file = _split_credentials(
        env.get("GOOGLE_APPLICATION_CREDENTIALS", data.get("service_account_file"))
    )

    sheet = SheetSettings(
        spreadsheet_id=env.get("DISPATCH_SPREADSHEET_ID", sheet_cfg.get("spreadsheet_id", "")),
        entries_range=env.get("DISPATCH_ENTRIES_RANGE", sheet_cfg.get("entries_range", "Sheet1!A:H")),
        numbers_range=env.get("DISPATCH_NUMBERS_RANGE", sheet_cfg.get("numbers_range", "Sheet1!A:D")),
    )
    drive = DriveSettings(
        folder_id=env.get("DISPATCH_FOLDER_ID", drive_cfg.get("folder_id", "")),
        max_upload_mb=int(env.get("DISPATCH_MAX_UPLOAD_MB", drive_cfg.get("max_upload_mb", 10))),
    )

    return AppSettings(
        sheet=sheet,
        drive=drive,
        service_account_file=credentials_file,
        service_account_info=credentials_info,
        environment=env.get("APP_ENV", data.get("environment", "development")),
        log_level=env.get("LOG_LEVEL", data.get("log_level", "INFO")),
    )


__all__ = [
    "AppSettings",
    "DriveSettings",
    "SCOPES",
    "SheetSettings",
    "load_settings",
]
