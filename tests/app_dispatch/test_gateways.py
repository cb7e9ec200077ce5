from __future__ import annotations

from types import SimpleNamespace

import pytest
from gspread.exceptions import GSpreadException

from app_dispatch.config import DriveSettings, SheetSettings
from app_dispatch.drive_gateway import GoogleDriveGateway
from app_dispatch.errors import ErrorCode, ServiceError
from app_dispatch.sheet_gateway import GspreadSheetGateway


class FakeSpreadsheet:
    def __init__(self, values=None, error=None):
        self.values = values or []
        self.error = error
        self.appended = []

    def values_get(self, range_spec):
        if self.error:
            raise self.error
        return {"range": range_spec, "values": self.values}

    def values_append(self, range_spec, params=None, body=None):
        if self.error:
            raise self.error
        self.appended.append((range_spec, params, body))
        return {"updates": {"updatedRange": "Sheet1!A2:H2"}}

    def fetch_sheet_metadata(self):
        if self.error:
            raise self.error
        return {"properties": {"title": "Dispatch"}}


class FakeClient:
    def __init__(self, spreadsheet):
        self.spreadsheet = spreadsheet
        self.opened = []

    def open_by_key(self, key):
        self.opened.append(key)
        return self.spreadsheet


def make_sheet_gateway(spreadsheet):
    client = FakeClient(spreadsheet)
    return GspreadSheetGateway(client, SheetSettings(spreadsheet_id="sheet-123")), client


def test_get_rows_reads_range():
    spreadsheet = FakeSpreadsheet(values=[["Dispatch Number", "Date"], ["X/1-5", "2024-01-01", "s", "Letter"]])
    gateway, client = make_sheet_gateway(spreadsheet)

    rows = gateway.get_rows("Sheet1!A:D")

    assert rows == [["Dispatch Number", "Date"], ["X/1-5", "2024-01-01", "s", "Letter"]]
    assert client.opened == ["sheet-123"]


def test_get_rows_of_empty_range():
    gateway, _ = make_sheet_gateway(FakeSpreadsheet())

    assert gateway.get_rows("Sheet1!A:D") == []


def test_spreadsheet_opened_once():
    gateway, client = make_sheet_gateway(FakeSpreadsheet())

    gateway.get_rows("Sheet1!A:D")
    gateway.ping()

    assert client.opened == ["sheet-123"]


def test_append_row_uses_user_entered():
    spreadsheet = FakeSpreadsheet()
    gateway, _ = make_sheet_gateway(spreadsheet)

    gateway.append_row("Sheet1!A:H", ("X/1-5", "2024-01-01"))

    assert spreadsheet.appended == [
        ("Sheet1!A:H", {"valueInputOption": "USER_ENTERED"}, {"values": [["X/1-5", "2024-01-01"]]})
    ]


@pytest.mark.parametrize("error", [GSpreadException("quota exceeded"), ConnectionError("reset")])
def test_sheet_errors_become_service_errors(error):
    gateway, _ = make_sheet_gateway(FakeSpreadsheet(error=error))

    with pytest.raises(ServiceError) as exc:
        gateway.get_rows("Sheet1!A:D")

    assert exc.value.code == ErrorCode.SHEET_UNAVAILABLE
    assert exc.value.http_status == 502


class FakeFiles:
    def __init__(self, response=None, error=None):
        self.response = response or {"id": "file-1", "webViewLink": "https://drive.google.com/file/d/file-1/view"}
        self.error = error
        self.calls = []

    def create(self, body, media_body, fields):
        self.calls.append({"body": body, "media_body": media_body, "fields": fields})

        def execute():
            if self.error:
                raise self.error
            return self.response

        return SimpleNamespace(execute=execute)


class FakeDrive:
    def __init__(self, files):
        self._files = files

    def files(self):
        return self._files


def test_drive_upload_into_folder():
    files = FakeFiles()
    gateway = GoogleDriveGateway(FakeDrive(files), DriveSettings(folder_id="folder-456"))

    result = gateway.upload("memo.pdf", "application/pdf", b"%PDF-1.4")

    assert result.fileId == "file-1"
    assert result.webViewLink == "https://drive.google.com/file/d/file-1/view"
    call = files.calls[0]
    assert call["body"] == {"name": "memo.pdf", "parents": ["folder-456"]}
    assert call["fields"] == "id, webViewLink"
    assert call["media_body"].mimetype() == "application/pdf"


def test_drive_failure_becomes_service_error():
    files = FakeFiles(error=ConnectionError("reset"))
    gateway = GoogleDriveGateway(FakeDrive(files), DriveSettings(folder_id="folder-456"))

    with pytest.raises(ServiceError) as exc:
        gateway.upload("memo.pdf", "application/pdf", b"data")

    assert exc.value.code == ErrorCode.DRIVE_UPLOAD_ERROR
