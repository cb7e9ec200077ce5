from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict


class AttachedFile(BaseModel):
    name: str = ""
    webViewLink: str = ""


class AddEntryRequest(BaseModel):
    # Presence of dispatchNumber/date/subject is checked by the service so the
    # client gets the same message whichever of them is missing.
    model_config = ConfigDict(extra="ignore")

    dispatchNumber: Optional[str] = None
    date: Optional[str] = None
    subject: Optional[str] = None
    fileType: Optional[str] = None
    fileCategory: Optional[str] = None
    tags: Union[str, List[str], None] = None
    user: Optional[str] = None
    files: Optional[List[AttachedFile]] = None


class UpdateLastDispatchNumberRequest(BaseModel):
    type: str
    newTotal: int


class UploadResult(BaseModel):
    fileId: str
    webViewLink: Optional[str] = None


class UploadResponse(UploadResult):
    success: bool = True


class SuccessResponse(BaseModel):
    success: bool = True


class LastDispatchNumbers(BaseModel):
    letters: int
    others: int


class LastDispatchNumbersResponse(BaseModel):
    success: bool = True
    lastDispatchNumbers: LastDispatchNumbers


class CredentialsResponse(BaseModel):
    success: bool = True
    message: str
    projectId: Optional[str] = None
    clientEmail: Optional[str] = None


__all__ = [
    "AddEntryRequest",
    "AttachedFile",
    "CredentialsResponse",
    "LastDispatchNumbers",
    "LastDispatchNumbersResponse",
    "SuccessResponse",
    "UpdateLastDispatchNumberRequest",
    "UploadResponse",
    "UploadResult",
]
