from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from typing import Optional

import gspread
from fastapi import Depends, FastAPI, File, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from google.oauth2.service_account import Credentials
from googleapiclient.discovery import build
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import SCOPES, AppSettings, load_settings
from .dispatch_numbers import DispatchNumberCache
from .drive_gateway import GoogleDriveGateway
from .errors import ErrorCode, ServiceError
from .middleware import install_request_logging
from .schemas import (
    AddEntryRequest,
    CredentialsResponse,
    LastDispatchNumbers,
    LastDispatchNumbersResponse,
    SuccessResponse,
    UpdateLastDispatchNumberRequest,
    UploadResponse,
)
from .service import DispatchService
from .sheet_gateway import GspreadSheetGateway

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[AppSettings] = None,
    service: Optional[DispatchService] = None,
    cache: Optional[DispatchNumberCache] = None,
) -> FastAPI:
    if service is not None and cache is not None and cache is not service.cache:
        raise ValueError("cache must be the same object as service.cache")

    app = FastAPI(title="Dispatch Desk Backend", version="1.0.0")

    # Google clients are built on first use so that bad credentials fail a
    # request instead of the whole process.
    app.state.settings = settings or (service.settings if service else None)
    app.state.cache = cache or (service.cache if service else DispatchNumberCache())
    app.state.service = service

    install_request_logging(app)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _install_error_handlers(app)

    @app.get("/", response_class=PlainTextResponse)
    async def root() -> str:
        return "Welcome to the BHCP Backend!"

    @app.get("/api/test")
    async def backend_test() -> dict[str, str]:
        return {"message": "Backend is working!"}

    @app.get("/api/test-credentials", response_model=CredentialsResponse)
    def test_credentials(request: Request):
        try:
            identity = _get_service(request).check_credentials()
        except ServiceError as exc:
            logger.warning("credential check failed: %s", exc.message)
            return JSONResponse(
                status_code=500,
                content={"success": False, "error": "Failed to validate credentials", "message": exc.message},
            )
        return CredentialsResponse(
            message="Credentials are valid and Google Sheets API is accessible",
            **identity,
        )

    @app.get("/api/health")
    async def health(request: Request) -> dict[str, str]:
        loaded: Optional[AppSettings] = request.app.state.settings
        environment = loaded.environment if loaded else os.getenv("APP_ENV", "development")
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": environment,
        }

    @app.post("/api/upload", response_model=UploadResponse)
    async def upload(
        request: Request,
        file: Optional[UploadFile] = File(None),
    ) -> UploadResponse:
        if file is None:
            raise ServiceError(ErrorCode.VALIDATION_ERROR, 400, "No file uploaded")
        service = await run_in_threadpool(_get_service, request)
        data = await file.read()
        result = await run_in_threadpool(
            service.upload_file,
            file.filename or "upload",
            file.content_type,
            data,
        )
        return UploadResponse(fileId=result.fileId, webViewLink=result.webViewLink)

    @app.post("/api/addEntry", response_model=SuccessResponse)
    def add_entry(payload: AddEntryRequest, service: DispatchService = Depends(_get_service)) -> SuccessResponse:
        service.add_entry(payload)
        return SuccessResponse()

    @app.get("/api/lastDispatchNumbers", response_model=LastDispatchNumbersResponse)
    def last_dispatch_numbers(service: DispatchService = Depends(_get_service)) -> LastDispatchNumbersResponse:
        snapshot = service.refresh_dispatch_numbers()
        return LastDispatchNumbersResponse(lastDispatchNumbers=LastDispatchNumbers(**snapshot.as_dict()))

    @app.post("/api/updateLastDispatchNumber", response_model=LastDispatchNumbersResponse)
    async def update_last_dispatch_number(
        payload: UpdateLastDispatchNumberRequest,
        cache: DispatchNumberCache = Depends(_get_cache),
    ) -> LastDispatchNumbersResponse:
        cache.set_next(payload.type, payload.newTotal)
        snapshot = cache.snapshot()
        logger.info("dispatch number overridden", extra={"file_type": payload.type, **snapshot.as_dict()})
        return LastDispatchNumbersResponse(lastDispatchNumbers=LastDispatchNumbers(**snapshot.as_dict()))

    return app


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
        if exc.http_status >= 500:
            logger.error("request failed: %s", exc)
        return JSONResponse(
            status_code=exc.http_status,
            content={"success": False, "error": exc.message, "code": exc.code.value},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        details = "; ".join(
            f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}" for err in exc.errors()
        )
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": "Validation error", "message": details},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        error = "Route not found" if exc.status_code == 404 else str(exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"success": False, "error": error})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled error on %s", request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "Something went wrong!",
                "message": str(exc),
                "code": ErrorCode.INTERNAL_ERROR.value,
            },
        )


def _get_settings(request: Request) -> AppSettings:
    settings = request.app.state.settings
    if settings is None:
        try:
            settings = load_settings()
        except (ValidationError, ValueError) as exc:
            raise ServiceError(ErrorCode.CONFIGURATION_ERROR, 500, f"Invalid configuration: {exc}") from exc
        request.app.state.settings = settings
    return settings


def _get_cache(request: Request) -> DispatchNumberCache:
    return request.app.state.cache


def _get_service(request: Request) -> DispatchService:
    service = request.app.state.service
    if service is None:
        service = _build_service(_get_settings(request), request.app.state.cache)
        request.app.state.service = service
    return service


def _load_credentials(settings: AppSettings) -> Credentials:
    try:
        if settings.service_account_info:
            return Credentials.from_service_account_info(settings.service_account_info, scopes=SCOPES)
        if settings.service_account_file:
            return Credentials.from_service_account_file(str(settings.service_account_file), scopes=SCOPES)
    except (ValueError, OSError) as exc:
        raise ServiceError(ErrorCode.CREDENTIALS_ERROR, 500, f"Failed to load service account: {exc}") from exc
    raise ServiceError(ErrorCode.CREDENTIALS_ERROR, 500, "GOOGLE_APPLICATION_CREDENTIALS is not configured")


def _build_service(settings: AppSettings, cache: DispatchNumberCache) -> DispatchService:
    credentials = _load_credentials(settings)
    client = gspread.authorize(credentials)
    drive = build("drive", "v3", credentials=credentials, cache_discovery=False)
    identity = {
        "project_id": getattr(credentials, "project_id", None),
        "client_email": credentials.service_account_email,
    }
    return DispatchService(
        settings,
        GspreadSheetGateway(client, settings.sheet),
        GoogleDriveGateway(drive, settings.drive),
        cache,
        identity=identity,
    )


__all__ = ["create_app"]
