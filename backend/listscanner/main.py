"""
List Scanner Backend — FastAPI Application Factory
===================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() wires the DataStore, OCR engine and file storage into
       the repositories/services graph (app.state.services), registers
       middleware, exception handlers and routers.
Who:   uvicorn (`uvicorn listscanner.main:app`) and the API tests, which
       pass their own store / OCR engine / file service.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware:  Request ID → Logging → GZip → CORS         │
    │                                                          │
    │  Routes:  /api/photos  /api/lists  /api/items            │
    │           /api/consent  /api/usage  /health              │
    │                                                          │
    │  Exception Handlers:                                     │
    │   Validation→400  ConsentRequired→403  NotFound→404      │
    │   NoItemsDetected/ImageCrop→422                          │
    │   CreationFailed/Database/FileStorage→500                │
    │   OcrService/CircuitBreakerOpen→503                      │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → config check → create tables (auto_create_schema)
    Shutdown: close live queries → dispose engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from listscanner import __version__
from listscanner.config import settings
from listscanner.exceptions import (
    CircuitBreakerOpenError,
    ConsentRequiredError,
    CreationFailedError,
    DatabaseError,
    FileStorageError,
    ImageCropError,
    ListScannerError,
    NoItemsDetectedError,
    NotFoundError,
    OcrServiceError,
    ValidationError,
)
from listscanner.middleware.logging import RequestLoggingMiddleware
from listscanner.middleware.request_id import RequestIDMiddleware, request_id_var
from listscanner.routes import health, items, lists, photos, preferences
from listscanner.routes.dependencies import AppServices
from listscanner.services.file_service import FileService
from listscanner.services.ocr_base import OcrEngine
from listscanner.store.data_store import DataStore

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once at startup.

    Format: 2024-03-15T09:30:00 [INFO] listscanner.store.data_store: ...
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Per-operation chatter from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("=" * 60)
    logger.info("List Scanner Backend starting up...")

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: lists can be edited without OCR, and /health
        # reports the engine as unavailable
        logger.error("Configuration error: %s", str(e))

    services: AppServices = app.state.services
    if settings.auto_create_schema:
        await services.store.create_schema()
        logger.info("Database schema ready")

    logger.info("Storage directory: %s", services.file_service.storage_root)
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("List Scanner Backend shutting down...")
    await services.store.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(
    status_code: int,
    error: str,
    message: str,
    details: Optional[dict] = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    content = {"error": error, "message": message, "request_id": request_id_var.get("")}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map ListScannerError subclasses to status codes.

        ValidationError         → 400
        ConsentRequiredError    → 403
        NotFoundError           → 404
        NoItemsDetectedError, ImageCropError → 422
        OcrServiceError         → 503 (+ Retry-After)
        CircuitBreakerOpenError → 503 (+ Retry-After)
        CreationFailedError, DatabaseError, FileStorageError,
        ListScannerError, Exception → 500

    5xx bodies carry only the generic message; context and causes are
    logged server-side.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return _error_response(400, "validation_error", exc.message, details=exc.context)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error_response(404, "not_found", exc.message)

    @app.exception_handler(NoItemsDetectedError)
    async def handle_no_items(request: Request, exc: NoItemsDetectedError):
        logger.info("[%s] No items detected: %s", request_id_var.get(""), exc.context)
        return _error_response(422, "no_items_detected", exc.message)

    @app.exception_handler(ConsentRequiredError)
    async def handle_consent_required(request: Request, exc: ConsentRequiredError):
        logger.info("[%s] Scan refused without OCR consent", request_id_var.get(""))
        return _error_response(403, "consent_required", exc.message)

    @app.exception_handler(ImageCropError)
    async def handle_image_crop_error(request: Request, exc: ImageCropError):
        logger.warning("[%s] Crop failed: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return _error_response(422, "image_crop_failed", exc.message)

    @app.exception_handler(CircuitBreakerOpenError)
    async def handle_circuit_breaker(request: Request, exc: CircuitBreakerOpenError):
        logger.warning("[%s] Circuit breaker open: %s", request_id_var.get(""), exc.message)
        return _error_response(
            503,
            "service_unavailable",
            exc.message,
            details={"recovery_time": exc.recovery_time},
            headers={"Retry-After": str(exc.recovery_time)},
        )

    @app.exception_handler(OcrServiceError)
    async def handle_ocr_error(request: Request, exc: OcrServiceError):
        logger.error("[%s] OCR service error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        headers = {"Retry-After": str(exc.retry_after)} if exc.retry_after else None
        return _error_response(503, "ocr_service_error", exc.message, headers=headers)

    @app.exception_handler(CreationFailedError)
    async def handle_creation_failed(request: Request, exc: CreationFailedError):
        logger.error("[%s] List creation failed | Context: %s", request_id_var.get(""), exc.context)
        return _error_response(500, "creation_failed", exc.message)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error("[%s] Database error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return _error_response(500, "server_error", "An internal error occurred. Please try again later.")

    @app.exception_handler(FileStorageError)
    async def handle_file_storage_error(request: Request, exc: FileStorageError):
        logger.error("[%s] File storage error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return _error_response(500, "server_error", exc.message)

    @app.exception_handler(ListScannerError)
    async def handle_application_error(request: Request, exc: ListScannerError):
        logger.error("[%s] Application error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return _error_response(500, "server_error", "An internal error occurred. Please try again later.")

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", request_id_var.get(""), str(exc), exc_info=True)
        return _error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def _default_ocr_engine() -> OcrEngine:
    from listscanner.services.gemini_service import GeminiOcrEngine

    return GeminiOcrEngine()


def create_app(
    store: Optional[DataStore] = None,
    ocr_engine: Optional[OcrEngine] = None,
    file_service: Optional[FileService] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        store: DataStore to use; defaults to one on settings.database_url.
        ocr_engine: Text recognition engine; defaults to GeminiOcrEngine.
        file_service: Photo storage; defaults to settings.storage_root.
    """
    app = FastAPI(
        title="List Scanner API",
        description=(
            "Turns photos of shopping lists into ordered, checkable lists. "
            "Upload a photo, scan it, then edit, check off and reorder the items."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.services = AppServices.build(
        store=store or DataStore.from_url(settings.database_url),
        ocr_engine=ocr_engine or _default_ocr_engine(),
        file_service=file_service or FileService(),
    )

    # Last added runs first: RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(photos.router)
    app.include_router(lists.router)
    app.include_router(items.router)
    app.include_router(preferences.router)
    app.include_router(health.router)

    return app


app = create_app()
