import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from receipt_intake import __version__
from receipt_intake.api.v1.ocr import router as ocr_router
from receipt_intake.core.config import Settings, get_settings
from receipt_intake.core.staging import ensure_staging_dir
from receipt_intake.services.ocr import BaseOcrEngine
from receipt_intake.services.ocr_service import OcrExecutionService
from receipt_intake.services.staging_cleanup import start_staging_cleanup_worker

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, *, engine: BaseOcrEngine | None = None) -> FastAPI:
    """Build the OCR upload API for *settings*.

    Each call returns an independent application with its own OCR service
    and staging directory; nothing is shared through module globals.
    """
    settings = settings or get_settings()
    upload_dir = ensure_staging_dir(settings.upload_dir)

    app = FastAPI(
        title="Receipt Intake API",
        version=__version__,
        docs_url="/docs" if settings.docs_enabled else None,
        openapi_url="/openapi.json" if settings.docs_enabled else None,
    )
    app.state.settings = settings
    app.state.ocr_service = OcrExecutionService.from_settings(settings, engine=engine)
    app.state.cleanup_task = None

    @app.on_event("startup")
    async def _startup_jobs():
        if app.state.cleanup_task is None:
            app.state.cleanup_task = start_staging_cleanup_worker(settings)
        logger.info(
            "Receipt intake API ready (engine=%s, staging=%s)",
            app.state.ocr_service.engine.name,
            upload_dir,
        )

    @app.on_event("shutdown")
    async def _shutdown_jobs():
        if app.state.cleanup_task is not None:
            app.state.cleanup_task.cancel()
            app.state.cleanup_task = None

    if settings.cors_allow_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_allow_origins,
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["*"],
        )

    @app.exception_handler(StarletteHTTPException)
    async def _http_exception_handler(request: Request, exc: StarletteHTTPException):
        # Hide internal details for 5xx unless explicitly enabled.
        if exc.status_code >= 500 and not settings.expose_error_details:
            return JSONResponse(status_code=exc.status_code, content={"error": "Internal server error"})
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        if settings.expose_error_details:
            return JSONResponse(status_code=500, content={"error": str(exc)})
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    app.include_router(ocr_router, tags=["ocr"])

    # Read-only access to staged files for previews.
    app.mount("/uploads", StaticFiles(directory=upload_dir), name="uploads")

    @app.get("/health")
    async def health_check():
        return {"status": "ok"}

    return app
