import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile

from receipt_intake.core.config import Settings
from receipt_intake.core.errors import RecognitionError, ValidationError
from receipt_intake.core.staging import stage_upload
from receipt_intake.schemas.ocr import ErrorResponse, OcrStatusResponse, OcrUploadResponse
from receipt_intake.services.ocr_service import OcrExecutionService

router = APIRouter()
logger = logging.getLogger(__name__)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_ocr_service(request: Request) -> OcrExecutionService:
    return request.app.state.ocr_service


def _check_content_type(settings: Settings, content_type: str | None) -> None:
    ctype = (content_type or "").split(";", 1)[0].strip().lower()
    if ctype in settings.allowed_mime_types:
        return
    if ctype in settings.unsupported_mime_types:
        raise HTTPException(415, ValidationError.recognized_but_unsupported().message)
    raise HTTPException(415, ValidationError.unsupported_type().message)


@router.post(
    "/ocr-upload",
    response_model=OcrUploadResponse,
    responses={400: {"model": ErrorResponse}, 415: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def ocr_upload(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    service: OcrExecutionService = Depends(get_ocr_service),
):
    async with request.form() as form:
        upload = form.get(settings.upload_field_name)
        if not isinstance(upload, UploadFile):
            raise HTTPException(400, f"No file uploaded in field '{settings.upload_field_name}'")

        _check_content_type(settings, upload.content_type)

        content = await upload.read()
        if not content:
            raise HTTPException(400, "Empty file")
        if len(content) > settings.max_upload_bytes:
            raise HTTPException(413, "File too large")
        filename = upload.filename

    staged_path = await asyncio.to_thread(stage_upload, settings.upload_dir, filename, content)
    logger.info("Processing: %s", staged_path)

    try:
        text = await service.recognize(staged_path, settings.ocr_language)
    except RecognitionError:
        logger.exception("OCR error for %s", staged_path.name)
        return JSONResponse(status_code=500, content={"error": "OCR failed"})

    return OcrUploadResponse(text=text)


@router.get("/ocr/status", response_model=OcrStatusResponse)
async def ocr_status(
    settings: Settings = Depends(get_app_settings),
    service: OcrExecutionService = Depends(get_ocr_service),
):
    return OcrStatusResponse(
        engine=service.engine.name,
        language=settings.ocr_language,
        upload_field=settings.upload_field_name,
        accepted_types=settings.allowed_mime_types,
        unsupported_types=settings.unsupported_mime_types,
        max_concurrency=service.max_concurrency,
        max_upload_bytes=settings.max_upload_bytes,
    )
