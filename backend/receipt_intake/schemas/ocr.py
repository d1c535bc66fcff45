from pydantic import BaseModel


class OcrUploadResponse(BaseModel):
    text: str


class ErrorResponse(BaseModel):
    error: str


class OcrStatusResponse(BaseModel):
    module: str = "ocr"
    status: str = "operational"
    engine: str
    language: str
    upload_field: str
    accepted_types: list[str]
    unsupported_types: list[str]
    max_concurrency: int
    max_upload_bytes: int
