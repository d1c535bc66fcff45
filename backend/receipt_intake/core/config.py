from functools import lru_cache
from pathlib import Path
from typing import Annotated

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# Comma-separated in the environment, not JSON.
CsvList = Annotated[list[str], NoDecode]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        validate_by_name=True,
        populate_by_name=True,
    )

    host: str = "0.0.0.0"
    port: int = 5000
    log_level: str = "INFO"
    docs_enabled: bool = True
    expose_error_details: bool = False

    upload_dir: Path = Path("uploads")
    upload_field_name: str = "receipt"
    max_upload_bytes: int = 10 * 1024 * 1024
    # "image/jpg" is not a registered MIME type but browsers and clients send it.
    allowed_mime_types: CsvList = Field(
        default_factory=lambda: ["image/jpeg", "image/png", "image/jpg"],
    )
    unsupported_mime_types: CsvList = Field(
        default_factory=lambda: ["application/pdf"],
    )

    ocr_engine: str = "tesseract"
    ocr_language: str = "eng"
    ocr_timeout_seconds: float = 60.0
    ocr_max_concurrency: int = 2
    tesseract_cmd: str = Field(
        default="",
        validation_alias=AliasChoices("TESSERACT_CMD", "OCR_TESSERACT_CMD"),
    )

    staging_cleanup_enabled: bool = True
    staging_cleanup_interval_seconds: int = 600
    upload_retention_seconds: int = 24 * 60 * 60

    cors_allow_origins: CsvList = Field(default_factory=lambda: ["*"])

    # Client side (intake workflow)
    api_base_url: str = "http://127.0.0.1:5000"
    upload_timeout_seconds: float = 120.0
    transaction_store_url: str = ""
    transaction_store_timeout_seconds: float = 10.0

    @field_validator(
        "allowed_mime_types",
        "unsupported_mime_types",
        "cors_allow_origins",
        mode="before",
    )
    @classmethod
    def _split_csv(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            if value.strip() == "":
                return []
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("allowed_mime_types", "unsupported_mime_types")
    @classmethod
    def _lowercase_mime_types(cls, value: list[str]) -> list[str]:
        return [item.lower() for item in value]

    @field_validator("ocr_max_concurrency")
    @classmethod
    def _at_least_one_worker(cls, value: int) -> int:
        return max(1, value)


@lru_cache
def get_settings() -> Settings:
    return Settings()
