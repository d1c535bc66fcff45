"""Engine factory: returns the configured OCR engine."""

from __future__ import annotations

import logging

from receipt_intake.core.config import Settings, get_settings

from .base import BaseOcrEngine
from .mock import MockOcrEngine

logger = logging.getLogger(__name__)

__all__ = ["get_engine", "BaseOcrEngine", "MockOcrEngine"]


def get_engine(engine_name: str | None = None, settings: Settings | None = None) -> BaseOcrEngine:
    """Return an engine instance for *engine_name* (defaults to ``settings.ocr_engine``).

    Unknown names fall back to Tesseract, the only production engine.
    """
    settings = settings or get_settings()
    name = (engine_name or settings.ocr_engine).lower().strip()

    if name == "mock":
        return MockOcrEngine()

    if name != "tesseract":
        logger.warning("Unknown OCR engine %r, falling back to tesseract", name)

    from .tesseract import TesseractEngine

    return TesseractEngine(tesseract_cmd=settings.tesseract_cmd)
