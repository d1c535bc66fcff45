"""Tesseract engine via pytesseract."""

from __future__ import annotations

import logging
import time
from pathlib import Path

import pytesseract
from PIL import Image

from receipt_intake.core.image_processing import prepare_for_ocr

from .base import BaseOcrEngine

logger = logging.getLogger(__name__)


class TesseractEngine(BaseOcrEngine):
    name = "tesseract"

    def __init__(self, tesseract_cmd: str = "") -> None:
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

    def recognize(
        self,
        image_path: Path,
        *,
        language: str = "eng",
        timeout_seconds: float = 0,
    ) -> str:
        t0 = time.monotonic()
        with Image.open(image_path) as img:
            prepared = prepare_for_ocr(img)
        # pytesseract raises RuntimeError when the timeout is hit.
        text = pytesseract.image_to_string(prepared, lang=language, timeout=timeout_seconds)
        logger.debug(
            "Tesseract recognized %d chars from %s in %.0f ms",
            len(text),
            image_path.name,
            (time.monotonic() - t0) * 1000,
        )
        return text
