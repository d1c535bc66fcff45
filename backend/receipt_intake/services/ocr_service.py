"""Bounded OCR execution service wrapping a single engine."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from receipt_intake.core.config import Settings
from receipt_intake.core.errors import RecognitionError
from receipt_intake.services.ocr import BaseOcrEngine, get_engine

logger = logging.getLogger(__name__)


class OcrExecutionService:
    """Runs one blocking recognition per uploaded file.

    Calls are executed in worker threads; at most ``max_concurrency`` run at
    once and the rest wait their turn. Any engine fault surfaces as
    ``RecognitionError`` with the original exception chained.
    """

    def __init__(
        self,
        engine: BaseOcrEngine,
        *,
        max_concurrency: int = 2,
        timeout_seconds: float = 60.0,
    ) -> None:
        self.engine = engine
        self.max_concurrency = max(1, max_concurrency)
        self.timeout_seconds = timeout_seconds
        self._slots = asyncio.Semaphore(self.max_concurrency)

    @classmethod
    def from_settings(cls, settings: Settings, engine: BaseOcrEngine | None = None) -> "OcrExecutionService":
        return cls(
            engine or get_engine(settings=settings),
            max_concurrency=settings.ocr_max_concurrency,
            timeout_seconds=settings.ocr_timeout_seconds,
        )

    async def recognize(self, image_path: Path, language: str) -> str:
        async with self._slots:
            try:
                return await asyncio.to_thread(
                    self.engine.recognize,
                    Path(image_path),
                    language=language,
                    timeout_seconds=self.timeout_seconds,
                )
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                raise RecognitionError() from exc

