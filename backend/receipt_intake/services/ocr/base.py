"""Abstract base for OCR engines."""

from __future__ import annotations

import abc
from pathlib import Path


class BaseOcrEngine(abc.ABC):
    """Contract every OCR engine implements.

    ``recognize`` is blocking and may take seconds per image. Engines raise
    whatever their backend raises; the execution service translates faults.
    """

    name: str = "base"

    @abc.abstractmethod
    def recognize(
        self,
        image_path: Path,
        *,
        language: str = "eng",
        timeout_seconds: float = 0,
    ) -> str:
        """Return the plain text recognized in the image at *image_path*."""
