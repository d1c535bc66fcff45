"""Mock engine with deterministic text for tests and local development."""

from __future__ import annotations

from pathlib import Path

from .base import BaseOcrEngine

DEFAULT_MOCK_TEXT = "MOCK STORE\nItem A 12.50\nItem B 29.50\nTOTAL 42.00\n"


class MockOcrEngine(BaseOcrEngine):
    name = "mock"

    def __init__(self, text: str = DEFAULT_MOCK_TEXT) -> None:
        self.text = text
        self.calls: list[tuple[Path, str]] = []

    def recognize(
        self,
        image_path: Path,
        *,
        language: str = "eng",
        timeout_seconds: float = 0,
    ) -> str:
        if not Path(image_path).is_file():
            raise FileNotFoundError(image_path)
        self.calls.append((Path(image_path), language))
        return self.text
