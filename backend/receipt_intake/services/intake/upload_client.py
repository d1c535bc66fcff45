"""HTTP client for the OCR upload endpoint."""

from __future__ import annotations

import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import httpx

from receipt_intake.core.config import Settings
from receipt_intake.core.errors import TransportError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SelectedFile:
    """A file picked by the user, held in memory until upload."""

    name: str
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)

    @classmethod
    def from_path(cls, path: Path, content_type: Optional[str] = None) -> "SelectedFile":
        path = Path(path)
        guessed, _ = mimetypes.guess_type(path.name)
        return cls(
            name=path.name,
            content_type=content_type or guessed or "application/octet-stream",
            content=path.read_bytes(),
        )


class UploadClient:
    """Posts one receipt per request and returns the recognized text."""

    def __init__(
        self,
        base_url: str,
        *,
        field_name: str = "receipt",
        timeout_seconds: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._field_name = field_name
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "UploadClient":
        return cls(
            settings.api_base_url,
            field_name=settings.upload_field_name,
            timeout_seconds=settings.upload_timeout_seconds,
        )

    async def upload(self, selected: SelectedFile) -> str:
        files = {self._field_name: (selected.name, selected.content, selected.content_type)}
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout_seconds,
                transport=self._transport,
            ) as client:
                resp = await client.post("/ocr-upload", files=files)
        except httpx.HTTPError as exc:
            raise TransportError(str(exc) or None) from exc

        if resp.is_error:
            raise TransportError(_error_message(resp))

        try:
            data = resp.json()
        except ValueError as exc:
            raise TransportError("Malformed response from OCR service") from exc
        if not isinstance(data, dict):
            raise TransportError("Malformed response from OCR service")
        return str(data.get("text") or "")


def _error_message(resp: httpx.Response) -> Optional[str]:
    try:
        body = resp.json()
    except ValueError:
        return None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return None
