"""Image helpers for receipt uploads.

Prepares raster images for Tesseract and renders the small WebP
previews the intake workflow holds while a file is selected.
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from typing import Optional

from PIL import Image, ImageOps

# ------------------------------------------------------------------
# Constants
# ------------------------------------------------------------------

PREVIEW_MAX_SIZE = (400, 600)
PREVIEW_QUALITY = 80

# Tesseract reads small receipt photos poorly; upscale below this width.
OCR_MIN_WIDTH = 1000


@dataclass
class ImagePreview:
    """In-memory preview of a selected receipt image."""

    content: bytes
    content_type: str
    width: int
    height: int

    def release(self) -> None:
        self.content = b""


def is_image(content_type: Optional[str]) -> bool:
    return bool(content_type) and content_type.lower().startswith("image/")


def prepare_for_ocr(img: Image.Image) -> Image.Image:
    """Auto-orient, grayscale and upscale *img* for recognition."""
    img = ImageOps.exif_transpose(img)
    if img.mode != "L":
        img = img.convert("L")
    if img.width < OCR_MIN_WIDTH:
        scale = OCR_MIN_WIDTH / max(img.width, 1)
        img = img.resize((OCR_MIN_WIDTH, max(1, int(img.height * scale))), Image.LANCZOS)
    return img


def build_preview(content: bytes) -> ImagePreview:
    """Resize *content* to fit within PREVIEW_MAX_SIZE and encode as WebP.

    Raises ``PIL.UnidentifiedImageError`` when the bytes are not an image.
    """
    with Image.open(io.BytesIO(content)) as img:
        img = ImageOps.exif_transpose(img)
        if img.mode in ("P", "PA"):
            img = img.convert("RGBA")
        preview = img.copy()
    preview.thumbnail(PREVIEW_MAX_SIZE, Image.LANCZOS)
    buf = io.BytesIO()
    preview.save(buf, format="WEBP", quality=PREVIEW_QUALITY, method=4)
    return ImagePreview(
        content=buf.getvalue(),
        content_type="image/webp",
        width=preview.width,
        height=preview.height,
    )
