import logging
import time
import uuid
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


def _file_extension(filename: Optional[str]) -> str:
    if not filename:
        return ""
    return Path(filename).suffix.lower()


def build_staged_name(filename: Optional[str]) -> str:
    """Unique per-upload name, so concurrent uploads never collide."""
    token = uuid.uuid4().hex
    return f"{token}{_file_extension(filename)}"


def ensure_staging_dir(upload_dir: Path) -> Path:
    upload_dir.mkdir(parents=True, exist_ok=True)
    return upload_dir


def stage_upload(upload_dir: Path, filename: Optional[str], content: bytes) -> Path:
    """Write an uploaded file into the staging area and return its path."""
    path = ensure_staging_dir(upload_dir) / build_staged_name(filename)
    path.write_bytes(content)
    logger.info("Staged upload %s as %s (%d bytes)", filename, path.name, len(content))
    return path


def sweep_stale_uploads(
    upload_dir: Path,
    *,
    max_age_seconds: int,
    now: Optional[float] = None,
) -> int:
    """Delete staged files older than *max_age_seconds*. Returns the count removed."""
    if not upload_dir.is_dir():
        return 0
    cutoff = (now if now is not None else time.time()) - max_age_seconds
    removed = 0
    for path in upload_dir.iterdir():
        if not path.is_file():
            continue
        try:
            if path.stat().st_mtime < cutoff:
                path.unlink()
                removed += 1
        except FileNotFoundError:
            # Removed concurrently by another sweeper.
            continue
    return removed
