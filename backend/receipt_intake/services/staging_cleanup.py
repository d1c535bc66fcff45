from __future__ import annotations

import asyncio
import logging

from receipt_intake.core.config import Settings
from receipt_intake.core.staging import sweep_stale_uploads

logger = logging.getLogger(__name__)


def cleanup_staging_once(settings: Settings) -> int:
    """
    Idempotent cleanup:
    - deletes staged uploads whose mtime is older than upload_retention_seconds
    - never touches files still inside the retention window (previews stay reachable)
    """
    removed = sweep_stale_uploads(
        settings.upload_dir,
        max_age_seconds=settings.upload_retention_seconds,
    )
    if removed:
        logger.info("Removed stale staged uploads: %s", removed)
    return removed


async def _staging_cleanup_loop(settings: Settings, *, interval_seconds: int) -> None:
    # Backoff on errors to avoid tight loops.
    error_sleep = max(10, min(60, interval_seconds))
    while True:
        try:
            await asyncio.to_thread(cleanup_staging_once, settings)
            await asyncio.sleep(interval_seconds)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Staging cleanup worker error")
            await asyncio.sleep(error_sleep)


def start_staging_cleanup_worker(settings: Settings) -> asyncio.Task | None:
    """
    Starts an in-process cleanup loop when enabled. Callers keep the task
    reference and cancel it on shutdown.
    """
    if not settings.staging_cleanup_enabled or settings.upload_retention_seconds <= 0:
        return None
    interval = int(max(15, min(3600, settings.staging_cleanup_interval_seconds)))
    return asyncio.create_task(_staging_cleanup_loop(settings, interval_seconds=interval))
