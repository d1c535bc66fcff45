"""Receipt intake workflow: upload, show text, record the inferred expense.

States::

    IDLE -> FILE_SELECTED -> UPLOADING -> SUCCEEDED | FAILED
      ^                                        |
      +------------ select / close ------------+

Recognized text is reported as soon as the upload settles. Creating the
transaction runs in a background task whose outcome is captured in a
``Result``, logged and dropped; it can never change ``ocr_text`` or move
the workflow into ``FAILED``.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from enum import StrEnum
from typing import Callable, Optional

from PIL import UnidentifiedImageError

from receipt_intake.core.config import Settings
from receipt_intake.core.errors import (
    IntakeError,
    UploadInProgressError,
    ValidationError,
)
from receipt_intake.core.image_processing import ImagePreview, build_preview, is_image
from receipt_intake.services.amount_extractor import (
    MoneyCandidate,
    SelectionStrategy,
    extract_amount,
    select_max,
)
from receipt_intake.services.intake.result import Result, capture
from receipt_intake.services.intake.transaction_store import (
    TransactionStore,
    build_transaction_draft,
)
from receipt_intake.services.intake.upload_client import SelectedFile, UploadClient

logger = logging.getLogger(__name__)

DEFAULT_ACCEPTED_TYPES = ("image/jpeg", "image/png", "image/jpg")
DEFAULT_UNSUPPORTED_TYPES = ("application/pdf",)


class WorkflowState(StrEnum):
    IDLE = "idle"
    FILE_SELECTED = "file_selected"
    UPLOADING = "uploading"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class ReceiptIntakeWorkflow:
    """One upload at a time; the rest of the caller stays responsive."""

    def __init__(
        self,
        upload_client: UploadClient,
        transaction_store: TransactionStore,
        *,
        accepted_types: tuple[str, ...] | list[str] = DEFAULT_ACCEPTED_TYPES,
        unsupported_types: tuple[str, ...] | list[str] = DEFAULT_UNSUPPORTED_TYPES,
        strategy: SelectionStrategy = select_max,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._upload_client = upload_client
        self._store = transaction_store
        self._accepted_types = {t.lower() for t in accepted_types}
        self._unsupported_types = {t.lower() for t in unsupported_types}
        self._strategy = strategy
        self._clock = clock

        self.state = WorkflowState.IDLE
        self.selected_file: Optional[SelectedFile] = None
        self.preview: Optional[ImagePreview] = None
        self.ocr_text = ""
        self.error_message = ""
        self.extracted_amount: Optional[MoneyCandidate] = None
        self.last_persist_result: Optional[Result] = None
        self._persist_task: Optional[asyncio.Task] = None
        self._background_tasks: set[asyncio.Task] = set()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transaction_store: TransactionStore,
        **kwargs,
    ) -> "ReceiptIntakeWorkflow":
        return cls(
            UploadClient.from_settings(settings),
            transaction_store,
            accepted_types=settings.allowed_mime_types,
            unsupported_types=settings.unsupported_mime_types,
            **kwargs,
        )

    @property
    def can_submit(self) -> bool:
        return self.selected_file is not None and self.state != WorkflowState.UPLOADING

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def select_file(self, selected: SelectedFile) -> None:
        """Validate and hold *selected*; nothing is sent over the network here."""
        if self.state == WorkflowState.UPLOADING:
            raise UploadInProgressError()

        ctype = (selected.content_type or "").lower()
        if ctype in self._unsupported_types:
            raise ValidationError.recognized_but_unsupported()
        if ctype not in self._accepted_types:
            raise ValidationError.unsupported_type()

        self._release_preview()
        self.selected_file = selected
        self.ocr_text = ""
        self.error_message = ""
        self.extracted_amount = None
        self.state = WorkflowState.FILE_SELECTED

        if is_image(ctype):
            try:
                self.preview = build_preview(selected.content)
            except (UnidentifiedImageError, OSError):
                logger.warning("Could not render preview for %s", selected.name, exc_info=True)

    def remove_file(self) -> None:
        self._release_preview()
        self.selected_file = None
        if self.state != WorkflowState.UPLOADING:
            self.state = WorkflowState.IDLE

    def close(self) -> None:
        self.remove_file()
        self.ocr_text = ""
        self.error_message = ""
        self.extracted_amount = None

    def _release_preview(self) -> None:
        if self.preview is not None:
            self.preview.release()
            self.preview = None

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------

    async def submit(self) -> str:
        """Upload the selected file and return the recognized text.

        Raises ``ValidationError`` without a file and ``UploadInProgressError``
        while another upload is pending. Upload failures move the workflow to
        ``FAILED`` with ``error_message`` set, then re-raise.
        """
        if self.state == WorkflowState.UPLOADING:
            raise UploadInProgressError()
        if self.selected_file is None:
            raise ValidationError.missing_file()

        selected = self.selected_file
        self.error_message = ""
        self.ocr_text = ""
        self.extracted_amount = None
        self.last_persist_result = None
        self._persist_task = None
        self.state = WorkflowState.UPLOADING
        try:
            text = await self._upload_client.upload(selected)
        except Exception as exc:
            self.error_message = getattr(exc, "message", "") or str(exc) or IntakeError.default_message
            self.state = WorkflowState.FAILED
            raise

        self.ocr_text = text
        self.state = WorkflowState.SUCCEEDED
        self._record_transaction(selected.name, text)
        return text

    def _record_transaction(self, filename: str, text: str) -> None:
        candidate = extract_amount(text, self._strategy)
        self.extracted_amount = candidate
        if candidate is None:
            logger.info("No amount found in OCR text for %s", filename)
            return
        task = asyncio.create_task(self._persist(filename, candidate.value, self._clock()))
        self._persist_task = task
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def _create_transaction(self, filename: str, amount: float, now: datetime) -> None:
        draft = build_transaction_draft(filename, amount, now=now)
        await self._store.create_transaction(draft)

    async def _persist(self, filename: str, amount: float, now: datetime) -> Result:
        result = await capture(self._create_transaction(filename, amount, now))
        if not result.ok:
            logger.warning(
                "Transaction for %r not saved; OCR result kept",
                filename,
                exc_info=result.error,
            )
        # A later submit may have started; its outcome owns the field.
        if asyncio.current_task() is self._persist_task:
            self.last_persist_result = result
        return result

    async def wait_for_persistence(self) -> Optional[Result]:
        """Join the transaction submission of the latest upload, if any."""
        if self._persist_task is None:
            return None
        return await self._persist_task
