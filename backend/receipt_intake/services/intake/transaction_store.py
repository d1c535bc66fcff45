"""Transaction store collaborators and receipt draft construction."""

from __future__ import annotations

import abc
import logging
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from pathlib import PurePath
from typing import Optional

import httpx

from receipt_intake.core.config import Settings
from receipt_intake.core.errors import DownstreamPersistError
from receipt_intake.schemas.transaction import TransactionDraft, TransactionType

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTION = "Receipt OCR"
DEFAULT_CATEGORY = "Other"
DEFAULT_PAYMENT_METHOD = "Cash"


def _round_amount(amount: float) -> float:
    return float(Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def build_transaction_draft(
    filename: Optional[str],
    amount: float,
    *,
    now: Optional[datetime] = None,
) -> TransactionDraft:
    """Expense draft for a receipt whose total is *amount*.

    Only strictly positive amounts produce a draft.
    """
    rounded = _round_amount(amount)
    if rounded <= 0:
        raise ValueError(f"Receipt amount must be positive, got {amount!r}")
    description = PurePath(filename).stem if filename else ""
    return TransactionDraft(
        description=description or DEFAULT_DESCRIPTION,
        amount=rounded,
        category=DEFAULT_CATEGORY,
        date=now or datetime.now(timezone.utc),
        type=TransactionType.EXPENSE,
        payment_method=DEFAULT_PAYMENT_METHOD,
    )


class TransactionStore(abc.ABC):
    """External store that owns transactions once created."""

    @abc.abstractmethod
    async def create_transaction(self, draft: TransactionDraft) -> None:
        """Persist *draft*; raise ``DownstreamPersistError`` on rejection."""


class InMemoryTransactionStore(TransactionStore):
    def __init__(self) -> None:
        self.transactions: list[TransactionDraft] = []

    async def create_transaction(self, draft: TransactionDraft) -> None:
        self.transactions.append(draft)


class HttpTransactionStore(TransactionStore):
    """Posts drafts as JSON to ``{base_url}/transactions``."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout_seconds: float = 10.0,
        headers: Optional[dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._url = base_url.rstrip("/") + "/transactions"
        self._timeout_seconds = timeout_seconds
        self._headers = headers or {}
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "HttpTransactionStore":
        return cls(
            settings.transaction_store_url,
            timeout_seconds=settings.transaction_store_timeout_seconds,
        )

    async def create_transaction(self, draft: TransactionDraft) -> None:
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_seconds,
                headers=self._headers,
                transport=self._transport,
            ) as client:
                resp = await client.post(self._url, json=draft.to_payload())
        except httpx.HTTPError as exc:
            raise DownstreamPersistError(f"Transaction store unreachable: {exc}") from exc

        if resp.status_code >= 400:
            raise DownstreamPersistError(f"Transaction store rejected draft ({resp.status_code})")
        logger.info("Created transaction %r for %.2f", draft.description, draft.amount)
