from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class TransactionType(StrEnum):
    EXPENSE = "expense"
    INCOME = "income"


class TransactionDraft(BaseModel):
    """Minimal transaction record inferred from a receipt.

    Serialized with camelCase keys (``paymentMethod``) for the transaction store.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    description: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0)
    category: str = "Other"
    date: datetime
    type: TransactionType = TransactionType.EXPENSE
    payment_method: str = Field(default="Cash", alias="paymentMethod")

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
