from .result import Result, capture
from .transaction_store import (
    HttpTransactionStore,
    InMemoryTransactionStore,
    TransactionStore,
    build_transaction_draft,
)
from .upload_client import SelectedFile, UploadClient
from .workflow import ReceiptIntakeWorkflow, WorkflowState

__all__ = [
    "HttpTransactionStore",
    "InMemoryTransactionStore",
    "ReceiptIntakeWorkflow",
    "Result",
    "SelectedFile",
    "TransactionStore",
    "UploadClient",
    "WorkflowState",
    "build_transaction_draft",
    "capture",
]
