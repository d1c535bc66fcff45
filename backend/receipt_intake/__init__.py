"""Receipt intake: OCR upload API and receipt-to-transaction workflow."""

__version__ = "1.0.0"
