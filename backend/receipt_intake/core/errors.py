"""Error taxonomy shared by the upload API and the intake workflow.

Validation errors stop work before any network or engine call.
Recognition and transport errors end an upload in the failed state.
Persistence errors never leave the transaction-store boundary.
"""

from __future__ import annotations


class IntakeError(Exception):
    """Base class for every receipt intake failure."""

    default_message = "Something went wrong"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(IntakeError):
    default_message = "Invalid file"

    @classmethod
    def missing_file(cls) -> "ValidationError":
        return cls("Please select a file first")

    @classmethod
    def unsupported_type(cls) -> "ValidationError":
        return cls("Please select a PDF, JPG, or PNG file")

    @classmethod
    def recognized_but_unsupported(cls) -> "ValidationError":
        return cls("OCR currently supports images (JPG/PNG). Please upload an image.")


class UploadInProgressError(IntakeError):
    default_message = "An upload is already in progress"


class RecognitionError(IntakeError):
    default_message = "OCR failed"


class TransportError(IntakeError):
    default_message = "Upload failed"


class DownstreamPersistError(IntakeError):
    default_message = "Transaction could not be saved"
