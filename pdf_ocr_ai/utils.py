"""Error types and path helpers shared by the extraction pipeline."""

from __future__ import annotations

import os
import shutil
from pathlib import Path
from typing import Iterable


class ExtractionError(Exception):
    """Base exception for extraction errors."""


class InvalidInputError(ExtractionError):
    """Raised when a request is missing a file, a credential, or valid parameters."""


class InvalidPageRangeError(InvalidInputError):
    """Raised when a requested page range is invalid for the document."""


class FileTooLargeError(InvalidInputError):
    """Raised when an upload exceeds the configured size limit."""


class PdfValidationError(InvalidInputError):
    """Raised when a PDF file is missing or unreadable."""


class PdfProcessingError(ExtractionError):
    """Raised when PDF processing fails."""


class UnsupportedImageEncodingError(ExtractionError):
    """Raised when a decoded image uses a pixel encoding we cannot normalize."""


class ExternalServiceError(ExtractionError):
    """Raised when an external service (vision model, OCR) fails."""


class DescriptionServiceError(ExternalServiceError):
    """Raised when the vision description call fails."""


class OcrProcessError(ExternalServiceError):
    """Raised when the OCR process fails without usable output."""


class ProcessTimeoutError(ExternalServiceError):
    """Raised when the OCR process exceeds its wall-clock bound."""


class OperationCancelledError(ExtractionError):
    """Raised when the caller cancels a request while external work is running."""


class MissingDependencyError(ExtractionError):
    """Raised when required system dependencies are missing."""


class ResourceNotFoundError(ExtractionError):
    """Raised when a requested stored artifact does not exist."""


def check_binary_exists(binary_name: str) -> bool:
    """Return True if a binary is available on PATH."""

    return shutil.which(binary_name) is not None


def ensure_binaries(binaries: Iterable[str]) -> None:
    """Ensure all required binaries exist on PATH."""

    missing = [binary for binary in binaries if not check_binary_exists(binary)]
    if missing:
        raise MissingDependencyError(
            f"Missing required system binaries: {', '.join(missing)}"
        )


def validate_pdf_path(path: str | Path) -> Path:
    """Validate that the PDF exists and is readable."""

    pdf_path = Path(path).expanduser().resolve()
    if not pdf_path.exists():
        raise PdfValidationError(f"PDF not found: {pdf_path}")
    if not pdf_path.is_file():
        raise PdfValidationError(f"PDF path is not a file: {pdf_path}")
    if pdf_path.suffix.lower() != ".pdf":
        raise PdfValidationError("Input file must be a PDF.")
    if not os.access(pdf_path, os.R_OK):
        raise PdfValidationError(f"PDF is not readable: {pdf_path}")
    return pdf_path
