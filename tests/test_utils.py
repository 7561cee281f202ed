"""Tests for pdf_ocr_ai.utils."""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from pdf_ocr_ai.utils import (
    DescriptionServiceError,
    ExternalServiceError,
    InvalidInputError,
    InvalidPageRangeError,
    MissingDependencyError,
    PdfValidationError,
    ProcessTimeoutError,
    check_binary_exists,
    ensure_binaries,
    validate_pdf_path,
)


class TestErrorHierarchy(unittest.TestCase):
    def test_page_range_is_invalid_input(self) -> None:
        self.assertTrue(issubclass(InvalidPageRangeError, InvalidInputError))
        self.assertTrue(issubclass(PdfValidationError, InvalidInputError))

    def test_external_service_errors(self) -> None:
        self.assertTrue(issubclass(DescriptionServiceError, ExternalServiceError))
        self.assertTrue(issubclass(ProcessTimeoutError, ExternalServiceError))


class TestBinaries(unittest.TestCase):
    def test_missing_binary(self) -> None:
        self.assertFalse(check_binary_exists("definitely-not-a-real-binary-xyz"))

    def test_ensure_binaries_raises_with_names(self) -> None:
        with self.assertRaises(MissingDependencyError) as ctx:
            ensure_binaries(["definitely-not-a-real-binary-xyz"])
        self.assertIn("definitely-not-a-real-binary-xyz", str(ctx.exception))

    def test_ensure_binaries_empty_ok(self) -> None:
        ensure_binaries([])


class TestValidatePdfPath(unittest.TestCase):
    def test_missing_file(self) -> None:
        with self.assertRaises(PdfValidationError):
            validate_pdf_path("/nonexistent/file.pdf")

    def test_directory_rejected(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(PdfValidationError):
                validate_pdf_path(tmp)

    def test_wrong_suffix(self) -> None:
        with tempfile.NamedTemporaryFile(suffix=".txt") as f:
            with self.assertRaises(PdfValidationError):
                validate_pdf_path(f.name)

    def test_valid_pdf_path_resolved(self) -> None:
        with tempfile.NamedTemporaryFile(suffix=".pdf") as f:
            path = validate_pdf_path(f.name)
            self.assertIsInstance(path, Path)
            self.assertTrue(path.is_absolute())


if __name__ == "__main__":
    unittest.main()
