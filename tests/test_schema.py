"""Tests for pdf_ocr_ai.schema models."""

from __future__ import annotations

import unittest

from pydantic import ValidationError

from pdf_ocr_ai.schema import (
    ZERO_TRANSFORM,
    ContentItem,
    ContentKind,
    ErrorResponse,
    FileInfo,
    Page,
    PageRange,
    ProcessResponse,
    RasterImage,
)
from pdf_ocr_ai.utils import InvalidPageRangeError


class TestContentItem(unittest.TestCase):
    def test_defaults(self) -> None:
        item = ContentItem(kind=ContentKind.TEXT, text="hi")
        self.assertEqual(item.anchor, ZERO_TRANSFORM)
        self.assertIsNone(item.description)
        self.assertIsNone(item.usage)
        self.assertEqual((item.x, item.y), (0.0, 0.0))

    def test_frozen(self) -> None:
        item = ContentItem(kind=ContentKind.TEXT, text="hi")
        with self.assertRaises(ValidationError):
            item.text = "changed"

    def test_negative_usage_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            ContentItem(kind=ContentKind.IMAGE, usage=-1)

    def test_anchor_must_have_six_elements(self) -> None:
        with self.assertRaises(ValidationError):
            ContentItem(kind=ContentKind.TEXT, anchor=(1.0, 2.0))

    def test_kind_serializes_as_string(self) -> None:
        item = ContentItem(kind=ContentKind.IMAGE, anchor=(1, 0, 0, 1, 5, 6))
        dumped = item.model_dump(mode="json")
        self.assertEqual(dumped["kind"], "image")
        self.assertEqual(dumped["anchor"], [1.0, 0.0, 0.0, 1.0, 5.0, 6.0])


class TestPage(unittest.TestCase):
    def test_page_number_is_one_based(self) -> None:
        with self.assertRaises(ValidationError):
            Page(page_number=0)
        self.assertEqual(Page(page_number=1).contents, [])


class TestRasterImage(unittest.TestCase):
    def test_buffer_length_checked(self) -> None:
        RasterImage(width=2, height=1, data=bytes(8))
        with self.assertRaises(ValueError):
            RasterImage(width=2, height=1, data=bytes(6))


class TestPageRange(unittest.TestCase):
    def test_valid_range(self) -> None:
        r = PageRange(2, 4)
        self.assertEqual(list(r.pages()), [2, 3, 4])
        self.assertEqual(str(r), "2-4")

    def test_start_after_end(self) -> None:
        with self.assertRaises(InvalidPageRangeError):
            PageRange(3, 2)

    def test_start_below_one(self) -> None:
        with self.assertRaises(InvalidPageRangeError):
            PageRange(0, 2)

    def test_pages_clamped_to_total(self) -> None:
        self.assertEqual(list(PageRange(2, 10).pages(3)), [2, 3])
        self.assertEqual(list(PageRange(5, 10).pages(3)), [])


class TestPayloads(unittest.TestCase):
    def test_process_response_excludes_missing_usage(self) -> None:
        payload = ProcessResponse(
            file=FileInfo(originalName="a.pdf", filePath="a_1.pdf"),
            contents="text",
        ).model_dump(exclude_none=True)
        self.assertEqual(payload["status"], "success")
        self.assertNotIn("totalTokenUsage", payload)
        self.assertNotIn("ocrFilePath", payload["file"])

    def test_error_response(self) -> None:
        self.assertEqual(
            ErrorResponse(msg="bad").model_dump(), {"status": "error", "msg": "bad"}
        )


if __name__ == "__main__":
    unittest.main()
