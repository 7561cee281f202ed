"""Request-level pipeline.

Validates the requested page range against the document, runs per-page
extraction (or the OCR re-pass) and flattens the result into a transcript.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Iterable, Sequence

from .config import DEFAULT_PAGE_END, DEFAULT_PAGE_START, OCR_LANGUAGES, OCR_TIMEOUT_SEC
from .document import open_document
from .extract import extract_page
from .ocr_process import run_ocr
from .schema import ContentItem, ContentKind, ExtractionResult, OcrResult, Page, PageRange
from .utils import InvalidPageRangeError

logger = logging.getLogger(__name__)

PAGE_SEPARATOR = "\n" + "=" * 20 + "\n"


def requested_page_range(page_start: int | None, page_end: int | None) -> PageRange:
    """Apply defaults and check ``1 <= start <= end`` without the document."""
    start = DEFAULT_PAGE_START if page_start is None else page_start
    end = DEFAULT_PAGE_END if page_end is None else page_end
    return PageRange(start, end)


def _check_page_count(page_range: PageRange, total_pages: int) -> None:
    if page_range.end > total_pages:
        raise InvalidPageRangeError("Page range is invalid")


def resolve_page_range(
    page_start: int | None,
    page_end: int | None,
    total_pages: int,
) -> PageRange:
    """Apply defaults and validate the requested range.

    ``end`` is checked against *total_pages* as requested, before any
    clamping happens.
    """
    page_range = requested_page_range(page_start, page_end)
    _check_page_count(page_range, total_pages)
    return page_range


def render_item(item: ContentItem) -> str:
    if item.kind == ContentKind.IMAGE and item.description:
        return f"{item.text} [Image Description: {item.description}]"
    return item.text


def build_transcript(pages: Iterable[Page]) -> str:
    return PAGE_SEPARATOR.join(
        "\n".join(render_item(item) for item in page.contents) for page in pages
    )


def aggregate_usage(pages: Iterable[Page]) -> int:
    """Sum usage over items that carry both a description and a usage count."""
    return sum(
        item.usage
        for page in pages
        for item in page.contents
        if item.description and item.usage is not None
    )


def extract_document(
    pdf_path: str | Path,
    api_key: str | None,
    page_start: int | None = None,
    page_end: int | None = None,
    languages: Sequence[str] = OCR_LANGUAGES,
) -> ExtractionResult:
    """Extract reading-order content for each page in range.

    Pages are processed in ascending order; the first failing page aborts the
    request.
    """
    page_range = requested_page_range(page_start, page_end)
    with open_document(pdf_path) as doc:
        _check_page_count(page_range, doc.page_count)
        pages = [
            extract_page(doc.get_page(page_number), api_key, languages=languages)
            for page_number in page_range.pages(doc.page_count)
        ]

    total_usage = aggregate_usage(pages)
    logger.info(
        "Extracted pages %s of %s (%d page(s), %d token(s))",
        page_range, pdf_path, len(pages), total_usage,
    )
    return ExtractionResult(
        pages=pages,
        transcript=build_transcript(pages),
        total_usage=total_usage,
    )


def ocr_document(
    pdf_path: str | Path,
    page_start: int | None = None,
    page_end: int | None = None,
    timeout: int = OCR_TIMEOUT_SEC,
    cancel_event: threading.Event | None = None,
) -> OcrResult:
    """Validate the range, then OCR the document and return its transcript.

    Setting *cancel_event* kills the OCR process and aborts the request.
    """
    page_range = requested_page_range(page_start, page_end)
    with open_document(pdf_path) as doc:
        _check_page_count(page_range, doc.page_count)
    return run_ocr(pdf_path, page_range, timeout=timeout, cancel_event=cancel_event)
