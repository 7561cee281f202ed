"""Per-page extraction: text runs and images merged into reading order."""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from .config import OCR_LANGUAGES
from .document import PdfPage
from .pdf_text import extract_text_items
from .providers.image_extract import extract_images
from .schema import ContentItem, Page

logger = logging.getLogger(__name__)


def _reading_key(item: ContentItem) -> tuple[float, float]:
    anchor = item.anchor
    if not anchor or len(anchor) < 6:
        return (0.0, 0.0)
    # Higher on the page first, then left to right.
    return (-anchor[5], anchor[4])


def merge_page_items(
    text_items: Iterable[ContentItem],
    image_items: Iterable[ContentItem],
) -> list[ContentItem]:
    """Merge text and image items into one reading-order sequence.

    Sorts by vertical anchor descending, then horizontal ascending. The sort
    is stable, so items with equal keys keep their input order (text first).
    Only approximates reading order for single-column, unrotated layouts.
    """
    return sorted([*text_items, *image_items], key=_reading_key)


def extract_page(
    page: PdfPage,
    api_key: str | None,
    languages: Sequence[str] = OCR_LANGUAGES,
) -> Page:
    text_items = extract_text_items(page)
    image_items = extract_images(page, api_key, languages=languages)
    contents = merge_page_items(text_items, image_items)
    logger.debug(
        "Page %d: %d text item(s), %d image item(s)",
        page.page_number, len(text_items), len(image_items),
    )
    return Page(page_number=page.page_number, contents=contents)
