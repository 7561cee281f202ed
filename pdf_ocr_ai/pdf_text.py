"""Native PDF text extraction: one content item per text run."""

from __future__ import annotations

from .document import PdfPage
from .schema import ContentItem, ContentKind


def extract_text_items(page: PdfPage) -> list[ContentItem]:
    """Map each text run of *page* to a ``text`` item, in input order.

    Runs are neither filtered nor merged, so re-running on the same page
    always yields the same items.
    """
    return [
        ContentItem(kind=ContentKind.TEXT, text=run.text, anchor=run.transform)
        for run in page.get_text_runs()
    ]


def page_text(page: PdfPage) -> str:
    """Return the page's run texts joined with single spaces."""
    return " ".join(item.text for item in extract_text_items(page))
