"""PyMuPDF-backed page decoder.

Each page is exposed the way the extractors consume it:

* ``get_text_runs()`` -- text spans with a 6-element PDF transform,
* ``get_operator_list()`` -- paint operations with their argument lists,
* ``resolve_object(obj_id)`` -- decoded image samples for a painted object.

All transforms are in PDF user space (origin bottom-left, y grows upward), so a
larger ``f`` component means higher on the page.

The operator list is synthesized from PyMuPDF's image placement info. Every
placement is emitted as::

    SAVE, TRANSFORM(matrix), DEPENDENCY(xref), PAINT_IMAGE_XOBJECT(xref, w, h), RESTORE

so the placement matrix always sits two operations before the paint call.
Stencil masks (``/ImageMask true``) are painted with ``PAINT_IMAGE_MASK_XOBJECT``
and inline images (no xref) with ``PAINT_INLINE_IMAGE_XOBJECT``; neither is
treated as a content image.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Any, List

import fitz  # PyMuPDF

from .schema import Transform
from .utils import PdfProcessingError, validate_pdf_path

logger = logging.getLogger(__name__)


class OPS(IntEnum):
    """Operation codes used in a page operator list."""

    DEPENDENCY = 1
    SAVE = 10
    RESTORE = 11
    TRANSFORM = 12
    PAINT_XOBJECT = 66
    PAINT_IMAGE_MASK_XOBJECT = 83
    PAINT_IMAGE_XOBJECT = 85
    PAINT_INLINE_IMAGE_XOBJECT = 86


class ImageKind(IntEnum):
    """Packed pixel layout of a decoded image."""

    GRAYSCALE = 1
    RGB = 2
    RGBA = 3


BYTES_PER_PIXEL: dict[int, int] = {
    ImageKind.GRAYSCALE: 1,
    ImageKind.RGB: 3,
    ImageKind.RGBA: 4,
}

# (components incl. alpha, has_alpha) -> kind
_PIXMAP_KINDS: dict[tuple[int, bool], ImageKind] = {
    (1, False): ImageKind.GRAYSCALE,
    (3, False): ImageKind.RGB,
    (4, True): ImageKind.RGBA,
}


@dataclass(frozen=True)
class TextRun:
    text: str
    transform: Transform


@dataclass(frozen=True)
class DecodedImage:
    """Decoded image samples. ``kind`` is an :class:`ImageKind` value, or 0 when
    the samples use a layout we have no kind for."""

    kind: int
    width: int
    height: int
    data: bytes


@dataclass
class OperatorList:
    fn_array: List[int] = field(default_factory=list)
    args_array: List[List[Any]] = field(default_factory=list)

    def append(self, fn: int, args: List[Any]) -> None:
        self.fn_array.append(fn)
        self.args_array.append(args)

    def __len__(self) -> int:
        return len(self.fn_array)


class PdfPage:
    """One decoded page of a :class:`PdfDocument`."""

    def __init__(self, doc: fitz.Document, page: fitz.Page, page_number: int) -> None:
        self._doc = doc
        self._page = page
        self.page_number = page_number

    @property
    def height(self) -> float:
        return self._page.rect.height

    def get_text_runs(self) -> list[TextRun]:
        """Return one run per text span, in content-stream order."""
        height = self.height
        runs: list[TextRun] = []
        page_dict = self._page.get_text("dict")
        for block in page_dict.get("blocks", []):
            if block.get("type", 0) != 0:
                continue
            for line in block.get("lines", []):
                dx, dy = line.get("dir", (1.0, 0.0))
                for span in line.get("spans", []):
                    size = span.get("size", 0.0)
                    ox, oy = span.get("origin", (0.0, 0.0))
                    # PyMuPDF is y-down; flip into PDF user space.
                    transform = (
                        round(size * dx, 2),
                        round(-size * dy, 2),
                        round(size * dy, 2),
                        round(size * dx, 2),
                        round(ox, 2),
                        round(height - oy, 2),
                    )
                    runs.append(TextRun(text=span.get("text", ""), transform=transform))
        return runs

    def get_operator_list(self) -> OperatorList:
        height = self.height
        ops = OperatorList()
        for info in self._page.get_image_info(xrefs=True):
            x0, y0, x1, y1 = info["bbox"]
            matrix = [
                round(x1 - x0, 2),
                0.0,
                0.0,
                round(y1 - y0, 2),
                round(x0, 2),
                round(height - y1, 2),
            ]
            xref = info.get("xref", 0)
            ops.append(OPS.SAVE, [])
            ops.append(OPS.TRANSFORM, matrix)
            if xref:
                ops.append(OPS.DEPENDENCY, [xref])
                paint = OPS.PAINT_IMAGE_MASK_XOBJECT if self._is_image_mask(xref) else OPS.PAINT_IMAGE_XOBJECT
                ops.append(paint, [xref, info.get("width", 0), info.get("height", 0)])
            else:
                ops.append(OPS.PAINT_INLINE_IMAGE_XOBJECT, [info.get("number", 0)])
            ops.append(OPS.RESTORE, [])
        return ops

    def _is_image_mask(self, xref: int) -> bool:
        # Stencil masks carry no colour samples of their own.
        kind, value = self._doc.xref_get_key(xref, "ImageMask")
        return kind == "bool" and value == "true"

    def resolve_object(self, obj_id: Any) -> DecodedImage:
        """Decode the image object ``obj_id`` (an xref) into packed samples.

        Colour spaces other than gray and RGB (CMYK, Lab, ...) are converted to
        RGB, as are gray images carrying alpha.
        """
        try:
            pix = fitz.Pixmap(self._doc, int(obj_id))
            if pix.colorspace is not None and (
                pix.colorspace.n not in (1, 3) or (pix.colorspace.n == 1 and pix.alpha)
            ):
                pix = fitz.Pixmap(fitz.csRGB, pix)
        except Exception as exc:
            raise PdfProcessingError(
                f"Failed to decode image {obj_id} on page {self.page_number}: {exc}"
            ) from exc
        kind = _PIXMAP_KINDS.get((pix.n, bool(pix.alpha)), 0)
        if not kind:
            logger.debug(
                "Image %s on page %d has no known pixel layout (n=%d alpha=%s)",
                obj_id, self.page_number, pix.n, bool(pix.alpha),
            )
        return DecodedImage(
            kind=int(kind),
            width=pix.width,
            height=pix.height,
            data=bytes(pix.samples),
        )


class PdfDocument:
    """Open PDF exposing its page count and 1-based page access."""

    def __init__(self, path: str | Path) -> None:
        self.path = validate_pdf_path(path)
        try:
            self._doc = fitz.open(str(self.path))
        except Exception as exc:
            raise PdfProcessingError(f"Failed to open PDF: {exc}") from exc

    @property
    def page_count(self) -> int:
        return self._doc.page_count

    def get_page(self, page_number: int) -> PdfPage:
        if not 1 <= page_number <= self.page_count:
            raise PdfProcessingError(
                f"Page {page_number} out of range (document has {self.page_count} pages)"
            )
        return PdfPage(self._doc, self._doc.load_page(page_number - 1), page_number)

    def close(self) -> None:
        self._doc.close()

    def __enter__(self) -> "PdfDocument":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def open_document(path: str | Path) -> PdfDocument:
    return PdfDocument(path)
