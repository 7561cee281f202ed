"""Extract embedded raster images from a page as ``image`` content items.

Each painted image is normalized to RGBA, then described by the vision model
and read by OCR (both calls run concurrently). The first failure aborts the
page's image extraction and propagates; no partial list is returned.

Usage::

    from pdf_ocr_ai.providers.image_extract import extract_images

    with open_document("/path/to.pdf") as doc:
        items = extract_images(doc.get_page(1), api_key="sk-...")
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from contextlib import ExitStack
from typing import Sequence

from ..config import OCR_LANGUAGES
from ..document import OPS, OperatorList, PdfPage
from ..ocr import TesseractEngine, open_ocr_engine
from ..raster import encode_png, normalize_image, to_pil_image
from ..schema import ZERO_TRANSFORM, ContentItem, ContentKind, RasterImage, Transform
from ..vision import describe_image

logger = logging.getLogger(__name__)

PAINT_OPS = frozenset({OPS.PAINT_XOBJECT, OPS.PAINT_IMAGE_XOBJECT})

# The placement transform is emitted two operations ahead of the paint call.
ANCHOR_OFFSET = 2


def anchor_for(ops: OperatorList, index: int) -> Transform:
    """Return the transform placed ``ANCHOR_OFFSET`` operations before *index*.

    Falls back to the zero transform when that operation does not exist or
    its arguments are not a 6-number matrix.
    """
    pos = index - ANCHOR_OFFSET
    if pos < 0 or pos >= len(ops):
        return ZERO_TRANSFORM
    args = ops.args_array[pos]
    if len(args) != 6 or not all(isinstance(v, (int, float)) for v in args):
        return ZERO_TRANSFORM
    return tuple(float(v) for v in args)


def _image_item(
    raster: RasterImage,
    anchor: Transform,
    api_key: str | None,
    engine: TesseractEngine,
    pool: Executor,
) -> ContentItem:
    read = pool.submit(engine.recognize, to_pil_image(raster))
    described = pool.submit(describe_image, encode_png(raster), api_key) if api_key else None

    text = read.result()
    description, usage = described.result() if described is not None else (None, None)
    return ContentItem(
        kind=ContentKind.IMAGE,
        text=text,
        anchor=anchor,
        description=description,
        usage=usage,
    )


def extract_images(
    page: PdfPage,
    api_key: str | None,
    languages: Sequence[str] = OCR_LANGUAGES,
) -> list[ContentItem]:
    """Return one ``image`` item per painted image on *page*, in paint order.

    Images without a positive width and height are skipped. Without an
    *api_key* items carry OCR text only, no description. The OCR engine is
    only acquired once the page paints an image that needs reading.
    """
    ops = page.get_operator_list()
    items: list[ContentItem] = []

    with ExitStack() as stack:
        engine: TesseractEngine | None = None
        pool: Executor | None = None
        for index, fn in enumerate(ops.fn_array):
            if fn not in PAINT_OPS:
                continue
            args = ops.args_array[index]
            if not args:
                continue
            image = page.resolve_object(args[0])
            if image.width <= 0 or image.height <= 0:
                logger.debug("Skipping empty image %s on page %d", args[0], page.page_number)
                continue
            raster = normalize_image(image)
            if engine is None:
                engine = stack.enter_context(open_ocr_engine(languages))
                pool = stack.enter_context(ThreadPoolExecutor(max_workers=2))
            items.append(_image_item(raster, anchor_for(ops, index), api_key, engine, pool))

    logger.info("Extracted %d image(s) from page %d", len(items), page.page_number)
    return items
