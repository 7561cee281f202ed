"""Tesseract OCR engine used to read text inside image regions.

An engine is acquired for a batch of images (one page) and released when the
batch is done; use :func:`open_ocr_engine` so release happens on every path.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Sequence

import pytesseract
from PIL import Image

from .config import OCR_LANGUAGES
from .utils import ExternalServiceError, MissingDependencyError, ensure_binaries

logger = logging.getLogger(__name__)

OCR_OEM = 1
OCR_PSM = 3


def _build_config(psm: int = OCR_PSM, tessdata_path: str | None = None) -> str:
    parts = [f"--oem {OCR_OEM}", f"--psm {psm}"]
    if tessdata_path:
        parts.append(f"--tessdata-dir \"{tessdata_path}\"")
    return " ".join(parts)


class TesseractEngine:
    """Recognizes text in PIL images with a fixed language set."""

    def __init__(self, languages: Sequence[str], tessdata_path: str | None = None) -> None:
        if not languages:
            raise ValueError("At least one OCR language is required")
        self.lang = "+".join(languages)
        self._config = _build_config(tessdata_path=tessdata_path)
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def recognize(self, image: Image.Image) -> str:
        if self._released:
            raise RuntimeError("OCR engine has already been released")
        try:
            text = pytesseract.image_to_string(
                image.convert("RGB"), lang=self.lang, config=self._config
            )
        except pytesseract.TesseractNotFoundError as exc:
            raise MissingDependencyError(f"Tesseract is not installed: {exc}") from exc
        except pytesseract.TesseractError as exc:
            raise ExternalServiceError(f"Tesseract failed: {exc}") from exc
        return text.strip()

    def release(self) -> None:
        self._released = True


def acquire_engine(
    languages: Sequence[str] = OCR_LANGUAGES,
    tessdata_path: str | None = None,
) -> TesseractEngine:
    ensure_binaries([pytesseract.pytesseract.tesseract_cmd])
    engine = TesseractEngine(languages, tessdata_path=tessdata_path)
    logger.debug("Acquired OCR engine (lang=%s)", engine.lang)
    return engine


def release_engine(engine: TesseractEngine) -> None:
    engine.release()
    logger.debug("Released OCR engine (lang=%s)", engine.lang)


@contextmanager
def open_ocr_engine(
    languages: Sequence[str] = OCR_LANGUAGES,
    tessdata_path: str | None = None,
) -> Iterator[TesseractEngine]:
    engine = acquire_engine(languages, tessdata_path)
    try:
        yield engine
    finally:
        release_engine(engine)
