"""Stored file naming and lookup for uploaded and OCR-enhanced PDFs.

Callers derive download paths from these names, so the conventions are fixed:

* uploads: ``<stem>_<epoch millis><ext>`` (``.pdf`` appended when missing)
  with every character outside ``[A-Za-z0-9-_.]`` replaced by ``_``;
* OCR output: the stored name with its extension replaced by ``-ocr.pdf``.
"""

from __future__ import annotations

import logging
import os
import re
import time
from pathlib import Path

from .utils import ResourceNotFoundError

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9\-_.]")


def sanitize_filename(name: str) -> str:
    return _UNSAFE_CHARS.sub("_", name)


def stored_name(
    original_name: str,
    timestamp_ms: int | None = None,
    required_ext: str | None = None,
) -> str:
    """Build a collision-resistant storage name for an upload.

    With *required_ext* the name is guaranteed to end in that extension
    (case-insensitive); it is appended when the original lacks it.
    """
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    stem, ext = os.path.splitext(os.path.basename(original_name))
    if required_ext and ext.lower() != required_ext.lower():
        ext += required_ext
    return sanitize_filename(f"{stem}_{timestamp_ms}{ext}")


def ocr_output_name(name: str) -> str:
    stem, _ = os.path.splitext(name)
    return f"{stem}-ocr.pdf"


def ocr_output_path(path: str | Path) -> Path:
    path = Path(path)
    return path.with_name(ocr_output_name(path.name))


def ensure_storage_dir(storage_dir: str | Path) -> Path:
    root = Path(storage_dir)
    root.mkdir(parents=True, exist_ok=True)
    return root


def resolve_stored_file(filename: str, storage_dir: str | Path) -> Path:
    """Return the path of a stored file, or raise :class:`ResourceNotFoundError`."""
    if not filename or filename in (".", "..") or Path(filename).name != filename:
        raise ResourceNotFoundError("File not found")
    path = Path(storage_dir) / filename
    if not path.is_file():
        raise ResourceNotFoundError("File not found")
    return path


def delete_stored_file(filename: str, storage_dir: str | Path) -> None:
    path = resolve_stored_file(filename, storage_dir)
    path.unlink()
    logger.info("Deleted stored file %s", path)
