"""Centralized configuration for limits, external tools and service settings.

All env-driven settings live here so there is a single source of truth.
Import from ``pdf_ocr_ai.config`` in api.py, pipeline.py, etc.
"""

from __future__ import annotations

import os
import sys


def _env_int(name: str, default: int, lo: int = 1, hi: int = 10_000) -> int:
    try:
        return max(lo, min(hi, int(os.environ.get(name, str(default)))))
    except (TypeError, ValueError):
        return default


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------
STORAGE_DIR: str = os.environ.get("STORAGE_DIR", "./storage")
MAX_FILE_SIZE_BYTES: int = _env_int(
    "MAX_FILE_SIZE_BYTES", default=50 * 1024 * 1024, lo=1, hi=1024 * 1024 * 1024,
)
UPLOAD_CHUNK_SIZE: int = 64 * 1024  # 64 KiB streaming chunks

# ---------------------------------------------------------------------------
# Page range defaults (1-based, inclusive)
# ---------------------------------------------------------------------------
DEFAULT_PAGE_START: int = _env_int("DEFAULT_PAGE_START", default=1)
DEFAULT_PAGE_END: int = _env_int("DEFAULT_PAGE_END", default=5)

# ---------------------------------------------------------------------------
# OCR
# ---------------------------------------------------------------------------
OCR_TIMEOUT_SEC: int = _env_int("OCR_TIMEOUT_SEC", default=15 * 60, hi=24 * 3600)
OCRMYPDF_BIN: str = os.environ.get("OCRMYPDF_BIN", "ocrmypdf").strip() or "ocrmypdf"
OCR_LANGUAGES: tuple[str, ...] = tuple(
    lang.strip()
    for lang in os.environ.get("OCR_LANGUAGES", "eng").split(",")
    if lang.strip()
) or ("eng",)

# ---------------------------------------------------------------------------
# Vision description
# ---------------------------------------------------------------------------
VISION_MODEL: str = os.environ.get("VISION_MODEL", "gpt-4o").strip() or "gpt-4o"
VISION_MAX_TOKENS: int = _env_int("VISION_MAX_TOKENS", default=500, hi=16_000)
VISION_TIMEOUT_SEC: int = _env_int("VISION_TIMEOUT_SEC", default=60, hi=600)


def log_startup_config() -> None:
    """Print one startup line summarising active configuration."""
    msg = (
        f"PDF OCR AI config: STORAGE_DIR={STORAGE_DIR} "
        f"MAX_FILE_SIZE_BYTES={MAX_FILE_SIZE_BYTES} "
        f"PAGES={DEFAULT_PAGE_START}-{DEFAULT_PAGE_END} "
        f"OCR_TIMEOUT_SEC={OCR_TIMEOUT_SEC} OCRMYPDF_BIN={OCRMYPDF_BIN} "
        f"OCR_LANGUAGES={'+'.join(OCR_LANGUAGES)} "
        f"VISION_MODEL={VISION_MODEL} "
        f"VISION_MAX_TOKENS={VISION_MAX_TOKENS}"
    )
    print(msg, flush=True)
    sys.stderr.write(msg + "\n")
    sys.stderr.flush()
