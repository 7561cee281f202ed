"""Full-document OCR re-pass with ``ocrmypdf``, then native text extraction.

A process timeout is fatal. An ``ERROR`` marker on stderr is only logged:
the output file is still read if it was produced. The child process is
killed on every abnormal exit path, including interrupts and cancellation
through a ``threading.Event``.
"""

from __future__ import annotations

import logging
import subprocess
import threading
import time
from pathlib import Path

from .config import OCR_TIMEOUT_SEC, OCRMYPDF_BIN
from .document import open_document
from .pdf_text import page_text
from .schema import OcrResult, PageRange
from .storage import ocr_output_path
from .utils import (
    OcrProcessError,
    OperationCancelledError,
    ProcessTimeoutError,
    ensure_binaries,
    validate_pdf_path,
)

logger = logging.getLogger(__name__)

ERROR_MARKER = "ERROR"
CANCEL_POLL_SEC = 0.5


def build_ocr_command(
    input_path: Path,
    output_path: Path,
    page_range: PageRange,
    binary: str = OCRMYPDF_BIN,
) -> list[str]:
    return [
        binary,
        "--pages",
        str(page_range),
        str(input_path),
        str(output_path),
        "--redo-ocr",
    ]


def _run_process(
    cmd: list[str],
    timeout: float,
    cancel_event: threading.Event | None = None,
) -> tuple[int, str]:
    """Run *cmd* and return ``(returncode, stderr)``.

    The child is waited on in slices of ``CANCEL_POLL_SEC`` so that setting
    *cancel_event* kills it promptly.
    """
    try:
        proc = subprocess.Popen(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            errors="replace",
        )
    except OSError as exc:
        raise OcrProcessError(f"Failed to start OCR process: {exc}") from exc
    deadline = time.monotonic() + timeout
    try:
        while True:
            if cancel_event is not None and cancel_event.is_set():
                raise OperationCancelledError("OCR process cancelled")
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise ProcessTimeoutError(f"OCR process timed out after {timeout} s")
            try:
                _, stderr = proc.communicate(timeout=min(CANCEL_POLL_SEC, remaining))
                break
            except subprocess.TimeoutExpired:
                continue
    finally:
        if proc.poll() is None:
            proc.kill()
            proc.wait()
    return proc.returncode, stderr or ""


def extract_transcript(pdf_path: str | Path, page_range: PageRange) -> str:
    """Concatenate the text of each page in range, one line per page."""
    with open_document(pdf_path) as doc:
        return "".join(
            page_text(doc.get_page(page_number)) + "\n"
            for page_number in page_range.pages(doc.page_count)
        )


def run_ocr(
    input_path: str | Path,
    page_range: PageRange,
    timeout: int = OCR_TIMEOUT_SEC,
    binary: str = OCRMYPDF_BIN,
    cancel_event: threading.Event | None = None,
) -> OcrResult:
    """OCR *page_range* of *input_path* into ``<stem>-ocr.pdf`` and read it back."""
    input_path = validate_pdf_path(input_path)
    output_path = ocr_output_path(input_path)
    ensure_binaries([binary])
    if output_path.exists():
        output_path.unlink()

    start = time.monotonic()
    returncode, stderr = _run_process(
        build_ocr_command(input_path, output_path, page_range, binary=binary),
        timeout,
        cancel_event=cancel_event,
    )
    if ERROR_MARKER in stderr:
        logger.warning("OCR failed for %s: %s", input_path, stderr.strip())
    if returncode != 0:
        if not output_path.is_file():
            raise OcrProcessError(
                f"OCR process exited with status {returncode}: {stderr.strip()}"
            )
        logger.warning(
            "OCR process exited with status %d for %s; reading its output anyway",
            returncode, input_path,
        )
    elif not output_path.is_file():
        raise OcrProcessError(f"OCR process produced no output for {input_path}")

    logger.info(
        "Finished OCR on %s in %.1f secs.", input_path, time.monotonic() - start
    )
    return OcrResult(
        transcript=extract_transcript(output_path, page_range),
        output_path=str(output_path),
    )
