"""FastAPI app exposing content extraction and OCR over uploaded PDFs."""

from __future__ import annotations

import asyncio
import logging
import os
import threading
from pathlib import Path

from fastapi import FastAPI, File, Form, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, JSONResponse, PlainTextResponse

from .config import (
    MAX_FILE_SIZE_BYTES,
    STORAGE_DIR,
    UPLOAD_CHUNK_SIZE,
    log_startup_config,
)
from .pipeline import extract_document, ocr_document
from .schema import ErrorResponse, FileInfo, ProcessResponse
from .storage import (
    delete_stored_file,
    ensure_storage_dir,
    ocr_output_name,
    resolve_stored_file,
    stored_name,
)
from .utils import (
    ExtractionError,
    FileTooLargeError,
    InvalidInputError,
    ResourceNotFoundError,
)

logger = logging.getLogger(__name__)

app = FastAPI(title="PDF OCR AI")

PDF_CONTENT_TYPE = "application/pdf"


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------
@app.on_event("startup")
def _startup() -> None:
    log_startup_config()
    ensure_storage_dir(STORAGE_DIR)


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------
def _error(status_code: int, msg: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(msg=msg).model_dump())


def _status_for(exc: ExtractionError) -> int:
    if isinstance(exc, FileTooLargeError):
        return 413
    if isinstance(exc, InvalidInputError):
        return 400
    if isinstance(exc, ResourceNotFoundError):
        return 404
    return 500


@app.exception_handler(ExtractionError)
async def _extraction_error_handler(request, exc: ExtractionError):  # noqa: ARG001
    status_code = _status_for(exc)
    if status_code >= 500:
        logger.error("Request failed: %s: %s", type(exc).__name__, exc)
    return _error(status_code, str(exc))


@app.exception_handler(RequestValidationError)
async def _validation_error_handler(request, exc: RequestValidationError):  # noqa: ARG001
    errors = exc.errors()
    msg = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', 'invalid')}"
        for err in errors
    )
    return _error(400, msg or "Invalid request")


@app.exception_handler(Exception)
async def _unhandled_exception_handler(request, exc: Exception):  # noqa: ARG001
    logger.exception("Unhandled error: %s", exc)
    return _error(500, str(exc) or "Internal server error")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
async def _store_upload(file: UploadFile | None) -> Path:
    """Stream an uploaded PDF into storage in chunks; enforce size limit."""
    if file is None or not file.filename:
        raise InvalidInputError("No PDF file uploaded")
    if file.content_type != PDF_CONTENT_TYPE:
        raise InvalidInputError("Only PDF files are allowed")

    root = ensure_storage_dir(STORAGE_DIR)
    path = root / stored_name(file.filename, required_ext=".pdf")
    total = 0
    try:
        with open(path, "wb") as out:
            while True:
                chunk = await file.read(UPLOAD_CHUNK_SIZE)
                if not chunk:
                    break
                total += len(chunk)
                if total > MAX_FILE_SIZE_BYTES:
                    raise FileTooLargeError(
                        f"File too large (limit {MAX_FILE_SIZE_BYTES // (1024 * 1024)} MB)."
                    )
                out.write(chunk)
    except Exception:
        if path.exists():
            os.remove(path)
        raise
    if total == 0:
        os.remove(path)
        raise InvalidInputError("Uploaded file is empty.")
    logger.info("Stored upload %s (%d bytes)", path.name, total)
    return path


# ---------------------------------------------------------------------------
# Pages / health
# ---------------------------------------------------------------------------
@app.get("/", response_class=PlainTextResponse)
async def index():
    return "OK"


@app.get("/health")
async def health():
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# Extraction endpoints
# ---------------------------------------------------------------------------
@app.post("/ocr-ai")
async def ocr_ai_endpoint(
    pdf: UploadFile | None = File(None),
    openAPIKey: str | None = Form(None),
    pageStart: int | None = None,
    pageEnd: int | None = None,
):
    """Extract text and described images in reading order."""
    if pdf is None:
        raise InvalidInputError("No PDF file uploaded")
    if not openAPIKey:
        raise InvalidInputError("No OpenAI API key provided")

    path = await _store_upload(pdf)
    result = await run_in_threadpool(extract_document, path, openAPIKey, pageStart, pageEnd)
    return ProcessResponse(
        file=FileInfo(originalName=pdf.filename, filePath=path.name),
        contents=result.transcript,
        totalTokenUsage=result.total_usage,
    ).model_dump(exclude_none=True)


@app.post("/ocr")
async def ocr_endpoint(
    pdf: UploadFile | None = File(None),
    pageStart: int | None = None,
    pageEnd: int | None = None,
):
    """Run an OCR re-pass and return the flat transcript."""
    path = await _store_upload(pdf)
    cancel = threading.Event()
    try:
        result = await run_in_threadpool(
            ocr_document, path, pageStart, pageEnd, cancel_event=cancel
        )
    except asyncio.CancelledError:
        # The worker thread outlives the request; stop its OCR process.
        cancel.set()
        logger.info("Request cancelled; stopping OCR for %s", path.name)
        raise
    return ProcessResponse(
        file=FileInfo(
            originalName=pdf.filename,
            filePath=path.name,
            ocrFilePath=ocr_output_name(path.name),
        ),
        contents=result.transcript,
    ).model_dump(exclude_none=True)


# ---------------------------------------------------------------------------
# Stored files
# ---------------------------------------------------------------------------
@app.get("/download/{filename}")
async def download_file(filename: str):
    try:
        path = resolve_stored_file(filename, STORAGE_DIR)
    except ResourceNotFoundError:
        return JSONResponse(status_code=404, content={"message": "File not found"})
    return FileResponse(path, filename=filename)


@app.delete("/files/{filename}")
async def delete_file(filename: str):
    try:
        delete_stored_file(filename, STORAGE_DIR)
    except ResourceNotFoundError:
        return JSONResponse(status_code=404, content={"message": "File not found"})
    except OSError:
        logger.exception("Error deleting %s", filename)
        return JSONResponse(status_code=500, content={"message": "Error deleting the file"})
    return {"message": "File deleted successfully"}
