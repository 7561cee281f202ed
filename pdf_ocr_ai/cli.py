"""Command-line interface for PDF content extraction and OCR."""

from __future__ import annotations

import argparse
import logging
import os
import sys

from .config import DEFAULT_PAGE_END, DEFAULT_PAGE_START, OCR_TIMEOUT_SEC
from .pipeline import extract_document, ocr_document
from .schema import FileInfo, ProcessResponse
from .storage import ocr_output_name
from .utils import ExtractionError


def build_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser."""

    parser = argparse.ArgumentParser(
        description="Extract reading-order text and described images from a PDF.",
    )
    parser.add_argument("pdf_path", help="Path to the PDF file.")
    parser.add_argument(
        "--mode",
        choices=("ai", "ocr"),
        default="ai",
        help="'ai': text + images with descriptions; 'ocr': OCR re-pass transcript (default: ai).",
    )
    parser.add_argument(
        "--page-start",
        type=int,
        default=DEFAULT_PAGE_START,
        help=f"First page, 1-based (default: {DEFAULT_PAGE_START}).",
    )
    parser.add_argument(
        "--page-end",
        type=int,
        default=DEFAULT_PAGE_END,
        help=f"Last page, inclusive (default: {DEFAULT_PAGE_END}).",
    )
    parser.add_argument(
        "--api-key",
        type=str,
        default=None,
        help="OpenAI API key for image descriptions (default: OPENAI_API_KEY). "
             "Without a key images are OCR'd but not described.",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        default=OCR_TIMEOUT_SEC,
        help=f"OCR process timeout in seconds (default: {OCR_TIMEOUT_SEC}).",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the full JSON payload instead of the transcript.",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging.")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Entry point for the CLI."""

    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    file_name = os.path.basename(args.pdf_path)
    try:
        if args.mode == "ocr":
            ocr_result = ocr_document(
                args.pdf_path, args.page_start, args.page_end, timeout=args.timeout
            )
            payload = ProcessResponse(
                file=FileInfo(
                    originalName=file_name,
                    filePath=args.pdf_path,
                    ocrFilePath=ocr_output_name(file_name),
                ),
                contents=ocr_result.transcript,
            )
        else:
            api_key = args.api_key or os.environ.get("OPENAI_API_KEY")
            result = extract_document(args.pdf_path, api_key, args.page_start, args.page_end)
            payload = ProcessResponse(
                file=FileInfo(originalName=file_name, filePath=args.pdf_path),
                contents=result.transcript,
                totalTokenUsage=result.total_usage,
            )
        if args.json:
            print(payload.model_dump_json(indent=2, exclude_none=True))
        else:
            print(payload.contents)
        return 0
    except ExtractionError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except Exception as exc:  # pragma: no cover - safety net
        print(f"Unexpected error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
