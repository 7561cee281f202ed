"""Tests for the ocrmypdf orchestrator in pdf_ocr_ai.ocr_process."""

from __future__ import annotations

import subprocess
import threading
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

import fitz
import pytest

from pdf_ocr_ai.ocr_process import (
    CANCEL_POLL_SEC,
    _run_process,
    build_ocr_command,
    extract_transcript,
    run_ocr,
)
from pdf_ocr_ai.schema import PageRange
from pdf_ocr_ai.utils import OcrProcessError, OperationCancelledError, ProcessTimeoutError


def _write_pdf(path: Path, pages: list[str]) -> Path:
    doc = fitz.open()
    for text in pages:
        page = doc.new_page(width=612, height=792)
        if text:
            page.insert_text((72, 100), text, fontsize=12)
    doc.save(str(path))
    doc.close()
    return path


def _fake_ocr(pages: list[str], returncode: int = 0, stderr: str = ""):
    """Stand-in for _run_process that writes the OCR output PDF."""

    def run(cmd: list[str], timeout: int, cancel_event=None) -> tuple[int, str]:
        _write_pdf(Path(cmd[4]), pages)
        return returncode, stderr

    return run


class TestBuildCommand(unittest.TestCase):
    def test_command_layout(self) -> None:
        cmd = build_ocr_command(Path("/s/in.pdf"), Path("/s/in-ocr.pdf"), PageRange(2, 4))
        self.assertEqual(cmd[1:], ["--pages", "2-4", "/s/in.pdf", "/s/in-ocr.pdf", "--redo-ocr"])


class TestRunProcess(unittest.TestCase):
    @patch("pdf_ocr_ai.ocr_process.subprocess.Popen")
    def test_timeout_kills_process(self, mock_popen: MagicMock) -> None:
        proc = mock_popen.return_value
        proc.communicate.side_effect = subprocess.TimeoutExpired(cmd="ocrmypdf", timeout=1)
        proc.poll.return_value = None

        with self.assertRaises(ProcessTimeoutError):
            _run_process(["ocrmypdf"], timeout=0.05)
        proc.kill.assert_called_once()
        proc.wait.assert_called_once()

    @patch("pdf_ocr_ai.ocr_process.subprocess.Popen")
    def test_interrupt_kills_process(self, mock_popen: MagicMock) -> None:
        proc = mock_popen.return_value
        proc.communicate.side_effect = KeyboardInterrupt
        proc.poll.return_value = None

        with self.assertRaises(KeyboardInterrupt):
            _run_process(["ocrmypdf"], timeout=10)
        proc.kill.assert_called_once()

    @patch("pdf_ocr_ai.ocr_process.subprocess.Popen")
    def test_returns_status_and_stderr(self, mock_popen: MagicMock) -> None:
        proc = mock_popen.return_value
        proc.communicate.return_value = ("", "some warning")
        proc.poll.return_value = 0
        proc.returncode = 0

        self.assertEqual(_run_process(["ocrmypdf"], timeout=10), (0, "some warning"))
        proc.kill.assert_not_called()

    @patch("pdf_ocr_ai.ocr_process.subprocess.Popen")
    def test_cancel_event_kills_process(self, mock_popen: MagicMock) -> None:
        proc = mock_popen.return_value
        proc.poll.return_value = None
        cancel = threading.Event()

        def client_disconnects(timeout: float):
            cancel.set()
            raise subprocess.TimeoutExpired(cmd="ocrmypdf", timeout=timeout)

        proc.communicate.side_effect = client_disconnects

        with self.assertRaises(OperationCancelledError):
            _run_process(["ocrmypdf"], timeout=900, cancel_event=cancel)
        proc.kill.assert_called_once()
        proc.wait.assert_called_once()
        self.assertEqual(proc.communicate.call_count, 1)
        self.assertLessEqual(proc.communicate.call_args[1]["timeout"], CANCEL_POLL_SEC)

    @patch("pdf_ocr_ai.ocr_process.subprocess.Popen")
    def test_already_cancelled_never_waits(self, mock_popen: MagicMock) -> None:
        proc = mock_popen.return_value
        proc.poll.return_value = None
        cancel = threading.Event()
        cancel.set()

        with self.assertRaises(OperationCancelledError):
            _run_process(["ocrmypdf"], timeout=900, cancel_event=cancel)
        proc.communicate.assert_not_called()
        proc.kill.assert_called_once()

    @patch("pdf_ocr_ai.ocr_process.subprocess.Popen", side_effect=FileNotFoundError("nope"))
    def test_start_failure(self, _mock: MagicMock) -> None:
        with self.assertRaises(OcrProcessError):
            _run_process(["ocrmypdf"], timeout=10)


class TestExtractTranscript:
    def test_one_line_per_page_clamped(self, tmp_path: Path):
        pdf_path = _write_pdf(tmp_path / "ocr.pdf", ["first page", "second page"])
        assert extract_transcript(pdf_path, PageRange(1, 5)) == "first page\nsecond page\n"

    def test_sub_range(self, tmp_path: Path):
        pdf_path = _write_pdf(tmp_path / "ocr.pdf", ["one", "two", "three"])
        assert extract_transcript(pdf_path, PageRange(2, 3)) == "two\nthree\n"


@patch("pdf_ocr_ai.ocr_process.ensure_binaries")
class TestRunOcr:
    def test_success(self, _ensure, tmp_path: Path):
        source = _write_pdf(tmp_path / "scan_1.pdf", ["", ""])
        with patch("pdf_ocr_ai.ocr_process._run_process",
                   side_effect=_fake_ocr(["Recognized one", "Recognized two"])):
            result = run_ocr(source, PageRange(1, 2))

        assert result.transcript == "Recognized one\nRecognized two\n"
        assert Path(result.output_path) == (tmp_path / "scan_1-ocr.pdf").resolve()
        assert Path(result.output_path).is_file()

    def test_error_marker_is_soft_failure(self, _ensure, tmp_path: Path, caplog):
        source = _write_pdf(tmp_path / "scan.pdf", [""])
        with patch("pdf_ocr_ai.ocr_process._run_process",
                   side_effect=_fake_ocr(["Still readable"], stderr="ERROR - page 1 failed")):
            with caplog.at_level("WARNING", logger="pdf_ocr_ai.ocr_process"):
                result = run_ocr(source, PageRange(1, 1))

        assert result.transcript.strip() == "Still readable"
        assert "OCR failed" in caplog.text

    def test_nonzero_exit_with_output_is_used(self, _ensure, tmp_path: Path):
        source = _write_pdf(tmp_path / "scan.pdf", [""])
        with patch("pdf_ocr_ai.ocr_process._run_process",
                   side_effect=_fake_ocr(["partial"], returncode=2, stderr="ERROR x")):
            result = run_ocr(source, PageRange(1, 1))
        assert result.transcript == "partial\n"

    def test_nonzero_exit_without_output_is_fatal(self, _ensure, tmp_path: Path):
        source = _write_pdf(tmp_path / "scan.pdf", [""])
        with patch("pdf_ocr_ai.ocr_process._run_process", return_value=(1, "ERROR boom")):
            with pytest.raises(OcrProcessError):
                run_ocr(source, PageRange(1, 1))

    def test_stale_output_not_reused(self, _ensure, tmp_path: Path):
        source = _write_pdf(tmp_path / "scan.pdf", [""])
        _write_pdf(tmp_path / "scan-ocr.pdf", ["stale"])
        with patch("pdf_ocr_ai.ocr_process._run_process", return_value=(1, "")):
            with pytest.raises(OcrProcessError):
                run_ocr(source, PageRange(1, 1))

    def test_timeout_is_fatal(self, _ensure, tmp_path: Path):
        source = _write_pdf(tmp_path / "scan.pdf", [""])
        with patch("pdf_ocr_ai.ocr_process._run_process",
                   side_effect=ProcessTimeoutError("timed out")):
            with pytest.raises(ProcessTimeoutError):
                run_ocr(source, PageRange(1, 1), timeout=1)
