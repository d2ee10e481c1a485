import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from residency_ocr.main import load_candidate, main, write_outputs
from residency_ocr.ocr.models import BatchError, BatchResult, ProcessingMethod, ProcessingResult


def _result(name: str, text: str) -> ProcessingResult:
    return ProcessingResult(
        text=text,
        confidence=0.9,
        method=ProcessingMethod.IMAGE_OCR,
        source_name=name,
        processing_time_ms=12,
    )


@pytest.fixture()
def scan_file(tmp_path: Path, png_bytes: bytes) -> Path:
    path = tmp_path / "scan.png"
    path.write_bytes(png_bytes)
    return path


class TestLoadCandidate:
    def test_guesses_mime_type_from_extension(self, scan_file: Path, png_bytes: bytes) -> None:
        candidate = load_candidate(scan_file)
        assert candidate.name == "scan.png"
        assert candidate.mime_type == "image/png"
        assert candidate.data == png_bytes
        assert candidate.size == len(png_bytes)

    def test_recognizes_webp(self, tmp_path: Path) -> None:
        path = tmp_path / "photo.webp"
        path.write_bytes(b"RIFF")
        assert load_candidate(path).mime_type == "image/webp"

    def test_unknown_extension_is_octet_stream(self, tmp_path: Path) -> None:
        path = tmp_path / "notes.zzz"
        path.write_bytes(b"x")
        assert load_candidate(path).mime_type == "application/octet-stream"


class TestWriteOutputs:
    def test_writes_one_file_per_result(self, tmp_path: Path) -> None:
        batch = BatchResult(
            results=[_result("scan.png", "Hola"), _result("informe.pdf", "Informe")]
        )
        written = write_outputs(batch, tmp_path / "out")

        assert [p.name for p in written] == ["scan_extracted.txt", "informe_extracted.txt"]
        assert (tmp_path / "out" / "informe_extracted.txt").read_text(encoding="utf-8") == "Informe"


class TestMain:
    def test_prints_json_summary(
        self, scan_file: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        service = MagicMock()
        service.process_batch.return_value = BatchResult(
            results=[_result("scan.png", "Hola mundo")], total_time_ms=40
        )
        with patch("residency_ocr.main.build_service", return_value=service):
            exit_code = main([str(scan_file), "--json"])

        assert exit_code == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["results"][0]["text"] == "Hola mundo"
        assert payload["results"][0]["method"] == "image_ocr"
        assert payload["total"] == 1
        assert payload["successful"] == 1
        assert payload["failed"] == 0

    def test_prints_plain_text_by_default(
        self, scan_file: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        service = MagicMock()
        service.process_batch.return_value = BatchResult(results=[_result("scan.png", "Hola")])
        with patch("residency_ocr.main.build_service", return_value=service):
            main([str(scan_file)])

        out = capsys.readouterr().out
        assert "=== scan.png (image_ocr, 0.90)" in out
        assert "Hola" in out

    def test_errors_give_nonzero_exit(self, scan_file: Path) -> None:
        service = MagicMock()
        service.process_batch.return_value = BatchResult(
            errors=[BatchError(file_name="scan.png", error="File is empty")]
        )
        with patch("residency_ocr.main.build_service", return_value=service):
            assert main([str(scan_file)]) == 1

    def test_no_enhance_flag_disables_enhancement(self, scan_file: Path) -> None:
        service = MagicMock()
        service.process_batch.return_value = BatchResult()
        with patch("residency_ocr.main.build_service", return_value=service) as build:
            main([str(scan_file), "--no-enhance"])

        settings = build.call_args.args[0]
        assert settings.ocr_enhance is False
        candidates = service.process_batch.call_args.args[0]
        assert [c.name for c in candidates] == ["scan.png"]

    def test_output_dir_receives_text_files(self, scan_file: Path, tmp_path: Path) -> None:
        service = MagicMock()
        service.process_batch.return_value = BatchResult(results=[_result("scan.png", "Hola")])
        with patch("residency_ocr.main.build_service", return_value=service):
            main([str(scan_file), "--output-dir", str(tmp_path / "texts")])

        assert (tmp_path / "texts" / "scan_extracted.txt").read_text(encoding="utf-8") == "Hola"
