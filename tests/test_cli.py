"""Tests for the command-line interface and CSV export."""

import csv
import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import numpy as np
import pytest
from PIL import Image

from doccapture.cli import (
    _find_text_files,
    _print_summary,
    _write_csv,
    enhance_file,
    extract_single,
    main,
    process_folder,
)

PASSPORT_TEXT = (
    "PASSPORT\n"
    "P123456789\n"
    "Surname: DOE\n"
    "Given names: JANE\n"
    "JANE DOE\n"
    "Nationality: CANADA\n"
    "DOB: 07/04/1990\n"
)


def _make_test_image(path: Path) -> None:
    """Create a minimal 80x60 test PNG image at the given path."""
    img = Image.fromarray(np.full((60, 80, 3), 128, dtype=np.uint8))
    img.save(path, format="PNG")


class TestFindTextFiles:
    """Tests for OCR text discovery."""

    def test_find_txt_files(self, tmp_path: Path) -> None:
        (tmp_path / "doc1.txt").touch()
        (tmp_path / "doc2.txt").touch()
        (tmp_path / "scan.png").touch()
        files = _find_text_files(tmp_path)
        assert [f.name for f in files] == ["doc1.txt", "doc2.txt"]

    def test_find_uppercase_extension(self, tmp_path: Path) -> None:
        (tmp_path / "DOC.TXT").touch()
        assert len(_find_text_files(tmp_path)) == 1

    def test_find_nothing(self, tmp_path: Path) -> None:
        (tmp_path / "scan.jpg").touch()
        assert _find_text_files(tmp_path) == []


class TestWriteCsv:
    """Tests for CSV writing."""

    def test_column_order(self, tmp_path: Path) -> None:
        results = [
            {
                "nationality": "USA",
                "filename": "a.txt",
                "document_number": "P123456789",
                "status": "success",
                "error": None,
            },
            {"filename": "b.txt", "status": "failed", "error": "bad bytes"},
        ]
        output = tmp_path / "results.csv"
        _write_csv(results, output)

        with open(output) as f:
            reader = csv.reader(f)
            headers = next(reader)
        assert headers == [
            "filename",
            "status",
            "error",
            "document_number",
            "nationality",
        ]

    def test_content(self, tmp_path: Path) -> None:
        output = tmp_path / "results.csv"
        _write_csv([{"filename": "a.txt", "issue_date": "2020-01-15"}], output)
        with open(output) as f:
            rows = list(csv.DictReader(f))
        assert rows == [{"filename": "a.txt", "issue_date": "2020-01-15"}]

    def test_empty_results(self, tmp_path: Path) -> None:
        output = tmp_path / "results.csv"
        _write_csv([], output)
        assert not output.exists()

    def test_creates_parent_dirs(self, tmp_path: Path) -> None:
        output = tmp_path / "subdir" / "results.csv"
        _write_csv([{"filename": "a.txt", "status": "success"}], output)
        assert output.exists()


class TestPrintSummary:
    """Tests for summary printing."""

    def test_print_summary(self, capsys: pytest.CaptureFixture[str]) -> None:
        _print_summary({"total": 5, "successful": 4, "failed": 1}, Path("out.csv"))
        captured = capsys.readouterr()
        assert "Batch Extraction Complete" in captured.out
        assert "Total:      5" in captured.out
        assert "Successful: 4" in captured.out
        assert "Failed:     1" in captured.out
        assert "out.csv" in captured.out


class TestProcessFolder:
    """Tests for batch folder processing."""

    def test_process_folder_success(self, tmp_path: Path) -> None:
        (tmp_path / "a.txt").write_text(PASSPORT_TEXT)
        (tmp_path / "b.txt").write_text("Issued 01/15/2020\nExpires 01/15/2030\n")
        output_csv = tmp_path / "out" / "results.csv"

        summary = process_folder(tmp_path, output_csv, document_type="passport")
        assert summary == {"total": 2, "successful": 2, "failed": 0}

        with open(output_csv) as f:
            rows = list(csv.DictReader(f))
        assert rows[0]["filename"] == "a.txt"
        assert rows[0]["document_number"] == "P123456789"
        assert rows[0]["date_of_birth"] == "1990-07-04"
        assert rows[1]["expiration_date"] == "2030-01-15"

    def test_process_folder_with_failure(self, tmp_path: Path) -> None:
        (tmp_path / "good.txt").write_text(PASSPORT_TEXT)
        (tmp_path / "bad.txt").write_bytes(b"\xff\xfe\xfa invalid")
        output_csv = tmp_path / "results.csv"

        summary = process_folder(tmp_path, output_csv)
        assert summary["successful"] == 1
        assert summary["failed"] == 1

        with open(output_csv) as f:
            rows = {row["filename"]: row for row in csv.DictReader(f)}
        assert rows["bad.txt"]["status"] == "failed"
        assert rows["bad.txt"]["error"]

    def test_process_folder_auto_detects_type(self, tmp_path: Path) -> None:
        (tmp_path / "a.txt").write_text(PASSPORT_TEXT)
        output_csv = tmp_path / "results.csv"
        process_folder(tmp_path, output_csv, document_type="auto")
        with open(output_csv) as f:
            (row,) = list(csv.DictReader(f))
        assert row["document_type"] == "passport"

    def test_process_folder_empty(self, tmp_path: Path) -> None:
        output_csv = tmp_path / "results.csv"
        summary = process_folder(tmp_path, output_csv)
        assert summary["total"] == 0
        assert not output_csv.exists()

    def test_process_folder_verbose(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        (tmp_path / "doc1.txt").write_text("JANE DOE")
        process_folder(tmp_path, tmp_path / "results.csv", verbose=True)
        captured = capsys.readouterr()
        assert "Processing [1/1]: doc1.txt" in captured.out


class TestExtractSingle:
    """Tests for single file extraction."""

    def test_returns_fields(self, tmp_path: Path) -> None:
        doc = tmp_path / "doc.txt"
        doc.write_text(PASSPORT_TEXT)
        result = extract_single(doc, "passport")
        assert result["filename"] == "doc.txt"
        assert result["document_type"] == "passport"
        assert result["raw_text"] == PASSPORT_TEXT
        assert result["fields"]["document_number"] == {
            "value": "P123456789",
            "confidence": 85,
        }

    def test_auto_detection(self, tmp_path: Path) -> None:
        doc = tmp_path / "doc.txt"
        doc.write_text(PASSPORT_TEXT)
        assert extract_single(doc, "auto")["document_type"] == "passport"

    def test_no_hint(self, tmp_path: Path) -> None:
        doc = tmp_path / "doc.txt"
        doc.write_text("Card AB123456")
        result = extract_single(doc)
        assert result["document_type"] is None
        assert result["fields"]["document_number"]["confidence"] == 70


class TestEnhanceFile:
    """Tests for single image enhancement."""

    def test_enhance_file(self, tmp_path: Path) -> None:
        source = tmp_path / "scan.png"
        _make_test_image(source)
        output = tmp_path / "out" / "scan.jpg"

        summary = enhance_file(source, output, max_width=100, max_height=100)
        assert output.exists()
        assert (summary["width"], summary["height"]) == (100, 75)
        assert summary["fallback_to_original"] is False
        assert {s["status"] for s in summary["stages"].values()} == {"ok"}
        with Image.open(output) as img:
            assert img.size == (100, 75)

    def test_undecodable_input_copied(self, tmp_path: Path) -> None:
        source = tmp_path / "scan.png"
        source.write_bytes(b"not an image")
        output = tmp_path / "scan.jpg"
        summary = enhance_file(source, output)
        assert output.read_bytes() == b"not an image"
        assert summary["fallback_to_original"] is True
        assert summary["stages"]["decode"]["status"] == "fatal"


class TestCLIMain:
    """Tests for the CLI argument parser and main entry point."""

    def test_no_command_shows_help(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 0

    @pytest.mark.parametrize(
        ("argv", "message"),
        [
            (["batch", "/nonexistent/path"], "not a directory"),
            (["extract", "/nonexistent/file.txt"], "does not exist"),
            (["enhance", "/nonexistent/scan.png"], "does not exist"),
            (["assess", "/nonexistent/scan.png"], "does not exist"),
        ],
    )
    def test_missing_inputs(
        self, argv: list[str], message: str, capsys: pytest.CaptureFixture[str]
    ) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(argv)
        assert exc_info.value.code == 1
        assert message in capsys.readouterr().err

    @patch("doccapture.cli.process_folder")
    def test_batch_with_options(self, mock_pf: MagicMock, tmp_path: Path) -> None:
        mock_pf.return_value = {"total": 1, "successful": 1, "failed": 0}
        output = tmp_path / "out.csv"
        main(["batch", str(tmp_path), "-o", str(output), "-t", "passport", "-v"])
        mock_pf.assert_called_once_with(tmp_path, output, "passport", True)

    @patch("doccapture.cli.process_folder")
    def test_batch_defaults(self, mock_pf: MagicMock, tmp_path: Path) -> None:
        mock_pf.return_value = {"total": 0, "successful": 0, "failed": 0}
        main(["batch", str(tmp_path)])
        mock_pf.assert_called_once_with(tmp_path, Path("results.csv"), None, False)

    @patch("doccapture.cli.extract_single")
    def test_extract_command(
        self,
        mock_extract: MagicMock,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        mock_extract.return_value = {
            "filename": "doc.txt",
            "document_type": None,
            "fields": {},
            "raw_text": "",
        }
        doc = tmp_path / "doc.txt"
        doc.touch()
        main(["extract", str(doc), "-t", "auto"])
        mock_extract.assert_called_once_with(doc, "auto")
        assert "doc.txt" in capsys.readouterr().out

    @patch("doccapture.cli.extract_single")
    def test_extract_to_output_file(
        self, mock_extract: MagicMock, tmp_path: Path
    ) -> None:
        mock_extract.return_value = {
            "filename": "doc.txt",
            "document_type": "passport",
            "fields": {"nationality": {"value": "USA", "confidence": 90}},
            "raw_text": "USA",
        }
        doc = tmp_path / "doc.txt"
        doc.touch()
        output = tmp_path / "result.json"
        main(["extract", str(doc), "-o", str(output)])
        data = json.loads(output.read_text())
        assert data["fields"]["nationality"]["value"] == "USA"

    def test_extract_rejects_unknown_type(self, tmp_path: Path) -> None:
        doc = tmp_path / "doc.txt"
        doc.touch()
        with pytest.raises(SystemExit) as exc_info:
            main(["extract", str(doc), "-t", "receipt"])
        assert exc_info.value.code == 2

    def test_assess_command(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        source = tmp_path / "scan.png"
        _make_test_image(source)
        main(["assess", str(source)])
        out = capsys.readouterr().out
        assert '"score"' in out
        assert "Resolution: Resolution too low" in out

    def test_enhance_command(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        source = tmp_path / "scan.png"
        _make_test_image(source)
        output = tmp_path / "scan.jpg"
        main(
            [
                "enhance",
                str(source),
                "-o",
                str(output),
                "--max-width",
                "40",
                "--max-height",
                "40",
                "--no-align",
            ]
        )
        assert output.exists()
        out = capsys.readouterr().out
        assert '"width": 40' in out
        assert '"auto_align"' not in out

    def test_enhance_invalid_quality(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        source = tmp_path / "scan.png"
        _make_test_image(source)
        with pytest.raises(SystemExit) as exc_info:
            main(["enhance", str(source), "--quality", "2.0"])
        assert exc_info.value.code == 1
        assert "invalid enhancement options" in capsys.readouterr().err
