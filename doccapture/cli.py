"""Command-line interface for document image enhancement and field extraction.

Provides subcommands for enhancing a captured image, assessing its
quality, extracting fields from OCR text, and batch-exporting extracted
fields for a folder of OCR text files to CSV.
"""

import argparse
import csv
import json
import sys
import time
from pathlib import Path

from pydantic import ValidationError

from doccapture.enhancement.pipeline import ImageEnhancer
from doccapture.enhancement.quality import assess_image_quality
from doccapture.extraction.document_type import UNKNOWN_TYPE, DocumentTypeDetector
from doccapture.extraction.field_extractor import (
    FIELD_NAMES,
    ExtractedFields,
    extract_fields,
)
from doccapture.utils.config import EnhancementOptions, load_config
from doccapture.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

_TEXT_EXTENSIONS = ("*.txt",)
_DOCUMENT_TYPES = [
    "auto",
    "passport",
    "driver_license",
    "drivers_license",
    "national_id",
    "visa",
    "social_security_card",
]
_META_COLUMNS = [
    "filename",
    "status",
    "document_type",
    "processing_time_s",
    "error",
]


def _find_text_files(input_dir: Path) -> list[Path]:
    """Find all OCR text files in a directory.

    Args:
        input_dir: Directory to scan.

    Returns:
        Sorted list of text file paths.
    """
    files: list[Path] = []
    for ext in _TEXT_EXTENSIONS:
        files.extend(input_dir.glob(ext))
        files.extend(input_dir.glob(ext.upper()))
    return sorted(set(files))


def _resolve_document_type(
    text: str, document_type: str | None, detector: DocumentTypeDetector
) -> str | None:
    """Turn the ``auto`` choice into a detected hint, or ``None`` if unknown."""
    if document_type != "auto":
        return document_type
    detected = detector.detect(text)
    return None if detected.document_type == UNKNOWN_TYPE else detected.document_type


def _extract_file(
    file_path: Path, document_type: str | None, detector: DocumentTypeDetector
) -> tuple[str, str | None, ExtractedFields]:
    """Read an OCR text file and extract its fields.

    Returns:
        Tuple of (text, resolved_document_type, fields).
    """
    text = file_path.read_text(encoding="utf-8")
    hint = _resolve_document_type(text, document_type, detector)
    return text, hint, extract_fields(text, hint)


def enhance_file(
    input_path: Path,
    output_path: Path,
    max_width: int | None = None,
    max_height: int | None = None,
    quality: float | None = None,
    auto_align: bool = True,
    enhance_quality: bool = True,
) -> dict[str, object]:
    """Enhance an image file and write the result.

    Options left as ``None`` fall back to the configured defaults.

    Args:
        input_path: Source image.
        output_path: Destination for the enhanced JPEG.
        max_width: Bounding box width.
        max_height: Bounding box height.
        quality: JPEG quality in ``(0, 1]``.
        auto_align: Whether to run the contrast/brightness pass.
        enhance_quality: Whether to sharpen after resizing.

    Returns:
        Summary with output size and per-stage status.

    Raises:
        ValidationError: If an override is out of range.
    """
    config = load_config()
    overrides: dict[str, object] = {
        "auto_align": auto_align,
        "enhance_quality": enhance_quality,
    }
    if max_width is not None:
        overrides["max_width"] = max_width
    if max_height is not None:
        overrides["max_height"] = max_height
    if quality is not None:
        overrides["quality"] = quality
    options = EnhancementOptions(**(config.enhancement.model_dump() | overrides))

    result = ImageEnhancer(options).process(input_path.read_bytes())
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(result.data)

    return {
        "input": str(input_path),
        "output": str(output_path),
        "width": result.width,
        "height": result.height,
        "bytes": len(result.data),
        "fallback_to_original": result.fallback_to_original,
        "stages": {
            name: {"status": stage.status.value, "reason": stage.reason}
            for name, stage in result.stages.items()
        },
    }


def extract_single(
    file_path: Path, document_type: str | None = None
) -> dict[str, object]:
    """Extract fields from a single OCR text file.

    Args:
        file_path: Path to the OCR text.
        document_type: Document type hint, ``"auto"`` to detect it, or
            ``None`` for generic patterns only.

    Returns:
        Dictionary with filename, document type, fields, and raw text.
    """
    config = load_config()
    detector = DocumentTypeDetector(Path(config.extraction.document_types_path))

    text, hint, fields = _extract_file(
        file_path, document_type or config.extraction.default_document_type, detector
    )

    return {
        "filename": file_path.name,
        "document_type": hint,
        "fields": fields.as_dict(),
        "raw_text": text,
    }


def process_folder(
    input_dir: Path,
    output_csv: Path,
    document_type: str | None = None,
    verbose: bool = False,
) -> dict[str, int]:
    """Extract fields from every OCR text file in a folder into a CSV.

    Args:
        input_dir: Directory containing ``.txt`` OCR outputs.
        output_csv: Path for the output CSV file.
        document_type: Document type hint or ``"auto"``.
        verbose: Whether to print per-file progress.

    Returns:
        Summary dict with total, successful, and failed counts.
    """
    config = load_config()
    detector = DocumentTypeDetector(Path(config.extraction.document_types_path))
    document_type = document_type or config.extraction.default_document_type

    files = _find_text_files(input_dir)
    if not files:
        logger.warning("No text files found in %s", input_dir)
        return {"total": 0, "successful": 0, "failed": 0}

    logger.info("Found %d text files to process", len(files))

    results: list[dict[str, object]] = []
    successful = 0
    failed = 0

    for i, file_path in enumerate(files, 1):
        if verbose:
            print(f"Processing [{i}/{len(files)}]: {file_path.name}")

        start_time = time.time()
        try:
            _, hint, fields = _extract_file(file_path, document_type, detector)
            row: dict[str, object] = {
                "filename": file_path.name,
                "status": "success",
                "document_type": hint,
                "processing_time_s": round(time.time() - start_time, 3),
                "error": None,
            }
            row.update({name: field.value for name, field in fields.items()})
            results.append(row)
            successful += 1
        except (OSError, UnicodeDecodeError) as exc:
            logger.error("Failed to process %s: %s", file_path.name, exc)
            results.append(
                {
                    "filename": file_path.name,
                    "status": "failed",
                    "error": str(exc),
                }
            )
            failed += 1

    _write_csv(results, output_csv)
    logger.info("Results written to %s", output_csv)

    summary = {"total": len(files), "successful": successful, "failed": failed}
    _print_summary(summary, output_csv)
    return summary


def _write_csv(results: list[dict[str, object]], output_path: Path) -> None:
    """Write extraction results to a CSV file.

    Args:
        results: List of result dictionaries.
        output_path: Path for the output CSV file.
    """
    if not results:
        return

    all_keys: set[str] = set()
    for r in results:
        all_keys.update(r.keys())

    field_columns = [name for name in FIELD_NAMES if name in all_keys]
    extra_columns = sorted(all_keys - set(_META_COLUMNS) - set(FIELD_NAMES))
    columns = (
        [c for c in _META_COLUMNS if c in all_keys] + field_columns + extra_columns
    )

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=columns, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(results)


def _print_summary(summary: dict[str, int], output_csv: Path) -> None:
    """Print batch processing summary to stdout.

    Args:
        summary: Counts of total, successful, and failed documents.
        output_csv: Path to the output CSV.
    """
    print(f"\n{'=' * 50}")
    print("Batch Extraction Complete")
    print(f"{'=' * 50}")
    print(f"Total:      {summary['total']}")
    print(f"Successful: {summary['successful']}")
    print(f"Failed:     {summary['failed']}")
    print(f"Output:     {output_csv}")


def _emit_json(payload: dict[str, object], output: Path | None) -> None:
    output_str = json.dumps(payload, indent=2)
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(output_str)
        print(f"Output written to {output}")
    else:
        print(output_str)


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = argparse.ArgumentParser(
        description="Document capture: image enhancement and field extraction",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    enhance_parser = subparsers.add_parser("enhance", help="Enhance a document image")
    enhance_parser.add_argument("input", type=Path, help="Input image file")
    enhance_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("enhanced.jpg"),
        help="Output JPEG file (default: enhanced.jpg)",
    )
    enhance_parser.add_argument("--max-width", type=int, help="Bounding box width")
    enhance_parser.add_argument("--max-height", type=int, help="Bounding box height")
    enhance_parser.add_argument("--quality", type=float, help="JPEG quality (0, 1]")
    enhance_parser.add_argument(
        "--no-align", action="store_true", help="Skip contrast/brightness pass"
    )
    enhance_parser.add_argument(
        "--no-enhance", action="store_true", help="Plain resize without sharpening"
    )

    assess_parser = subparsers.add_parser("assess", help="Assess image quality")
    assess_parser.add_argument("input", type=Path, help="Input image file")

    single_parser = subparsers.add_parser(
        "extract", help="Extract fields from an OCR text file"
    )
    single_parser.add_argument("file", type=Path, help="OCR text file")
    single_parser.add_argument(
        "-t",
        "--type",
        choices=_DOCUMENT_TYPES,
        dest="doc_type",
        help="Document type hint (default: none)",
    )
    single_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    batch_parser = subparsers.add_parser(
        "batch", help="Extract fields from a folder of OCR text files"
    )
    batch_parser.add_argument(
        "input_dir", type=Path, help="Input directory with .txt files"
    )
    batch_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("results.csv"),
        help="Output CSV file (default: results.csv)",
    )
    batch_parser.add_argument(
        "-t",
        "--type",
        choices=_DOCUMENT_TYPES,
        dest="doc_type",
        help="Document type hint (default: none)",
    )
    batch_parser.add_argument(
        "-v", "--verbose", action="store_true", help="Verbose output"
    )

    args = parser.parse_args(argv)

    setup_logging(load_config().log_level)

    if args.command == "enhance":
        if not args.input.exists():
            print(f"Error: {args.input} does not exist", file=sys.stderr)
            sys.exit(1)
        try:
            summary = enhance_file(
                args.input,
                args.output,
                max_width=args.max_width,
                max_height=args.max_height,
                quality=args.quality,
                auto_align=not args.no_align,
                enhance_quality=not args.no_enhance,
            )
        except ValidationError as exc:
            print(f"Error: invalid enhancement options: {exc}", file=sys.stderr)
            sys.exit(1)
        print(json.dumps(summary, indent=2))
    elif args.command == "assess":
        if not args.input.exists():
            print(f"Error: {args.input} does not exist", file=sys.stderr)
            sys.exit(1)
        assessment = assess_image_quality(args.input.read_bytes())
        print(
            json.dumps(
                {
                    "score": assessment.score,
                    "quality": assessment.quality,
                    "issues": assessment.issues,
                },
                indent=2,
            )
        )
    elif args.command == "extract":
        if not args.file.exists():
            print(f"Error: {args.file} does not exist", file=sys.stderr)
            sys.exit(1)
        _emit_json(extract_single(args.file, args.doc_type), args.output)
    elif args.command == "batch":
        if not args.input_dir.is_dir():
            print(f"Error: {args.input_dir} is not a directory", file=sys.stderr)
            sys.exit(1)
        process_folder(args.input_dir, args.output, args.doc_type, args.verbose)
    else:
        parser.print_help()
        sys.exit(0)


if __name__ == "__main__":
    main()
