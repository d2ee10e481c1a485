import argparse
import json
import mimetypes
from dataclasses import asdict
from pathlib import Path

from residency_ocr.config.settings import Settings
from residency_ocr.logging.logger import Log
from residency_ocr.ocr.models import BatchResult, ProgressEvent, ProgressStage
from residency_ocr.processor.service import build_service
from residency_ocr.validation.models import UploadCandidate

mimetypes.add_type("image/webp", ".webp")


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Extract text from PDFs and images with direct extraction or OCR"
    )
    parser.add_argument("files", nargs="+", help="PDF or image files to process")
    parser.add_argument(
        "--output-dir",
        help="Write each extracted text to <output-dir>/<name>_extracted.txt",
    )
    parser.add_argument("--json", action="store_true", help="Print the batch result as JSON")
    parser.add_argument("--no-enhance", action="store_true", help="Skip image enhancement")
    return parser.parse_args(argv)


def load_candidate(path: Path) -> UploadCandidate:
    mime_type, _encoding = mimetypes.guess_type(path.name)
    return UploadCandidate(
        name=path.name,
        mime_type=mime_type or "application/octet-stream",
        data=path.read_bytes(),
    )


def log_progress(event: ProgressEvent) -> None:
    if event.stage is ProgressStage.ERROR:
        Log.warning(f"{event.current_file}: processing failed")
    else:
        Log.debug(f"[{event.fraction:5.1f}%] {event.stage.value} {event.current_file or ''}")


def write_outputs(batch: BatchResult, output_dir: Path) -> list[Path]:
    output_dir.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    for result in batch.results:
        path = output_dir / f"{Path(result.source_name).stem}_extracted.txt"
        path.write_text(result.text, encoding="utf-8")
        written.append(path)
    return written


def main(argv: list[str] | None = None) -> int:
    """Entry point: settings -> service -> batch -> outputs."""
    args = parse_arguments(argv)
    settings = Settings()
    Log.configure(settings.log_level)
    if args.no_enhance:
        settings.ocr_enhance = False

    service = build_service(settings)
    candidates = [load_candidate(Path(name)) for name in args.files]
    batch = service.process_batch(candidates, on_progress=log_progress)

    if args.output_dir:
        for path in write_outputs(batch, Path(args.output_dir)):
            Log.info(f"Saved extracted text to {path}")

    if args.json:
        payload = asdict(batch)
        payload.update(total=batch.total, successful=batch.successful, failed=batch.failed)
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    else:
        for result in batch.results:
            print(f"=== {result.source_name} ({result.method.value}, {result.confidence:.2f})")
            print(result.text)
    for error in batch.errors:
        Log.error(f"{error.file_name}: {error.error}")

    return 0 if not batch.errors else 1


if __name__ == "__main__":
    raise SystemExit(main())
