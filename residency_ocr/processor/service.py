import threading
import time
from collections.abc import Callable, Sequence

from residency_ocr.config.settings import Settings
from residency_ocr.logging.logger import Log
from residency_ocr.ocr.base import BaseTextRecognizer
from residency_ocr.ocr.factory import RecognizerFactory
from residency_ocr.ocr.image_ocr import ImageOCR
from residency_ocr.ocr.models import (
    BatchError,
    BatchResult,
    OCRSettings,
    ProcessingResult,
    ProgressEvent,
    ProgressStage,
    TextStatistics,
)
from residency_ocr.ocr.text import count_words, text_statistics
from residency_ocr.pdf.factory import PdfRendererFactory
from residency_ocr.pdf.processor import PDFProcessor
from residency_ocr.processor.exceptions import BatchTooLargeError, FileValidationError
from residency_ocr.processor.models import FileKind
from residency_ocr.validation.models import UploadCandidate
from residency_ocr.validation.validator import FileValidator, format_file_size

ProgressCallback = Callable[[ProgressEvent], None]

MAX_FILES_BATCH = 10
BATCH_PROGRESS_CAP = 99.0
CANCELLED_MESSAGE = "Batch cancelled"


class OCRService:
    """Validates files and routes them to PDF or image processing.

    Pipeline per file: validate -> resolve kind -> extract -> result.
    Batches run strictly one file at a time.
    """

    def __init__(
        self,
        validator: FileValidator,
        recognizer: BaseTextRecognizer,
        pdf_processor: PDFProcessor,
        settings: OCRSettings | None = None,
        max_files_batch: int = MAX_FILES_BATCH,
    ) -> None:
        self._validator = validator
        self._recognizer = recognizer
        self._pdf_processor = pdf_processor
        self._settings = settings or OCRSettings()
        self._max_files_batch = max_files_batch

    @property
    def settings(self) -> OCRSettings:
        return self._settings

    def process_file(
        self,
        candidate: UploadCandidate,
        on_progress: ProgressCallback | None = None,
        settings: OCRSettings | None = None,
    ) -> ProcessingResult:
        """Validate and process one file.

        Raises:
            FileValidationError: if the file is rejected by the validator.
            OCRError, PdfError: if processing fails.
        """
        started = time.perf_counter()
        snapshot = settings or self._settings

        def emit(fraction: float, stage: ProgressStage) -> None:
            if on_progress:
                on_progress(
                    ProgressEvent(fraction=fraction, stage=stage, current_file=candidate.name)
                )

        emit(0, ProgressStage.INITIALIZING)
        try:
            validation = self._validator.validate(candidate)
            if not validation.valid:
                raise FileValidationError(validation.error or "Unknown validation error")
            kind = FileKind.from_mime(candidate.mime_type)
            emit(10, ProgressStage.PROCESSING)

            if kind is FileKind.PDF:
                result = self._process_pdf(candidate, emit)
            else:
                result = self._process_image(candidate, snapshot, emit)
        except Exception as exc:
            emit(0, ProgressStage.ERROR)
            Log.error(f"Error processing {candidate.name}", error=str(exc))
            raise

        elapsed_ms = int((time.perf_counter() - started) * 1000)
        emit(100, ProgressStage.COMPLETED)
        Log.info(
            f"Processed {candidate.name}",
            method=result.method.value,
            chars=len(result.text),
            elapsed_ms=elapsed_ms,
        )
        return ProcessingResult(
            text=result.text,
            confidence=result.confidence,
            method=result.method,
            source_name=candidate.name,
            processing_time_ms=elapsed_ms,
            pages=result.pages,
            word_count=result.word_count,
            file_size=candidate.size,
            enhanced=result.enhanced,
        )

    def process_batch(
        self,
        candidates: Sequence[UploadCandidate],
        on_progress: ProgressCallback | None = None,
        settings: OCRSettings | None = None,
        cancel_event: threading.Event | None = None,
    ) -> BatchResult:
        """Process files sequentially; per-file failures become batch errors.

        Raises:
            BatchTooLargeError: if more than ``max_files_batch`` files are given.
        """
        if len(candidates) > self._max_files_batch:
            raise BatchTooLargeError(
                f"Too many files: {len(candidates)} (max {self._max_files_batch})"
            )

        started = time.perf_counter()
        snapshot = settings or self._settings
        results: list[ProcessingResult] = []
        errors: list[BatchError] = []
        Log.info(f"Starting batch of {len(candidates)} file(s)")

        valid, invalid = self._validator.partition(list(candidates))
        for candidate, error in invalid:
            errors.append(BatchError(file_name=candidate.name, error=error))

        total = len(valid)
        for index, candidate in enumerate(valid):
            if cancel_event is not None and cancel_event.is_set():
                Log.warning(f"Batch cancelled before {candidate.name}")
                errors.extend(
                    BatchError(file_name=pending.name, error=CANCELLED_MESSAGE)
                    for pending in valid[index:]
                )
                break

            base = (index / total) * 100
            self._emit_batch(
                on_progress,
                ProgressEvent(
                    fraction=base,
                    stage=ProgressStage.PROCESSING,
                    current_file=candidate.name,
                    file_index=index + 1,
                    total_files=total,
                ),
            )

            def file_progress(
                event: ProgressEvent, base: float = base, index: int = index
            ) -> None:
                self._emit_batch(
                    on_progress,
                    ProgressEvent(
                        fraction=min(base + event.fraction / total, BATCH_PROGRESS_CAP),
                        stage=event.stage,
                        current_file=event.current_file,
                        file_index=index + 1,
                        total_files=total,
                    ),
                )

            try:
                results.append(self.process_file(candidate, file_progress, snapshot))
            except Exception as exc:
                errors.append(BatchError(file_name=candidate.name, error=str(exc)))

        batch = BatchResult(
            results=results,
            errors=errors,
            total_time_ms=int((time.perf_counter() - started) * 1000),
        )
        self._emit_batch(
            on_progress,
            ProgressEvent(
                fraction=100,
                stage=ProgressStage.COMPLETED,
                current_file=f"{batch.successful}/{batch.total} files processed",
            ),
        )
        Log.info(
            "Batch completed",
            successful=batch.successful,
            total=batch.total,
            elapsed_ms=batch.total_time_ms,
        )
        return batch

    def text_statistics(self, text: str) -> TextStatistics:
        return text_statistics(text)

    def supported_formats(self) -> dict[str, object]:
        return {
            "formats": ["PDF", "JPEG", "PNG", "TIFF", "BMP", "WebP"],
            "max_file_size": format_file_size(self._validator.max_size),
            "max_files_batch": self._max_files_batch,
            "recommendations": [
                "Use images with clear text and good contrast",
                "Native PDFs with selectable text are processed faster than scans",
                "Scan documents at 300 DPI or more",
                "Avoid blurry images and noisy backgrounds",
            ],
        }

    def _process_pdf(
        self,
        candidate: UploadCandidate,
        emit: Callable[[float, ProgressStage], None],
    ) -> ProcessingResult:
        def page_progress(done: int, count: int) -> None:
            emit(10 + 80 * done / count, ProgressStage.RECOGNIZING)

        pdf_result = self._pdf_processor.process(candidate.data, candidate.name, page_progress)
        return ProcessingResult(
            text=pdf_result.text,
            confidence=pdf_result.confidence,
            method=pdf_result.method,
            source_name=candidate.name,
            processing_time_ms=0,
            pages=pdf_result.pages,
            word_count=count_words(pdf_result.text),
        )

    def _process_image(
        self,
        candidate: UploadCandidate,
        settings: OCRSettings,
        emit: Callable[[float, ProgressStage], None],
    ) -> ProcessingResult:
        def image_progress(event: ProgressEvent) -> None:
            emit(10 + event.fraction * 0.8, event.stage)

        image_ocr = ImageOCR(self._recognizer, settings)
        return image_ocr.recognize(candidate.data, image_progress, source_name=candidate.name)

    @staticmethod
    def _emit_batch(on_progress: ProgressCallback | None, event: ProgressEvent) -> None:
        if on_progress:
            on_progress(event)


def build_service(settings: Settings) -> OCRService:
    """Build an OCRService with all required adapters."""
    validator = FileValidator(
        max_size=settings.max_file_size_bytes,
        fail_open=settings.signature_fail_open,
    )
    recognizer = RecognizerFactory.create(settings)
    pdf_processor = PDFProcessor(
        renderer=PdfRendererFactory.create(settings),
        recognizer=recognizer,
        render_scale=settings.pdf_render_scale,
        direct_min_chars=settings.direct_min_chars,
        character_whitelist=settings.ocr_character_whitelist or None,
    )
    return OCRService(
        validator=validator,
        recognizer=recognizer,
        pdf_processor=pdf_processor,
        settings=settings.ocr_settings(),
        max_files_batch=settings.max_files_batch,
    )
