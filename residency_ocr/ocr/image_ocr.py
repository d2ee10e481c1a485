import time
from collections.abc import Callable, Sequence

from residency_ocr.imaging.enhancer import ImageEnhancer, load_image
from residency_ocr.logging.logger import Log
from residency_ocr.ocr.base import BaseTextRecognizer, EngineProgress, ImageSource
from residency_ocr.ocr.exceptions import (
    EngineInitializationError,
    OCRError,
    RecognitionError,
)
from residency_ocr.ocr.models import (
    OCRLanguage,
    OCRSettings,
    PageSegmentationMode,
    ProcessingMethod,
    ProcessingResult,
    ProgressEvent,
    ProgressStage,
    RecognitionOutput,
)
from residency_ocr.ocr.text import count_words, postprocess_text
from residency_ocr.validation.models import UploadCandidate

ProgressCallback = Callable[[ProgressEvent], None]
BatchProgressCallback = Callable[[float, str], None]

RECOGNITION_START = 35.0
RECOGNITION_END = 90.0


def run_recognition(
    recognizer: BaseTextRecognizer,
    image: ImageSource,
    language: OCRLanguage,
    character_whitelist: str | None,
    on_progress: EngineProgress | None = None,
) -> RecognitionOutput:
    """Initialize, configure, run and release one engine instance.

    The engine is released on every exit path once it has been initialized.

    Raises:
        EngineInitializationError: if the engine cannot be started.
        RecognitionError: if configuration or recognition fails.
    """
    try:
        handle = recognizer.initialize(language)
    except EngineInitializationError:
        raise
    except Exception as exc:
        raise EngineInitializationError(f"OCR engine failed to initialize: {exc}") from exc

    try:
        recognizer.configure(handle, character_whitelist, PageSegmentationMode.AUTO)
        return recognizer.recognize(handle, image, on_progress)
    except RecognitionError:
        raise
    except Exception as exc:
        raise RecognitionError(f"OCR failed: {exc}") from exc
    finally:
        recognizer.release(handle)


class ImageOCR:
    """Recognizes text in single images, with optional enhancement."""

    def __init__(
        self,
        recognizer: BaseTextRecognizer,
        settings: OCRSettings | None = None,
    ) -> None:
        self._recognizer = recognizer
        self._settings = settings or OCRSettings()

    @property
    def settings(self) -> OCRSettings:
        return self._settings

    def recognize(
        self,
        image: ImageSource,
        on_progress: ProgressCallback | None = None,
        source_name: str | None = None,
    ) -> ProcessingResult:
        """Run enhancement (if enabled) and recognition on one image.

        Strings are treated as an already prepared image path and are never
        enhanced.
        """
        started = time.perf_counter()
        settings = self._settings
        name = source_name or (image if isinstance(image, str) else "image")

        def emit(fraction: float, stage: ProgressStage) -> None:
            if on_progress:
                on_progress(ProgressEvent(fraction=fraction, stage=stage, current_file=name))

        emit(0, ProgressStage.INITIALIZING)
        emit(10, ProgressStage.INITIALIZING)

        prepared: ImageSource = image
        enhanced = False
        if settings.enhance and not isinstance(image, str):
            emit(10, ProgressStage.ENHANCING)
            source = load_image(image) if isinstance(image, bytes) else image
            prepared = ImageEnhancer(settings.enhancement).enhance(source)
            enhanced = True
            emit(30, ProgressStage.ENHANCING)

        def engine_progress(value: float) -> None:
            span = RECOGNITION_END - RECOGNITION_START
            emit(RECOGNITION_START + value * span, ProgressStage.RECOGNIZING)

        Log.info(f"Recognizing text in {name} ({settings.language.value})")
        emit(RECOGNITION_START, ProgressStage.RECOGNIZING)
        output = run_recognition(
            self._recognizer,
            prepared,
            settings.language,
            settings.character_whitelist,
            engine_progress,
        )

        text = postprocess_text(output.text, settings.aggressive_substitutions)
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        emit(100, ProgressStage.COMPLETED)
        Log.info(f"OCR completed for {name} in {elapsed_ms}ms")

        return ProcessingResult(
            text=text,
            confidence=output.confidence,
            method=ProcessingMethod.IMAGE_OCR,
            source_name=name,
            processing_time_ms=elapsed_ms,
            word_count=output.word_count if output.word_count is not None else count_words(text),
            enhanced=enhanced,
        )

    def recognize_batch(
        self,
        candidates: Sequence[UploadCandidate],
        on_progress: BatchProgressCallback | None = None,
    ) -> list[ProcessingResult]:
        """Recognize images one after another.

        A file that fails yields an empty, zero-confidence placeholder result.
        """
        results: list[ProcessingResult] = []
        total = len(candidates)
        for index, candidate in enumerate(candidates):
            label = f"Processing {candidate.name}..."
            if on_progress:
                on_progress((index / total) * 100, label)

            def file_progress(event: ProgressEvent, index: int = index, label: str = label) -> None:
                if on_progress:
                    on_progress((index / total) * 100 + event.fraction / total, label)

            try:
                result = self.recognize(candidate.data, file_progress, source_name=candidate.name)
            except OCRError as exc:
                Log.error(f"Error processing {candidate.name}: {exc}")
                result = ProcessingResult(
                    text="",
                    confidence=0.0,
                    method=ProcessingMethod.IMAGE_OCR,
                    source_name=candidate.name,
                    processing_time_ms=0,
                    word_count=0,
                )
            results.append(result)

        if on_progress:
            on_progress(100.0, "Processing completed")
        return results

