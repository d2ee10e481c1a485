import io
import shlex
from dataclasses import dataclass, field

import pytesseract
from PIL import Image, UnidentifiedImageError

from residency_ocr.logging.logger import Log
from residency_ocr.ocr.base import BaseTextRecognizer, EngineProgress, ImageSource
from residency_ocr.ocr.exceptions import EngineInitializationError, RecognitionError
from residency_ocr.ocr.models import OCRLanguage, PageSegmentationMode, RecognitionOutput


@dataclass
class TesseractHandle:
    language: str
    config_parts: list[str] = field(default_factory=list)
    released: bool = False

    @property
    def config(self) -> str:
        return " ".join(self.config_parts)


class TesseractRecognizer(BaseTextRecognizer):
    """Recognizes text with the Tesseract binary through pytesseract."""

    def __init__(self, tesseract_cmd: str = "") -> None:
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

    def initialize(self, language: OCRLanguage) -> TesseractHandle:
        try:
            available = set(pytesseract.get_languages(config=""))
        except pytesseract.TesseractNotFoundError as exc:
            raise EngineInitializationError(f"Tesseract binary not found: {exc}") from exc
        except Exception as exc:
            raise EngineInitializationError(f"Tesseract failed to start: {exc}") from exc

        missing = [lang for lang in language.value.split("+") if lang not in available]
        if missing:
            raise EngineInitializationError(
                f"Tesseract language data not installed: {', '.join(missing)}"
            )
        Log.debug(f"Tesseract initialized for '{language.value}'")
        return TesseractHandle(language=language.value)

    def configure(
        self,
        handle: TesseractHandle,
        character_whitelist: str | None,
        page_segmentation_mode: PageSegmentationMode,
    ) -> None:
        parts = [f"--psm {int(page_segmentation_mode)}"]
        if character_whitelist:
            parts.append("-c " + shlex.quote(f"tessedit_char_whitelist={character_whitelist}"))
        handle.config_parts = parts

    def recognize(
        self,
        handle: TesseractHandle,
        image: ImageSource,
        on_progress: EngineProgress | None = None,
    ) -> RecognitionOutput:
        if handle.released:
            raise RecognitionError("Tesseract handle used after release")
        if on_progress:
            on_progress(0.0)
        try:
            data = pytesseract.image_to_data(
                self._prepare(image),
                lang=handle.language,
                config=handle.config,
                output_type=pytesseract.Output.DICT,
            )
        except RecognitionError:
            raise
        except Exception as exc:
            raise RecognitionError(f"Tesseract recognition failed: {exc}") from exc
        if on_progress:
            on_progress(1.0)
        return self._build_output(data)

    def release(self, handle: TesseractHandle) -> None:
        # pytesseract spawns one process per call, nothing stays resident.
        handle.released = True

    def _prepare(self, image: ImageSource) -> Image.Image | str:
        if isinstance(image, bytes):
            try:
                decoded = Image.open(io.BytesIO(image))
                decoded.load()
            except (UnidentifiedImageError, OSError) as exc:
                raise RecognitionError(f"Could not decode image: {exc}") from exc
            return decoded
        return image

    def _build_output(self, data: dict[str, list]) -> RecognitionOutput:
        lines: dict[tuple[int, int, int], list[str]] = {}
        confidences: list[float] = []
        for i, word in enumerate(data["text"]):
            if not word or not word.strip():
                continue
            key = (int(data["block_num"][i]), int(data["par_num"][i]), int(data["line_num"][i]))
            lines.setdefault(key, []).append(word.strip())
            try:
                conf = float(data["conf"][i])
            except (TypeError, ValueError):
                continue
            if conf >= 0:
                confidences.append(conf)

        paragraphs: list[str] = []
        current_paragraph: tuple[int, int] | None = None
        for (block, par, _line), words in lines.items():
            text_line = " ".join(words)
            if (block, par) != current_paragraph:
                paragraphs.append(text_line)
                current_paragraph = (block, par)
            else:
                paragraphs[-1] += "\n" + text_line

        mean_conf = sum(confidences) / len(confidences) if confidences else 0.0
        return RecognitionOutput(
            text="\n\n".join(paragraphs),
            confidence=mean_conf / 100,
            word_count=sum(len(words) for words in lines.values()),
        )
