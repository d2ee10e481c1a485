from residency_ocr.config.settings import Settings
from residency_ocr.ocr.base import BaseTextRecognizer
from residency_ocr.ocr.tesseract_adapter import TesseractRecognizer


class RecognizerFactory:
    """Creates the configured text-recognition engine adapter."""

    ENGINES: dict[str, type[TesseractRecognizer]] = {
        "tesseract": TesseractRecognizer,
    }

    @classmethod
    def create(cls, settings: Settings) -> BaseTextRecognizer:
        engine = settings.ocr_engine.lower()
        engine_cls = cls.ENGINES.get(engine)
        if engine_cls is None:
            raise ValueError(
                f"Unknown OCR engine '{engine}'. Choose from: {list(cls.ENGINES)}"
            )
        return engine_cls(tesseract_cmd=settings.tesseract_cmd)
