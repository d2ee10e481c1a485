import io
from typing import Any

import pytest
from PIL import Image
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from residency_ocr.ocr.base import BaseTextRecognizer, EngineProgress, ImageSource
from residency_ocr.ocr.models import OCRLanguage, PageSegmentationMode, RecognitionOutput

CLINICAL_LINES = [
    "Paciente de 34 anos con cefalea intensa de inicio subito y rigidez de nuca",
    "Se realiza puncion lumbar con liquido claro y presion de apertura normal",
    "Examen neurologico sin deficit focal motor ni sensitivo en los cuatro miembros",
    "Plan control evolutivo en sala y nueva evaluacion por el equipo de guardia",
]


class StubRecognizer(BaseTextRecognizer):
    """In-memory engine that records every lifecycle call.

    ``outputs`` is consumed one entry per ``recognize`` call; an Exception
    entry is raised instead of returned.
    """

    def __init__(
        self,
        text: str = "",
        confidence: float = 0.0,
        outputs: list[RecognitionOutput | Exception] | None = None,
        init_error: Exception | None = None,
    ) -> None:
        self.default = RecognitionOutput(text=text, confidence=confidence)
        self.outputs = list(outputs or [])
        self.init_error = init_error
        self.initialized: list[OCRLanguage] = []
        self.configured: list[tuple[Any, str | None, PageSegmentationMode]] = []
        self.recognized: list[ImageSource] = []
        self.released: list[Any] = []

    def initialize(self, language: OCRLanguage) -> str:
        if self.init_error is not None:
            raise self.init_error
        self.initialized.append(language)
        return f"handle-{len(self.initialized)}"

    def configure(
        self,
        handle: Any,
        character_whitelist: str | None,
        page_segmentation_mode: PageSegmentationMode,
    ) -> None:
        self.configured.append((handle, character_whitelist, page_segmentation_mode))

    def recognize(
        self,
        handle: Any,
        image: ImageSource,
        on_progress: EngineProgress | None = None,
    ) -> RecognitionOutput:
        self.recognized.append(image)
        if on_progress:
            on_progress(0.0)
            on_progress(0.5)
            on_progress(1.0)
        outcome = self.outputs.pop(0) if self.outputs else self.default
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def release(self, handle: Any) -> None:
        self.released.append(handle)


@pytest.fixture()
def make_recognizer() -> type[StubRecognizer]:
    return StubRecognizer


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Generate a minimal single-page PDF with known text content."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Hello PDF World")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def clinical_pdf_bytes() -> bytes:
    """Generate a two-page PDF whose text layer passes the readability check."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.setTitle("Evolucion")
    c.setAuthor("Residente")
    c.setCreator("reportlab")
    for page in range(2):
        for i, line in enumerate(CLINICAL_LINES):
            c.drawString(72, 720 - i * 20, line)
        c.showPage()
    c.save()
    return buf.getvalue()


@pytest.fixture()
def blank_pdf_bytes() -> bytes:
    """Generate a two-page PDF with no text layer, like a scan."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.showPage()
    c.showPage()
    c.save()
    return buf.getvalue()


@pytest.fixture()
def png_bytes() -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (24, 12), "white").save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture()
def fake_png_bytes() -> bytes:
    """500 bytes with a valid PNG signature and no decodable image data."""
    return bytes.fromhex("89504e470d0a1a0a") + b"\x00" * 492
