import io
import shutil

import pytest
import pytesseract
from reportlab.lib.pagesizes import letter
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from residency_ocr.pdf.pymupdf_adapter import PyMuPdfRenderer

REQUIRED_LANGUAGES = {"spa", "eng"}
SCANNED_LINES = ["HOLA MUNDO", "PACIENTE ESTABLE"]


@pytest.fixture(scope="session")
def tesseract_available() -> None:
    """Skip unless the tesseract binary and spa/eng language data are installed."""
    if shutil.which("tesseract") is None:
        pytest.skip("tesseract binary not installed")
    missing = REQUIRED_LANGUAGES - set(pytesseract.get_languages(config=""))
    if missing:
        pytest.skip(f"tesseract language data missing: {sorted(missing)}")


@pytest.fixture(scope="session")
def text_page_png() -> bytes:
    """Large-print page rendered to PNG, with no text layer of its own."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.setFont("Helvetica-Bold", 36)
    for i, line in enumerate(SCANNED_LINES):
        c.drawString(72, 650 - i * 60, line)
    c.save()

    renderer = PyMuPdfRenderer()
    document = renderer.load(buf.getvalue())
    try:
        image = renderer.render_page(document, 0, 2.0)
    finally:
        renderer.close(document)
    png = io.BytesIO()
    image.save(png, format="PNG")
    return png.getvalue()


@pytest.fixture(scope="session")
def scanned_pdf_bytes(text_page_png: bytes) -> bytes:
    """Single-page PDF holding only a raster image, like a scanner produces."""
    buf = io.BytesIO()
    width, height = letter
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawImage(ImageReader(io.BytesIO(text_page_png)), 0, 0, width=width, height=height)
    c.showPage()
    c.save()
    return buf.getvalue()
