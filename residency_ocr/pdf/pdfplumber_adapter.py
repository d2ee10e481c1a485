import io

import pdfplumber
from PIL import Image

from residency_ocr.pdf.base import BaseDocumentRenderer
from residency_ocr.pdf.exceptions import PdfExtractionError, PdfRenderError
from residency_ocr.pdf.models import RawPdfMetadata

PDF_POINTS_PER_INCH = 72


def _as_text(value: object) -> str | None:
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    text = str(value).strip()
    return text or None


class PdfPlumberRenderer(BaseDocumentRenderer):
    """Reads and rasterizes PDFs using pdfplumber."""

    def load(self, pdf_bytes: bytes) -> pdfplumber.PDF:
        try:
            return pdfplumber.open(io.BytesIO(pdf_bytes))
        except Exception as exc:
            raise PdfExtractionError(f"pdfplumber could not open document: {exc}") from exc

    def page_count(self, document: pdfplumber.PDF) -> int:
        try:
            return len(document.pages)
        except Exception as exc:
            raise PdfExtractionError(f"pdfplumber could not read the page tree: {exc}") from exc

    def extract_text(self, document: pdfplumber.PDF, page_index: int) -> str:
        try:
            return document.pages[page_index].extract_text() or ""
        except Exception as exc:
            raise PdfExtractionError(
                f"pdfplumber extraction failed on page {page_index + 1}: {exc}"
            ) from exc

    def render_page(
        self, document: pdfplumber.PDF, page_index: int, scale: float
    ) -> Image.Image:
        try:
            page_image = document.pages[page_index].to_image(
                resolution=PDF_POINTS_PER_INCH * scale
            )
            return page_image.original.convert("RGB")
        except Exception as exc:
            raise PdfRenderError(
                f"pdfplumber could not render page {page_index + 1}: {exc}"
            ) from exc

    def metadata(self, document: pdfplumber.PDF) -> RawPdfMetadata:
        info = document.metadata or {}
        return RawPdfMetadata(
            title=_as_text(info.get("Title")),
            author=_as_text(info.get("Author")),
            creator=_as_text(info.get("Creator")),
            creation_date=_as_text(info.get("CreationDate")),
        )

    def close(self, document: pdfplumber.PDF) -> None:
        document.close()
