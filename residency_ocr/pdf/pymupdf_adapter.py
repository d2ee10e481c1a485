import pymupdf
from PIL import Image

from residency_ocr.pdf.base import BaseDocumentRenderer
from residency_ocr.pdf.exceptions import PdfExtractionError, PdfRenderError
from residency_ocr.pdf.models import RawPdfMetadata


class PyMuPdfRenderer(BaseDocumentRenderer):
    """Reads and rasterizes PDFs using PyMuPDF."""

    def load(self, pdf_bytes: bytes) -> pymupdf.Document:
        try:
            return pymupdf.open(stream=pdf_bytes, filetype="pdf")  # type: ignore[no-untyped-call]
        except Exception as exc:
            raise PdfExtractionError(f"pymupdf could not open document: {exc}") from exc

    def page_count(self, document: pymupdf.Document) -> int:
        return int(document.page_count)

    def extract_text(self, document: pymupdf.Document, page_index: int) -> str:
        try:
            return str(document[page_index].get_text())
        except Exception as exc:
            raise PdfExtractionError(
                f"pymupdf extraction failed on page {page_index + 1}: {exc}"
            ) from exc

    def render_page(
        self, document: pymupdf.Document, page_index: int, scale: float
    ) -> Image.Image:
        try:
            pixmap = document[page_index].get_pixmap(matrix=pymupdf.Matrix(scale, scale))
            return Image.frombytes("RGB", (pixmap.width, pixmap.height), pixmap.samples)
        except Exception as exc:
            raise PdfRenderError(
                f"pymupdf could not render page {page_index + 1}: {exc}"
            ) from exc

    def metadata(self, document: pymupdf.Document) -> RawPdfMetadata:
        info = document.metadata or {}
        return RawPdfMetadata(
            title=info.get("title") or None,
            author=info.get("author") or None,
            creator=info.get("creator") or None,
            creation_date=info.get("creationDate") or None,
        )

    def close(self, document: pymupdf.Document) -> None:
        document.close()
