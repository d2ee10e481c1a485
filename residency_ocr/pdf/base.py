from abc import ABC, abstractmethod
from typing import Any

from PIL import Image

from residency_ocr.pdf.models import RawPdfMetadata


class BaseDocumentRenderer(ABC):
    """Contract for all PDF loading, text-layer and rasterization adapters.

    Every method except ``load`` takes the opaque document returned by
    ``load``. Callers must ``close`` every loaded document.
    """

    @abstractmethod
    def load(self, pdf_bytes: bytes) -> Any:
        """Open a PDF from memory.

        Raises:
            PdfExtractionError: if the bytes are not a readable PDF.
        """

    @abstractmethod
    def page_count(self, document: Any) -> int:
        """Return the number of pages."""

    @abstractmethod
    def extract_text(self, document: Any, page_index: int) -> str:
        """Return the native text layer of a zero-based page."""

    @abstractmethod
    def render_page(self, document: Any, page_index: int, scale: float) -> Image.Image:
        """Rasterize a zero-based page; ``scale`` 1.0 means 72 DPI.

        Raises:
            PdfRenderError: if the page cannot be rendered.
        """

    @abstractmethod
    def metadata(self, document: Any) -> RawPdfMetadata:
        """Read the document info dictionary."""

    @abstractmethod
    def close(self, document: Any) -> None:
        """Release the document."""
