from residency_ocr.config.settings import Settings
from residency_ocr.pdf.base import BaseDocumentRenderer
from residency_ocr.pdf.pdfplumber_adapter import PdfPlumberRenderer
from residency_ocr.pdf.pymupdf_adapter import PyMuPdfRenderer


class PdfRendererFactory:
    """Creates the correct PDF renderer based on settings."""

    ADAPTERS: dict[str, type[BaseDocumentRenderer]] = {
        "pdfplumber": PdfPlumberRenderer,
        "pymupdf": PyMuPdfRenderer,
    }

    @classmethod
    def create(cls, settings: Settings) -> BaseDocumentRenderer:
        engine = settings.pdf_engine.lower()
        adapter_cls = cls.ADAPTERS.get(engine)
        if adapter_cls is None:
            raise ValueError(
                f"Unknown PDF engine '{engine}'. Choose from: {list(cls.ADAPTERS)}"
            )
        return adapter_cls()
