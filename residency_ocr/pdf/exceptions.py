class PdfError(Exception):
    """Base exception for PDF handling errors."""


class PdfExtractionError(PdfError):
    """Raised when a PDF cannot be opened or its text layer read."""


class PdfRenderError(PdfError):
    """Raised when a PDF page cannot be rasterized."""


class PdfProcessingError(PdfError):
    """Raised when neither direct extraction nor OCR can process a PDF."""
