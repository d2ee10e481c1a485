from dataclasses import dataclass
from datetime import datetime

from residency_ocr.ocr.models import ProcessingMethod


@dataclass(frozen=True)
class PdfResult:
    """Outcome of processing one PDF document."""

    text: str
    method: ProcessingMethod
    confidence: float
    pages: int
    source_name: str


@dataclass(frozen=True)
class PdfMetadata:
    page_count: int = 0
    title: str | None = None
    author: str | None = None
    creator: str | None = None
    creation_date: datetime | None = None


@dataclass(frozen=True)
class RawPdfMetadata:
    """Document info dictionary as read by a renderer, before parsing."""

    title: str | None = None
    author: str | None = None
    creator: str | None = None
    creation_date: str | None = None
