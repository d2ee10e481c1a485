"""PDF text extraction with an OCR fallback for scanned documents.

Processing flow:
1. Read the native text layer of every page.
2. Accept it when it is long enough and mostly alphanumeric.
3. Otherwise rasterize each page and recognize it, one page at a time.
4. Merge page texts under ``--- Página N ---`` headers.
"""

import re
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from residency_ocr.logging.logger import Log
from residency_ocr.ocr.base import BaseTextRecognizer
from residency_ocr.ocr.exceptions import OCRError
from residency_ocr.ocr.image_ocr import run_recognition
from residency_ocr.ocr.models import (
    DEFAULT_CHARACTER_WHITELIST,
    OCRLanguage,
    ProcessingMethod,
)
from residency_ocr.ocr.text import clean_document_text
from residency_ocr.pdf.base import BaseDocumentRenderer
from residency_ocr.pdf.exceptions import PdfError, PdfProcessingError
from residency_ocr.pdf.models import PdfMetadata, PdfResult

DIRECT_CONFIDENCE = 0.99
DIRECT_MIN_CHARS = 100
READABLE_MIN_CHARS = 50
READABLE_MIN_RATIO = 0.7
RENDER_SCALE = 2.0
PDF_OCR_LANGUAGE = OCRLanguage.SPA_ENG

PageProgress = Callable[[int, int], None]

_ALPHANUMERIC_RE = re.compile(r"[^a-zA-Z0-9áéíóúñüÁÉÍÓÚÑÜ]")
_PDF_DATE_RE = re.compile(
    r"^(?:D:)?(\d{4})(\d{2})?(\d{2})?(\d{2})?(\d{2})?(\d{2})?"
    r"(?:(Z)|([+-])(\d{2})'?(\d{2})?'?)?"
)


def has_readable_text(text: str) -> bool:
    """True when the text is at least 50 chars and 70% alphanumeric."""
    clean = text.strip()
    if len(clean) < READABLE_MIN_CHARS:
        return False
    alphanumeric = len(_ALPHANUMERIC_RE.sub("", clean))
    return alphanumeric / len(clean) >= READABLE_MIN_RATIO


def parse_pdf_date(value: str | None) -> datetime | None:
    """Parse a PDF date string such as ``D:20240131120000+01'00'``."""
    if not value:
        return None
    match = _PDF_DATE_RE.match(value.strip())
    if not match:
        return None
    year, month, day, hour, minute, second, zulu, sign, tz_hours, tz_minutes = match.groups()
    tzinfo = None
    if zulu:
        tzinfo = timezone.utc
    elif sign:
        offset = timedelta(hours=int(tz_hours), minutes=int(tz_minutes or 0))
        tzinfo = timezone(offset if sign == "+" else -offset)
    try:
        return datetime(
            int(year),
            int(month or 1),
            int(day or 1),
            int(hour or 0),
            int(minute or 0),
            int(second or 0),
            tzinfo=tzinfo,
        )
    except ValueError:
        return None


class PDFProcessor:
    """Chooses between direct text extraction and page OCR for a PDF."""

    def __init__(
        self,
        renderer: BaseDocumentRenderer,
        recognizer: BaseTextRecognizer,
        render_scale: float = RENDER_SCALE,
        direct_min_chars: int = DIRECT_MIN_CHARS,
        character_whitelist: str | None = DEFAULT_CHARACTER_WHITELIST,
    ) -> None:
        self._renderer = renderer
        self._recognizer = recognizer
        self._render_scale = render_scale
        self._direct_min_chars = direct_min_chars
        self._character_whitelist = character_whitelist

    def process(
        self,
        pdf_bytes: bytes,
        source_name: str = "document.pdf",
        on_page: PageProgress | None = None,
    ) -> PdfResult:
        """Extract text from a PDF, falling back to OCR for scanned documents.

        Raises:
            PdfProcessingError: if the document cannot be rasterized for OCR.
        """
        Log.info(f"Processing PDF {source_name}")
        text, pages = self.extract_direct(pdf_bytes)

        if len(text) >= self._direct_min_chars and has_readable_text(text):
            Log.info(f"Direct extraction accepted for {source_name}: {len(text)} chars")
            return PdfResult(
                text=text,
                method=ProcessingMethod.DIRECT,
                confidence=DIRECT_CONFIDENCE,
                pages=pages,
                source_name=source_name,
            )

        Log.info(f"Direct extraction insufficient for {source_name}, using OCR")
        text, confidence, pages = self._extract_with_ocr(pdf_bytes, source_name, on_page)
        return PdfResult(
            text=text,
            method=ProcessingMethod.OCR,
            confidence=confidence,
            pages=pages,
            source_name=source_name,
        )

    def extract_direct(self, pdf_bytes: bytes) -> tuple[str, int]:
        """Read the native text layer; any failure yields ``("", 0)``."""
        try:
            document = self._renderer.load(pdf_bytes)
        except PdfError as exc:
            Log.warning(f"Direct PDF extraction failed: {exc}")
            return "", 0
        try:
            count = self._renderer.page_count(document)
            texts = [self._renderer.extract_text(document, i) for i in range(count)]
        except PdfError as exc:
            Log.warning(f"Direct PDF extraction failed: {exc}")
            return "", 0
        finally:
            self._renderer.close(document)
        return "\n".join(texts).strip(), count

    def metadata(self, pdf_bytes: bytes) -> PdfMetadata:
        """Read document metadata; failures return ``PdfMetadata(page_count=0)``."""
        try:
            document = self._renderer.load(pdf_bytes)
        except PdfError as exc:
            Log.warning(f"Could not read PDF metadata: {exc}")
            return PdfMetadata(page_count=0)
        try:
            raw = self._renderer.metadata(document)
            return PdfMetadata(
                page_count=self._renderer.page_count(document),
                title=raw.title,
                author=raw.author,
                creator=raw.creator,
                creation_date=parse_pdf_date(raw.creation_date),
            )
        except Exception as exc:
            Log.warning(f"Could not read PDF metadata: {exc}")
            return PdfMetadata(page_count=0)
        finally:
            self._renderer.close(document)

    def _extract_with_ocr(
        self,
        pdf_bytes: bytes,
        source_name: str,
        on_page: PageProgress | None,
    ) -> tuple[str, float, int]:
        try:
            document = self._renderer.load(pdf_bytes)
        except PdfError as exc:
            raise PdfProcessingError(f"Could not open {source_name} for OCR: {exc}") from exc

        try:
            try:
                count = self._renderer.page_count(document)
            except PdfError as exc:
                raise PdfProcessingError(f"Could not read pages of {source_name}: {exc}") from exc
            if count == 0:
                raise PdfProcessingError(f"No pages could be extracted from {source_name}")
            page_results = [
                self._ocr_page(document, index, count, on_page) for index in range(count)
            ]
        finally:
            self._renderer.close(document)

        sections = [
            f"--- Página {index + 1} ---\n{text}"
            for index, (text, _confidence) in enumerate(page_results)
            if text
        ]
        confidences = [confidence for _text, confidence in page_results if confidence > 0]
        average = sum(confidences) / max(1, len(confidences))
        Log.info(
            f"OCR of {source_name} finished: {len(sections)}/{count} pages with text, "
            f"confidence={average:.2f}"
        )
        return clean_document_text("\n\n".join(sections)), average, count

    def _ocr_page(
        self,
        document: object,
        index: int,
        count: int,
        on_page: PageProgress | None,
    ) -> tuple[str, float]:
        Log.debug(f"OCR page {index + 1}/{count}")
        try:
            image = self._renderer.render_page(document, index, self._render_scale)
            output = run_recognition(
                self._recognizer,
                image,
                PDF_OCR_LANGUAGE,
                self._character_whitelist,
            )
        except (PdfError, OCRError) as exc:
            Log.error(f"OCR failed on page {index + 1}: {exc}")
            return "", 0.0
        finally:
            if on_page:
                on_page(index + 1, count)
        return output.text, output.confidence
