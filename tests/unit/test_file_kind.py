import pytest

from residency_ocr.processor.exceptions import UnsupportedFileTypeError
from residency_ocr.processor.models import FileKind


class TestFileKind:
    def test_pdf(self) -> None:
        assert FileKind.from_mime("application/pdf") is FileKind.PDF

    @pytest.mark.parametrize(
        "mime_type", ["image/jpeg", "image/png", "image/tiff", "image/bmp", "image/webp"]
    )
    def test_images(self, mime_type: str) -> None:
        assert FileKind.from_mime(mime_type) is FileKind.IMAGE

    def test_other_types_are_rejected(self) -> None:
        with pytest.raises(UnsupportedFileTypeError, match="text/plain"):
            FileKind.from_mime("text/plain")
