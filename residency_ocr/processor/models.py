from enum import Enum

from residency_ocr.processor.exceptions import UnsupportedFileTypeError

PDF_MIME_TYPE = "application/pdf"


class FileKind(str, Enum):
    """Processing path a file takes, resolved once when it is admitted."""

    PDF = "pdf"
    IMAGE = "image"

    @classmethod
    def from_mime(cls, mime_type: str) -> "FileKind":
        if mime_type == PDF_MIME_TYPE:
            return cls.PDF
        if mime_type.startswith("image/"):
            return cls.IMAGE
        raise UnsupportedFileTypeError(f"Unsupported file type: {mime_type}")
