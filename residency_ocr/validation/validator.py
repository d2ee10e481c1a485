"""Upload admission checks run before any OCR work.

Checks run in order and stop at the first failure:
1. Size ceiling.
2. Empty file.
3. MIME allow-list.
4. Extension/MIME consistency.
5. Magic-byte signature of the file header (8 bytes, 12 for WebP).
"""

import math
import re
from typing import ClassVar

from residency_ocr.logging.logger import Log
from residency_ocr.validation.models import FileInfo, UploadCandidate, ValidationResult

MAX_FILE_SIZE = 10 * 1024 * 1024

SUPPORTED_MIME_TYPES: tuple[str, ...] = (
    "application/pdf",
    "image/jpeg",
    "image/png",
    "image/tiff",
    "image/bmp",
    "image/webp",
)


def format_file_size(size: int) -> str:
    """Format a byte count for display, e.g. ``1.5 KB``."""
    if size <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    exponent = min(int(math.floor(math.log(size, 1024))), len(units) - 1)
    value = round(size / 1024**exponent, 2)
    return f"{value:g} {units[exponent]}"


def file_extension(filename: str) -> str:
    return filename.rsplit(".", 1)[-1].lower()


class FileValidator:
    """Validates upload candidates against size, type and signature rules."""

    EXTENSIONS: ClassVar[dict[str, frozenset[str]]] = {
        "application/pdf": frozenset({"pdf"}),
        "image/jpeg": frozenset({"jpg", "jpeg"}),
        "image/png": frozenset({"png"}),
        "image/tiff": frozenset({"tiff", "tif"}),
        "image/bmp": frozenset({"bmp"}),
        "image/webp": frozenset({"webp"}),
    }

    SIGNATURES: ClassVar[dict[str, list[re.Pattern[str]]]] = {
        "application/pdf": [re.compile(r"^25504446")],
        "image/jpeg": [re.compile(r"^ffd8ff")],
        "image/png": [re.compile(r"^89504e47")],
        "image/tiff": [re.compile(r"^49492a00"), re.compile(r"^4d4d002a")],
        "image/bmp": [re.compile(r"^424d")],
        "image/webp": [re.compile(r"^52494646.{8}57454250")],
    }

    HEADER_BYTES = 8

    def __init__(self, max_size: int = MAX_FILE_SIZE, fail_open: bool = True) -> None:
        self._max_size = max_size
        self._fail_open = fail_open

    @property
    def max_size(self) -> int:
        return self._max_size

    def validate(self, candidate: UploadCandidate) -> ValidationResult:
        """Validate a single candidate without modifying it."""
        if candidate.size > self._max_size:
            limit_mb = round(self._max_size / 1024 / 1024)
            return ValidationResult(
                valid=False,
                error=(
                    f"File too large: {candidate.size} bytes. "
                    f"Maximum allowed: {limit_mb}MB ({self._max_size} bytes)"
                ),
                size=candidate.size,
            )

        if candidate.size == 0:
            return ValidationResult(valid=False, error="File is empty", size=0)

        if candidate.mime_type not in SUPPORTED_MIME_TYPES:
            return ValidationResult(
                valid=False,
                error=(
                    f"Unsupported file type: {candidate.mime_type or 'unknown'}. "
                    "Supported types: PDF, JPG, PNG, TIFF, BMP, WebP"
                ),
                size=candidate.size,
            )

        extension = file_extension(candidate.name)
        if extension not in self.EXTENSIONS[candidate.mime_type]:
            return ValidationResult(
                valid=False,
                error=(
                    f"File extension does not match MIME type: "
                    f"{extension} vs {candidate.mime_type}"
                ),
                size=candidate.size,
            )

        if not self._signature_matches(candidate):
            return ValidationResult(
                valid=False,
                error="File appears to be corrupt or not a valid file of this type",
                size=candidate.size,
            )

        return ValidationResult(
            valid=True,
            detected_mime=candidate.mime_type,
            size=candidate.size,
        )

    def validate_all(self, candidates: list[UploadCandidate]) -> list[ValidationResult]:
        """Validate each candidate independently, preserving input order."""
        return [self.validate(candidate) for candidate in candidates]

    def partition(
        self, candidates: list[UploadCandidate]
    ) -> tuple[list[UploadCandidate], list[tuple[UploadCandidate, str]]]:
        """Split candidates into admitted files and (file, error) rejections."""
        valid: list[UploadCandidate] = []
        invalid: list[tuple[UploadCandidate, str]] = []
        for candidate, result in zip(candidates, self.validate_all(candidates)):
            if result.valid:
                valid.append(candidate)
            else:
                invalid.append((candidate, result.error or "Unknown validation error"))
        return valid, invalid

    def file_info(self, candidate: UploadCandidate) -> FileInfo:
        return FileInfo(
            name=candidate.name,
            size=format_file_size(candidate.size),
            type=candidate.mime_type,
        )

    def _signature_matches(self, candidate: UploadCandidate) -> bool:
        patterns = self.SIGNATURES.get(candidate.mime_type)
        if not patterns:
            return True
        try:
            header = self._header_hex(candidate)
        except Exception as exc:
            Log.warning(f"Could not read signature of {candidate.name}: {exc}")
            return self._fail_open
        return any(pattern.search(header) for pattern in patterns)

    def _header_hex(self, candidate: UploadCandidate) -> str:
        # WebP needs bytes 8..11 for its tag; every other signature fits in 8.
        length = 12 if candidate.mime_type == "image/webp" else self.HEADER_BYTES
        return bytes(candidate.data[:length]).hex()
