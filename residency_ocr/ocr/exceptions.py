class OCRError(Exception):
    """Base exception for all OCR-related errors."""


class RecognitionError(OCRError):
    """Raised when the text-recognition engine fails on an image."""


class EngineInitializationError(RecognitionError):
    """Raised when the recognition engine cannot be started or lacks a language."""


class ImageDecodeError(OCRError):
    """Raised when input bytes cannot be decoded as an image."""
