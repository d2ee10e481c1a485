class ProcessorError(Exception):
    """Base exception for all processor-related errors."""


class FileValidationError(ProcessorError):
    """Raised when a file is rejected by the upload validator."""


class UnsupportedFileTypeError(ProcessorError):
    """Raised when a MIME type maps to neither the PDF nor the image path."""


class BatchTooLargeError(ProcessorError):
    """Raised when a batch holds more files than allowed."""
