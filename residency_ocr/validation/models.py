from dataclasses import dataclass, field


@dataclass(frozen=True)
class UploadCandidate:
    """A named in-memory upload with its declared MIME type.

    ``size`` is the declared size and defaults to ``len(data)``.
    """

    name: str
    mime_type: str
    data: bytes = field(repr=False)
    size: int = -1

    def __post_init__(self) -> None:
        if self.size < 0:
            object.__setattr__(self, "size", len(self.data))


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    error: str | None = None
    detected_mime: str | None = None
    size: int | None = None


@dataclass(frozen=True)
class FileInfo:
    name: str
    size: str
    type: str
