import math
from dataclasses import dataclass, field
from enum import Enum

DEFAULT_CHARACTER_WHITELIST = (
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"
    " .,;:!?()[]{}\"-'áéíóúñüÁÉÍÓÚÑÜ"
)


class OCRLanguage(str, Enum):
    """Language packs the recognition engine is initialised with."""

    SPA = "spa"
    ENG = "eng"
    SPA_ENG = "spa+eng"


class ProcessingMethod(str, Enum):
    DIRECT = "direct"
    OCR = "ocr"
    IMAGE_OCR = "image_ocr"


class ProgressStage(str, Enum):
    INITIALIZING = "initializing"
    PROCESSING = "processing"
    ENHANCING = "enhancing"
    RECOGNIZING = "recognizing"
    COMPLETED = "completed"
    ERROR = "error"


class PageSegmentationMode(int, Enum):
    """Subset of Tesseract page segmentation modes used by the pipeline."""

    AUTO = 3


def clamp_confidence(value: float) -> float:
    return min(1.0, max(0.0, float(value)))


@dataclass(frozen=True)
class EnhancementSettings:
    """Pixel-level preprocessing toggles applied before recognition."""

    upscale: bool = True
    binarize: bool = True
    contrast: float = 1.2
    brightness: float = 1.0
    denoise: bool = True

    def __post_init__(self) -> None:
        if self.brightness < 0:
            raise ValueError(f"brightness must be >= 0, got {self.brightness}")
        if math.isclose(self.contrast * 255, 259):
            raise ValueError(f"contrast {self.contrast} makes the contrast factor undefined")


@dataclass(frozen=True)
class OCRSettings:
    """Recognition configuration, snapshotted once per processing call."""

    language: OCRLanguage = OCRLanguage.SPA_ENG
    character_whitelist: str | None = DEFAULT_CHARACTER_WHITELIST
    enhance: bool = True
    enhancement: EnhancementSettings = field(default_factory=EnhancementSettings)
    aggressive_substitutions: bool = False


@dataclass(frozen=True)
class RecognitionOutput:
    """What a text recognizer returns for one image."""

    text: str
    confidence: float
    word_count: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "confidence", clamp_confidence(self.confidence))


@dataclass(frozen=True)
class ProcessingResult:
    """Per-file output handed back to the caller."""

    text: str
    confidence: float
    method: ProcessingMethod
    source_name: str
    processing_time_ms: int
    pages: int | None = None
    word_count: int | None = None
    file_size: int | None = None
    enhanced: bool | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "confidence", clamp_confidence(self.confidence))


@dataclass(frozen=True)
class BatchError:
    file_name: str
    error: str


@dataclass(frozen=True)
class BatchResult:
    """Aggregate of a batch run: successes in input order plus per-file errors."""

    results: list[ProcessingResult] = field(default_factory=list)
    errors: list[BatchError] = field(default_factory=list)
    total_time_ms: int = 0

    @property
    def successful(self) -> int:
        return len(self.results)

    @property
    def failed(self) -> int:
        return len(self.errors)

    @property
    def total(self) -> int:
        return self.successful + self.failed


@dataclass(frozen=True)
class ProgressEvent:
    """A single progress tick; fraction is a percentage in [0, 100]."""

    fraction: float
    stage: ProgressStage
    current_file: str | None = None
    file_index: int | None = None
    total_files: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "fraction", min(100.0, max(0.0, float(self.fraction))))


@dataclass(frozen=True)
class TextStatistics:
    characters: int
    characters_no_spaces: int
    words: int
    lines: int
    paragraphs: int
    average_words_per_line: float
    readability_score: float
