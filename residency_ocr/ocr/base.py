from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from PIL import Image

from residency_ocr.ocr.models import OCRLanguage, PageSegmentationMode, RecognitionOutput

ImageSource = bytes | Image.Image | str
EngineProgress = Callable[[float], None]


class BaseTextRecognizer(ABC):
    """Contract for all text-recognition engine adapters.

    A handle returned by ``initialize`` must be passed to ``release`` exactly
    once, whatever happens in between.
    """

    @abstractmethod
    def initialize(self, language: OCRLanguage) -> Any:
        """Start an engine instance for the given language.

        Raises:
            EngineInitializationError: if the engine or language is unavailable.
        """

    @abstractmethod
    def configure(
        self,
        handle: Any,
        character_whitelist: str | None,
        page_segmentation_mode: PageSegmentationMode,
    ) -> None:
        """Restrict the alphabet and set the page layout analysis mode."""

    @abstractmethod
    def recognize(
        self,
        handle: Any,
        image: ImageSource,
        on_progress: EngineProgress | None = None,
    ) -> RecognitionOutput:
        """Recognize text in one image.

        Args:
            handle: Value returned by ``initialize``.
            image: Raw image bytes, a PIL image, or a path to an image file.
            on_progress: Receives engine progress in [0, 1].

        Returns:
            RecognitionOutput with confidence normalized to [0, 1].

        Raises:
            RecognitionError: on any engine failure.
        """

    @abstractmethod
    def release(self, handle: Any) -> None:
        """Free the engine instance behind ``handle``."""
