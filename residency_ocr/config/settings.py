from pydantic_settings import BaseSettings, SettingsConfigDict

from residency_ocr.ocr.models import (
    DEFAULT_CHARACTER_WHITELIST,
    EnhancementSettings,
    OCRLanguage,
    OCRSettings,
)


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    pdf_engine: str = "pymupdf"
    pdf_render_scale: float = 2.0
    direct_min_chars: int = 100

    ocr_engine: str = "tesseract"
    tesseract_cmd: str = ""
    ocr_language: OCRLanguage = OCRLanguage.SPA_ENG
    ocr_character_whitelist: str = DEFAULT_CHARACTER_WHITELIST
    ocr_enhance: bool = True
    ocr_aggressive_substitutions: bool = False

    enhance_upscale: bool = True
    enhance_binarize: bool = True
    enhance_contrast: float = 1.2
    enhance_brightness: float = 1.0
    enhance_denoise: bool = True

    max_file_size_bytes: int = 10 * 1024 * 1024
    max_files_batch: int = 10
    signature_fail_open: bool = True

    def ocr_settings(self) -> OCRSettings:
        """Build an immutable OCRSettings snapshot from the current values."""
        return OCRSettings(
            language=self.ocr_language,
            character_whitelist=self.ocr_character_whitelist or None,
            enhance=self.ocr_enhance,
            enhancement=EnhancementSettings(
                upscale=self.enhance_upscale,
                binarize=self.enhance_binarize,
                contrast=self.enhance_contrast,
                brightness=self.enhance_brightness,
                denoise=self.enhance_denoise,
            ),
            aggressive_substitutions=self.ocr_aggressive_substitutions,
        )
