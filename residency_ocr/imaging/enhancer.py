"""Pixel-level preprocessing that makes scanned text easier to recognise.

All array helpers take and return ``uint8`` arrays of shape ``(H, W, 4)``
(RGBA). Only the R, G and B channels are ever modified.
"""

import io

import numpy as np
from PIL import Image, UnidentifiedImageError

from residency_ocr.logging.logger import Log
from residency_ocr.ocr.exceptions import ImageDecodeError
from residency_ocr.ocr.models import EnhancementSettings

BINARIZE_THRESHOLD = 128
MEDIAN_BAND_ROWS = 256


def load_image(data: bytes) -> Image.Image:
    """Decode raw image bytes into a PIL image."""
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
        raise ImageDecodeError(f"Could not decode image: {exc}") from exc
    return image


def to_rgba_array(image: Image.Image) -> np.ndarray:
    try:
        return np.array(image.convert("RGBA"), dtype=np.uint8)
    except ValueError as exc:
        raise ImageDecodeError(f"Unsupported image mode {image.mode}: {exc}") from exc


def upscale(image: Image.Image, factor: int = 2) -> Image.Image:
    """Enlarge without smoothing so glyph edges stay sharp."""
    width, height = image.size
    return image.resize((width * factor, height * factor), Image.Resampling.NEAREST)


def _to_uint8(values: np.ndarray) -> np.ndarray:
    # Round half to even, then saturate.
    return np.clip(np.rint(values), 0, 255).astype(np.uint8)


def contrast_factor(contrast: float) -> float:
    return (259 * (contrast * 255 + 255)) / (255 * (259 - contrast * 255))


def adjust_contrast_brightness(
    pixels: np.ndarray, contrast: float, brightness: float
) -> np.ndarray:
    """Apply the contrast curve, then the brightness multiplier, to RGB."""
    if contrast == 1.0 and brightness == 1.0:
        return pixels.copy()
    out = pixels.copy()
    rgb = out[..., :3].astype(np.float64)
    rgb = _to_uint8(contrast_factor(contrast) * (rgb - 128) + 128).astype(np.float64)
    out[..., :3] = _to_uint8(rgb * brightness)
    return out


def binarize(pixels: np.ndarray, threshold: int = BINARIZE_THRESHOLD) -> np.ndarray:
    """Hard black/white by luminance, no dithering."""
    out = pixels.copy()
    rgb = out[..., :3].astype(np.float64)
    luminance = rgb[..., 0] * 0.299 + rgb[..., 1] * 0.587 + rgb[..., 2] * 0.114
    value = np.where(luminance > threshold, 255, 0).astype(np.uint8)
    out[..., 0] = value
    out[..., 1] = value
    out[..., 2] = value
    return out


def median_denoise(pixels: np.ndarray, band_rows: int = MEDIAN_BAND_ROWS) -> np.ndarray:
    """3x3 median per RGB channel over interior pixels; borders are left as-is.

    Rows are filtered in bands of ``band_rows`` so the nine shifted windows
    never span the whole image.
    """
    out = pixels.copy()
    height, width = pixels.shape[:2]
    if height < 3 or width < 3:
        return out
    rgb = pixels[..., :3]
    for top in range(1, height - 1, band_rows):
        bottom = min(top + band_rows, height - 1)
        windows = np.stack(
            [
                rgb[top + dy : bottom + dy, 1 + dx : width - 1 + dx]
                for dy in (-1, 0, 1)
                for dx in (-1, 0, 1)
            ]
        )
        windows.sort(axis=0)
        out[top:bottom, 1:-1, :3] = windows[4]
    return out


class ImageEnhancer:
    """Runs the enabled enhancement steps in a fixed order."""

    def __init__(self, settings: EnhancementSettings | None = None) -> None:
        self._settings = settings or EnhancementSettings()

    def enhance(self, image: Image.Image) -> Image.Image:
        settings = self._settings
        if settings.upscale:
            image = upscale(image)

        pixels = to_rgba_array(image)
        pixels = adjust_contrast_brightness(pixels, settings.contrast, settings.brightness)
        if settings.binarize:
            pixels = binarize(pixels)
        if settings.denoise:
            pixels = median_denoise(pixels)

        height, width = pixels.shape[:2]
        Log.debug(f"Enhanced image to {width}x{height} px")
        return Image.fromarray(pixels)

    def enhance_bytes(self, data: bytes) -> Image.Image:
        return self.enhance(load_image(data))
