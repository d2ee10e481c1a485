"""String clean-up applied to recognized text."""

import re

from residency_ocr.ocr.models import TextStatistics

_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
_WHITESPACE_RE = re.compile(r"\s+")
_HORIZONTAL_WHITESPACE_RE = re.compile(r"[^\S\n]+")
_EXCESS_NEWLINES_RE = re.compile(r"\n\s*\n\s*\n+")
_LOWER_THEN_DIGIT_RE = re.compile(r"([a-z])(\d)")
_DIGIT_THEN_LETTER_RE = re.compile(r"(\d)([a-z])", re.IGNORECASE)
_SPACE_BEFORE_PUNCT_RE = re.compile(r"\s+([.,;:!?])")
_SENTENCE_END_THEN_LETTER_RE = re.compile(r"([.!?])\s*([a-záéíóúñü])", re.IGNORECASE)
_ALPHANUMERIC_RE = re.compile(r"[a-zA-Z0-9áéíóúñüÁÉÍÓÚÑÜ]")
_PARAGRAPH_BREAK_RE = re.compile(r"\n\s*\n")


def strip_control_chars(text: str) -> str:
    return _CONTROL_CHARS_RE.sub("", text)


def postprocess_text(text: str, aggressive_substitutions: bool = False) -> str:
    """Tidy a single image's OCR output.

    ``aggressive_substitutions`` turns on the ``|`` -> ``I`` and ``0`` -> ``O``
    replacements, which also rewrite genuine digits and pipes.
    """
    text = strip_control_chars(text)
    text = _WHITESPACE_RE.sub(" ", text)
    text = _LOWER_THEN_DIGIT_RE.sub(r"\1 \2", text)
    text = _DIGIT_THEN_LETTER_RE.sub(r"\1 \2", text)
    if aggressive_substitutions:
        text = text.replace("|", "I").replace("0", "O")
    text = _SPACE_BEFORE_PUNCT_RE.sub(r"\1", text)
    text = _SENTENCE_END_THEN_LETTER_RE.sub(r"\1 \2", text)
    return text.strip()


def clean_document_text(text: str) -> str:
    """Light clean-up of a merged multi-page OCR document; keeps line breaks."""
    text = _HORIZONTAL_WHITESPACE_RE.sub(" ", text)
    text = strip_control_chars(text)
    text = _EXCESS_NEWLINES_RE.sub("\n\n", text)
    return text.strip()


def count_words(text: str) -> int:
    return len(text.split())


def text_statistics(text: str) -> TextStatistics:
    characters = len(text)
    words = count_words(text)
    lines = len(text.split("\n"))
    paragraphs = len(_PARAGRAPH_BREAK_RE.split(text))
    alphanumeric = len(_ALPHANUMERIC_RE.findall(text))
    readability = (alphanumeric / characters) * 100 if characters else 0.0
    return TextStatistics(
        characters=characters,
        characters_no_spaces=len(_WHITESPACE_RE.sub("", text)),
        words=words,
        lines=lines,
        paragraphs=paragraphs,
        average_words_per_line=round(words / lines, 2) if lines else 0.0,
        readability_score=round(readability, 2),
    )
