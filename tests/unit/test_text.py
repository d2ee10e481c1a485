import pytest

from residency_ocr.ocr.text import clean_document_text, postprocess_text, text_statistics


class TestPostprocessText:
    def test_strips_control_characters(self) -> None:
        assert postprocess_text("Hola\x00 mundo\x07\x7f") == "Hola mundo"

    def test_collapses_whitespace(self) -> None:
        assert postprocess_text("  una \n\t  linea  ") == "una linea"

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("dosis500", "dosis 500"),
            ("500mg", "500 mg"),
            ("12ABC", "12 ABC"),
            ("ABC12", "ABC12"),
        ],
    )
    def test_splits_fused_alphanumerics(self, raw: str, expected: str) -> None:
        assert postprocess_text(raw) == expected

    def test_removes_space_before_punctuation(self) -> None:
        assert postprocess_text("Hola , mundo ; fin .") == "Hola, mundo; fin."

    def test_single_space_after_sentence_end(self) -> None:
        assert postprocess_text("fin.Inicio") == "fin. Inicio"
        assert postprocess_text("hola?adios") == "hola? adios"
        assert postprocess_text("listo!ésta") == "listo! ésta"

    def test_plain_text_is_unchanged(self) -> None:
        assert postprocess_text("Hello 2 World") == "Hello 2 World"

    def test_substitutions_off_by_default(self) -> None:
        assert postprocess_text("Room 101 | A") == "Room 101 | A"

    def test_aggressive_substitutions(self) -> None:
        assert postprocess_text("Room 101 | A", aggressive_substitutions=True) == "Room 1O1 I A"


class TestCleanDocumentText:
    def test_keeps_page_structure(self) -> None:
        raw = "--- Página 1 ---\nfoo   bar\n\n\n\nbaz\x01  \n"
        assert clean_document_text(raw) == "--- Página 1 ---\nfoo bar\n\nbaz"

    def test_trims(self) -> None:
        assert clean_document_text("  \n texto \n ") == "texto"


class TestTextStatistics:
    def test_counts(self) -> None:
        stats = text_statistics("Hola mundo\nsegunda linea\n\nparrafo")
        assert stats.characters == 33
        assert stats.characters_no_spaces == 28
        assert stats.words == 5
        assert stats.lines == 4
        assert stats.paragraphs == 2
        assert stats.average_words_per_line == 1.25
        assert stats.readability_score == 84.85

    def test_empty_text(self) -> None:
        stats = text_statistics("")
        assert stats.words == 0
        assert stats.readability_score == 0.0
