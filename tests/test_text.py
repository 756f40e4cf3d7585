from __future__ import annotations

import pytest

from docassist.utils.text import detect_language, generate_summary, title_from_filename, truncate


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("Der Vertrag wurde gestern von beiden Parteien unterschrieben und ist ab heute gültig.", "de"),
        ("Le contrat a été signé hier par les deux parties et il est valable dès aujourd'hui.", "fr"),
        ("El contrato fue firmado ayer por ambas partes y es válido desde hoy mismo.", "es"),
    ],
)
def test_detect_language(text: str, expected: str) -> None:
    assert detect_language(text) == expected


@pytest.mark.parametrize("text", ["", "   \n ", "12345 !!! 678"])
def test_undecidable_language_is_unknown(text: str) -> None:
    assert detect_language(text) == "unknown"


def test_title_from_filename() -> None:
    assert title_from_filename("quarterly_budget-2024.pdf") == "Quarterly Budget 2024"


def test_summary_and_truncate() -> None:
    assert generate_summary("one two three", max_words=2) == "one two..."
    assert generate_summary("one two", max_words=2) == "one two"
    assert truncate("abcdef", 3) == "abc..."
    assert truncate("abc", 3) == "abc"
