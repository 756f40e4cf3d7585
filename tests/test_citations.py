from __future__ import annotations

import pytest

from docassist.models.citation import CitationWithPosition
from docassist.retrieval.citations import (
    build_cell_marker,
    build_citation_marker,
    escape_marker_field,
    format_citation,
    has_any_citations,
    has_cell_citations,
    has_page_citations,
    link_citation_numerals,
    parse_citations,
    unescape_marker_field,
)


def _marker_fields(marker: str) -> list[str]:
    assert marker.startswith("[[cite:") and marker.endswith("]]")
    return marker[len("[[cite:"):-2].split("|")


@pytest.mark.parametrize(
    ("style", "expected"),
    [
        ("inline", "(informe.final, p. 3)"),
        ("footnote", "[3]"),
        ("bracket", "[informe.final, página 3]"),
    ],
)
def test_citation_styles(style: str, expected: str) -> None:
    assert format_citation("informe.final.pdf", 3, style) == expected


def test_bracket_is_default_style() -> None:
    assert format_citation("plan.pdf", 7) == "[plan, página 7]"


def test_pipe_and_bracket_text_survives_marker() -> None:
    marker = build_citation_marker(1, "report.pdf", 2, "a|b]c")

    parsed = parse_citations(f"See {marker}.")

    assert parsed.page_citations[0].text == "a|b]c"
    assert parsed.page_citations[0].page_number == 2
    assert parsed.processed_content == "See [1]."


@pytest.mark.parametrize("text", ["a|b]c", "|||", "]]", "x]|y|]z", "plain"])
def test_escape_round_trip_and_four_fields(text: str) -> None:
    assert unescape_marker_field(escape_marker_field(text)) == text

    fields = _marker_fields(build_citation_marker(4, "f|ile].pdf", 9, text))

    assert len(fields) == 4
    assert fields[0] == "4"
    assert fields[2] == "9"


def test_unknown_page_leaves_empty_field() -> None:
    marker = build_citation_marker(3, "notes.txt", None, "snippet")

    assert marker == "[[cite:3|notes.txt||snippet]]"
    assert parse_citations(marker).page_citations[0].page_number is None


def test_cell_markers() -> None:
    assert build_cell_marker("B12") == "[[cell:B12]]"
    assert build_cell_marker("A1:C3", 1500) == "[[cell:A1:C3|1500]]"
    assert build_cell_marker("D4", "x", sheet="Ventas") == "[[cell:Ventas!D4|x]]"


@pytest.mark.parametrize("ref", ["12", "B", "A1:", "Sheet!", "A|1"])
def test_invalid_cell_reference(ref: str) -> None:
    with pytest.raises(ValueError):
        build_cell_marker(ref)


def test_parse_mixed_markers() -> None:
    content = (
        "Total [[cell:Ventas!b2|$1,200]] per "
        + build_citation_marker(2, "contract.pdf", 5, "payment terms")
    )

    parsed = parse_citations(content)

    assert parsed.processed_content == "Total {{cell:0}} per [2]"
    cell = parsed.cell_citations[0]
    assert (cell.sheet, cell.cell, cell.value) == ("Ventas", "B2", "$1,200")
    assert parsed.page_citations[0].filename == "contract.pdf"


def test_detection_helpers() -> None:
    page_marker = build_citation_marker(1, "a.pdf", 1, "x")

    assert has_page_citations(page_marker)
    assert not has_cell_citations(page_marker)
    assert has_cell_citations("[[cell:a1]]")
    assert has_any_citations("[[cell:A1]]")
    assert not has_any_citations("plain [1] text")


def test_link_citation_numerals() -> None:
    marker = build_citation_marker(1, "plan.pdf", 2, "two stages")
    citation = CitationWithPosition(
        text="two stages",
        filename="plan.pdf",
        page_number=2,
        citation="[plan, página 2]",
        citation_id=1,
        citation_marker=marker,
    )

    linked = link_citation_numerals("Two stages [1], cost unknown [4].", [citation])

    assert linked == f"Two stages {marker}, cost unknown [4]."
    assert link_citation_numerals("No refs [1]", []) == "No refs [1]"
