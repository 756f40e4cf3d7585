"""Human-readable citations and machine-parseable citation markers.

Marker formats consumed by the UI renderer:

* page citations: ``[[cite:<id>|<filename>|<page-or-empty>|<escaped-text>]]``
* cell citations: ``[[cell:<ref>]]`` or ``[[cell:<ref>|<value>]]``

``|`` and ``]`` inside marker fields are escaped to ``¦`` and ``⟧`` so the
marker's own delimiters survive; parsers must apply the reverse mapping.
"""

from __future__ import annotations

import re
from typing import Dict, Iterable, List, Literal, Optional

from docassist.config import settings
from docassist.models.citation import (
    CellCitation,
    CitationWithPosition,
    PageCitation,
    ParsedCitations,
)
from docassist.utils.text import strip_extension

CitationStyle = Literal["inline", "footnote", "bracket"]

PIPE_ESCAPE = "¦"
BRACKET_ESCAPE = "⟧"

_CELL_REF = r"[A-Z]+\d+(?::[A-Z]+\d+)?"
CELL_REF_PATTERN = re.compile(rf"(?:{_CELL_REF}|[^|!\]]+!{_CELL_REF})", re.IGNORECASE)
CELL_MARKER_PATTERN = re.compile(
    rf"\[\[cell:({_CELL_REF}|[^|!\]]+!{_CELL_REF})(?:\|([^\]]+))?\]\]", re.IGNORECASE
)
PAGE_MARKER_PATTERN = re.compile(r"\[\[cite:(\d+)\|([^|]+)\|([^|]*)\|([^\]]+)\]\]")
CITATION_NUMERAL_PATTERN = re.compile(r"(?<!\[)\[(\d+)\](?!\])")


def escape_marker_field(text: str) -> str:
    return text.replace("|", PIPE_ESCAPE).replace("]", BRACKET_ESCAPE)


def unescape_marker_field(text: str) -> str:
    return text.replace(PIPE_ESCAPE, "|").replace(BRACKET_ESCAPE, "]")


def format_citation(
    filename: str, page_number: int, style: Optional[CitationStyle] = None
) -> str:
    base_name = strip_extension(filename)
    style = style or settings.citation_style
    if style == "inline":
        return f"({base_name}, p. {page_number})"
    if style == "footnote":
        return f"[{page_number}]"
    return f"[{base_name}, página {page_number}]"


def build_citation_marker(
    citation_id: int, filename: str, page_number: Optional[int], text: str
) -> str:
    """Serialize a page citation; an unknown page leaves the third field empty."""
    page = "" if page_number is None else str(page_number)
    return (
        f"[[cite:{citation_id}|{escape_marker_field(filename)}|{page}|"
        f"{escape_marker_field(text)}]]"
    )


def build_cell_marker(cell: str, value: Optional[object] = None, sheet: Optional[str] = None) -> str:
    reference = f"{sheet}!{cell}" if sheet else cell
    if not CELL_REF_PATTERN.fullmatch(reference):
        raise ValueError(f"Invalid cell reference: {reference!r}")
    if value is None or value == "":
        return f"[[cell:{reference}]]"
    return f"[[cell:{reference}|{escape_marker_field(str(value))}]]"


def _parse_cell(match: re.Match) -> CellCitation:
    reference, value = match.group(1), match.group(2)
    sheet: Optional[str] = None
    if "!" in reference:
        sheet, reference = reference.rsplit("!", 1)
    return CellCitation(
        cell=reference.upper(),
        sheet=sheet,
        value=unescape_marker_field(value) if value is not None else None,
    )


def _parse_page(match: re.Match) -> PageCitation:
    page = match.group(3)
    return PageCitation(
        id=int(match.group(1)),
        filename=unescape_marker_field(match.group(2)),
        page_number=int(page) if page.isdigit() else None,
        text=unescape_marker_field(match.group(4)),
    )


def parse_citations(content: str) -> ParsedCitations:
    """Pull markers out of model output.

    Page markers are replaced by their ``[id]`` numeral and cell markers by
    a ``{{cell:N}}`` placeholder indexing ``cell_citations``.
    """
    cells: List[CellCitation] = []
    pages: List[PageCitation] = []

    def replace_cell(match: re.Match) -> str:
        cells.append(_parse_cell(match))
        return f"{{{{cell:{len(cells) - 1}}}}}"

    def replace_page(match: re.Match) -> str:
        citation = _parse_page(match)
        pages.append(citation)
        return f"[{citation.id}]"

    processed = CELL_MARKER_PATTERN.sub(replace_cell, content)
    processed = PAGE_MARKER_PATTERN.sub(replace_page, processed)
    return ParsedCitations(processed_content=processed, cell_citations=cells, page_citations=pages)


def link_citation_numerals(text: str, citations: Iterable[CitationWithPosition]) -> str:
    """Replace ``[n]`` numerals the model wrote with the marker issued for ``n``."""
    markers: Dict[int, str] = {c.citation_id: c.citation_marker for c in citations}
    if not markers:
        return text

    def replace(match: re.Match) -> str:
        return markers.get(int(match.group(1)), match.group(0))

    return CITATION_NUMERAL_PATTERN.sub(replace, text)


def has_cell_citations(content: str) -> bool:
    return re.search(r"\[\[cell:[A-Z]", content, re.IGNORECASE) is not None


def has_page_citations(content: str) -> bool:
    return re.search(r"\[\[cite:\d+\|", content) is not None


def has_any_citations(content: str) -> bool:
    return has_cell_citations(content) or has_page_citations(content)
