"""Literal search, citation formatting and context assembly."""

from .citation_search import extract_citation, find_page_for_text, search_with_citations
from .citations import (
    build_cell_marker,
    build_citation_marker,
    format_citation,
    link_citation_numerals,
    parse_citations,
)
from .context import assemble_context, get_document_context

__all__ = [
    "assemble_context",
    "build_cell_marker",
    "build_citation_marker",
    "extract_citation",
    "find_page_for_text",
    "format_citation",
    "get_document_context",
    "link_citation_numerals",
    "parse_citations",
    "search_with_citations",
]
