"""Search results, citations and assembled document context."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from .page import BoundingBox


class CitedChunk(BaseModel):
    """One literal match found on a page, padded with surrounding context.

    ``start_index``/``end_index`` are offsets of the match inside the page's
    ``content``, not inside the merged document text.
    """

    text: str
    page_number: int
    start_index: int = Field(..., ge=0)
    end_index: int = Field(..., ge=0)
    bounding_box: Optional[BoundingBox] = None
    page_width: Optional[float] = None
    page_height: Optional[float] = None

    @model_validator(mode="after")
    def _check_span(self) -> "CitedChunk":
        if self.end_index < self.start_index:
            raise ValueError("end_index must not precede start_index")
        return self


class CitationWithPosition(BaseModel):
    """An excerpt accepted into a context block, with its citation forms."""

    text: str
    filename: str
    page_number: Optional[int] = None
    citation: str
    citation_id: int
    citation_marker: str
    bounding_box: Optional[BoundingBox] = None
    page_width: Optional[float] = None
    page_height: Optional[float] = None


class DocumentContext(BaseModel):
    """Context block handed to the language model for one chat turn."""

    has_context: bool = False
    context_text: str = ""
    document_names: List[str] = Field(default_factory=list)
    citations: List[CitationWithPosition] = Field(default_factory=list)
    total_documents: int = 0


class CellCitation(BaseModel):
    """Parsed ``[[cell:REF|VALUE]]`` marker."""

    cell: str
    value: Optional[str] = None
    sheet: Optional[str] = None


class PageCitation(BaseModel):
    """Parsed ``[[cite:ID|filename|page|text]]`` marker."""

    id: int
    filename: str
    page_number: Optional[int] = None
    text: str


class ParsedCitations(BaseModel):
    """Content with markers replaced by placeholders, plus the markers."""

    processed_content: str
    cell_citations: List[CellCitation] = Field(default_factory=list)
    page_citations: List[PageCitation] = Field(default_factory=list)
