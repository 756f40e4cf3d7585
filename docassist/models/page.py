"""Page-level data models produced by document extraction."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field


def count_words(text: str) -> int:
    """Number of whitespace-separated, non-empty tokens in ``text``."""
    return len([word for word in text.split() if word])


class BoundingBox(BaseModel):
    """Rectangle in PDF page coordinates (points, origin top-left)."""

    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    width: float
    height: float


class TextRegion(BaseModel):
    """A span of a page's ``content`` and the block it was read from."""

    model_config = ConfigDict(frozen=True)

    char_start: int
    char_end: int
    bbox: BoundingBox


class PageContent(BaseModel):
    """One physical page of a document."""

    model_config = ConfigDict(frozen=True)

    page_number: int = Field(..., ge=1)
    content: str
    width: Optional[float] = None
    height: Optional[float] = None
    regions: List[TextRegion] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def word_count(self) -> int:
        return count_words(self.content)

    def region_at(self, offset: int) -> Optional[TextRegion]:
        for region in self.regions:
            if region.char_start <= offset < region.char_end:
                return region
        return None


class ExtractionResult(BaseModel):
    """Successful output of processing one document."""

    merged_content: str
    pages: List[PageContent]
    page_count: int


class FailureReason(str, Enum):
    UNSUPPORTED_TYPE = "unsupported_type"
    NO_TEXT = "no_text"
    CORRUPT = "corrupt"
    IO_ERROR = "io_error"


class ExtractionFailure(BaseModel):
    """Recoverable extraction failure; never raised, always returned."""

    reason: FailureReason
    error: str


ProcessingStatus = Literal["pending", "processing", "completed", "failed"]


class DocumentMetadata(BaseModel):
    """Descriptive metadata stored next to a document's pages."""

    title: Optional[str] = None
    summary: Optional[str] = None
    page_count: Optional[int] = None
    word_count: Optional[int] = None
    language: Optional[str] = None
    extracted_at: datetime


class ProcessedDocument(BaseModel):
    """Extraction outcome plus metadata, ready to be persisted."""

    success: bool
    content: Optional[str] = None
    pages: List[PageContent] = Field(default_factory=list)
    page_count: int = 0
    metadata: DocumentMetadata
    processing_status: ProcessingStatus
    error: Optional[str] = None
    failure_reason: Optional[FailureReason] = None
