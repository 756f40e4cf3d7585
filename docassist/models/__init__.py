"""Typed models shared across the application."""

from .agent import (
    AgentContext,
    AgentKind,
    AgentResponse,
    AgentSelection,
    AgentStatus,
    DirectContext,
    DocsContext,
    PdfContext,
    ProgressUpdate,
    SessionState,
    SpreadsheetContext,
)
from .citation import (
    CellCitation,
    CitationWithPosition,
    CitedChunk,
    DocumentContext,
    PageCitation,
    ParsedCitations,
)
from .document import DocumentFile
from .page import (
    BoundingBox,
    DocumentMetadata,
    ExtractionFailure,
    ExtractionResult,
    FailureReason,
    PageContent,
    ProcessedDocument,
    TextRegion,
)

__all__ = [
    "AgentContext",
    "AgentKind",
    "AgentResponse",
    "AgentSelection",
    "AgentStatus",
    "BoundingBox",
    "CellCitation",
    "CitationWithPosition",
    "CitedChunk",
    "DirectContext",
    "DocsContext",
    "DocumentContext",
    "DocumentFile",
    "DocumentMetadata",
    "ExtractionFailure",
    "ExtractionResult",
    "FailureReason",
    "PageCitation",
    "PageContent",
    "ParsedCitations",
    "PdfContext",
    "ProcessedDocument",
    "ProgressUpdate",
    "SessionState",
    "SpreadsheetContext",
    "TextRegion",
]
