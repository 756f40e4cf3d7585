"""Routing decisions, specialist contexts and agent responses."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from .citation import CitationWithPosition
from .page import PageContent


class AgentKind(str, Enum):
    """Specialists a message can be routed to."""

    SPREADSHEET = "spreadsheet"
    DOCS = "docs"
    PDF = "pdf"
    CHART = "chart"
    RESEARCH = "research"
    DIRECT = "direct"


class AgentStatus(str, Enum):
    IDLE = "idle"
    ROUTING = "routing"
    EXECUTING = "executing"
    COMPLETING = "completing"


class SessionState(BaseModel):
    """The only session facts the router looks at."""

    has_document_loaded: bool = False
    has_active_artifact: bool = False


class AgentContext(BaseModel):
    """Fields common to every chat turn, before a specialist is chosen."""

    user_id: str = ""
    conversation_id: str
    artifact_id: Optional[str] = None
    pdf_path: Optional[str] = None
    pdf_pages: List[PageContent] = Field(default_factory=list)
    selected_text: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @property
    def session_state(self) -> SessionState:
        return SessionState(
            has_document_loaded=bool(self.pdf_pages),
            has_active_artifact=bool(self.artifact_id),
        )


class _SpecialistContext(BaseModel):
    user_id: str = ""
    conversation_id: str
    metadata: Dict[str, Any] = Field(default_factory=dict)


class SpreadsheetContext(_SpecialistContext):
    kind: Literal[AgentKind.SPREADSHEET] = AgentKind.SPREADSHEET
    workbook_id: Optional[str] = None
    sheet_id: Optional[str] = None
    selected_range: Optional[str] = None


class DocsContext(_SpecialistContext):
    kind: Literal[AgentKind.DOCS] = AgentKind.DOCS
    document_id: Optional[str] = None
    document_title: Optional[str] = None
    selected_text: Optional[str] = None


class PdfContext(_SpecialistContext):
    kind: Literal[AgentKind.PDF] = AgentKind.PDF
    pdf_path: str
    pages: List[PageContent]
    current_page: int = 1
    selected_text: Optional[str] = None

    @property
    def filename(self) -> str:
        return self.pdf_path.replace("\\", "/").rsplit("/", 1)[-1] or "PDF"


class DirectContext(_SpecialistContext):
    """Chart, research and plain conversational turns need no extra fields."""

    kind: Literal[AgentKind.CHART, AgentKind.RESEARCH, AgentKind.DIRECT] = AgentKind.DIRECT
    artifact_id: Optional[str] = None


SpecialistContext = Annotated[
    Union[SpreadsheetContext, DocsContext, PdfContext, DirectContext],
    Field(discriminator="kind"),
]


class AgentSelection(BaseModel):
    """Per-message routing decision; ``reason`` is for logs only."""

    agent: AgentKind
    reason: str
    context: Optional[SpecialistContext] = None


class ProgressUpdate(BaseModel):
    """Intermediate update emitted while a specialist works."""

    agent: AgentKind
    status: AgentStatus
    message: str = ""
    tool_name: Optional[str] = None
    stage: Optional[Literal["starting", "running", "completed", "failed"]] = None
    data: Dict[str, Any] = Field(default_factory=dict)


class AgentResponse(BaseModel):
    agent: AgentKind
    reason: str
    response: str
    rendered_response: str = ""
    citations: List[CitationWithPosition] = Field(default_factory=list)
    tools_used: List[str] = Field(default_factory=list)
    prompt_tokens: Optional[int] = None
