"""Deterministic keyword/pattern router.

No model call is made to choose a specialist: the decision is a pure
function of the message and the session state.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Tuple

from docassist.models.agent import (
    AgentContext,
    AgentKind,
    AgentSelection,
    DirectContext,
    DocsContext,
    PdfContext,
    SessionState,
    SpreadsheetContext,
)
from docassist.routing.agent_table import (
    AGENT_PROFILES,
    COMPETING_KEYWORD_AGENTS,
    CORE_ROUTE_ORDER,
    EXTENDED_ROUTE_ORDER,
    AgentProfile,
)

logger = logging.getLogger(__name__)

ROUTE_REASONS: Dict[AgentKind, str] = {
    AgentKind.PDF: "PDF context loaded and question relates to document content",
    AgentKind.SPREADSHEET: "Message contains spreadsheet/data keywords",
    AgentKind.DOCS: "Message requests document creation or editing",
    AgentKind.CHART: "Message requests a chart or visualization",
    AgentKind.RESEARCH: "Message requires looking up information",
    AgentKind.DIRECT: "General query - using direct response",
}

DEFAULT_PDF_PATH = "document.pdf"


def matches_profile(message: str, profile: AgentProfile) -> bool:
    """Patterns against the raw message first, then keywords against its lowercase form."""
    if any(pattern.search(message) for pattern in profile.patterns):
        return True
    lowered = message.lower()
    return any(keyword in lowered for keyword in profile.keywords)


def has_other_agent_keywords(message: str) -> bool:
    lowered = message.lower()
    return any(
        keyword in lowered
        for kind in COMPETING_KEYWORD_AGENTS
        for keyword in AGENT_PROFILES[kind].keywords
    )


def explain_route(
    message: str, state: SessionState, include_extended: bool = False
) -> Tuple[AgentKind, str]:
    if state.has_document_loaded:
        if matches_profile(message, AGENT_PROFILES[AgentKind.PDF]):
            return AgentKind.PDF, ROUTE_REASONS[AgentKind.PDF]
        if message.rstrip().endswith("?") and not has_other_agent_keywords(message):
            return AgentKind.PDF, ROUTE_REASONS[AgentKind.PDF]

    order = CORE_ROUTE_ORDER + (EXTENDED_ROUTE_ORDER if include_extended else ())
    for kind in order:
        if matches_profile(message, AGENT_PROFILES[kind]):
            return kind, ROUTE_REASONS[kind]
    return AgentKind.DIRECT, ROUTE_REASONS[AgentKind.DIRECT]


def route(message: str, state: SessionState, include_extended: bool = False) -> AgentKind:
    """Pick the specialist for ``message``; first match in precedence order wins."""
    return explain_route(message, state, include_extended)[0]


def current_page_from(metadata: Mapping[str, Any]) -> int:
    """Viewer page from session metadata; anything but a positive integer means page 1."""
    value = metadata.get("current_page", 1)
    try:
        page = int(value)
    except (TypeError, ValueError):
        logger.debug("Ignoring non-numeric current_page %r", value)
        return 1
    return page if page >= 1 else 1


def select_agent(
    message: str, context: AgentContext, include_extended: bool = False
) -> AgentSelection:
    """Route a chat turn and narrow its context to what the chosen specialist needs."""
    agent, reason = explain_route(message, context.session_state, include_extended)
    logger.info("Routing to %s: %s", agent.value, reason)

    common = {
        "user_id": context.user_id,
        "conversation_id": context.conversation_id,
        "metadata": dict(context.metadata),
    }
    if agent == AgentKind.PDF:
        specialist = PdfContext(
            **common,
            pdf_path=context.pdf_path or DEFAULT_PDF_PATH,
            pages=context.pdf_pages,
            current_page=current_page_from(context.metadata),
            selected_text=context.selected_text,
        )
    elif agent == AgentKind.SPREADSHEET:
        specialist = SpreadsheetContext(
            **common,
            workbook_id=context.artifact_id,
            sheet_id=context.metadata.get("sheet_id"),
            selected_range=context.metadata.get("selected_range"),
        )
    elif agent == AgentKind.DOCS:
        specialist = DocsContext(
            **common,
            document_id=context.artifact_id,
            document_title=context.metadata.get("document_title"),
            selected_text=context.selected_text,
        )
    else:
        specialist = DirectContext(**common, kind=agent, artifact_id=context.artifact_id)
    return AgentSelection(agent=agent, reason=reason, context=specialist)
