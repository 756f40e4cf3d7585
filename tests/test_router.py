from __future__ import annotations

from datetime import datetime, timezone

import pytest

from docassist.models.agent import (
    AgentContext,
    AgentKind,
    AgentStatus,
    DirectContext,
    DocsContext,
    PdfContext,
    SessionState,
    SpreadsheetContext,
)
from docassist.routing.agent_table import agent_status_message, format_context_for_agent
from docassist.routing.router import explain_route, has_other_agent_keywords, route, select_agent

from conftest import make_pages

WITH_DOC = SessionState(has_document_loaded=True)
NO_DOC = SessionState()


def test_document_question_goes_to_pdf() -> None:
    assert route("¿qué dice el documento sobre el presupuesto?", WITH_DOC) == AgentKind.PDF


def test_spreadsheet_request() -> None:
    assert route("crea una hoja de cálculo con ventas", NO_DOC) == AgentKind.SPREADSHEET


def test_pdf_wins_over_spreadsheet_when_document_loaded() -> None:
    message = "busca en el pdf la suma total"
    assert route(message, WITH_DOC) == AgentKind.PDF
    assert route(message, NO_DOC) == AgentKind.SPREADSHEET


@pytest.mark.parametrize(
    "message",
    ["resumen del documento", "¿qué pone en la página 4?", "según el documento, ¿cuánto cuesta?"],
)
def test_pdf_table_matches(message: str) -> None:
    assert route(message, WITH_DOC) == AgentKind.PDF


def test_open_question_defaults_to_loaded_document() -> None:
    assert route("what was the total revenue?", WITH_DOC) == AgentKind.PDF
    assert route("what was the total revenue?", NO_DOC) == AgentKind.DIRECT


def test_open_question_with_trailing_space() -> None:
    assert route("what was the total revenue?  ", WITH_DOC) == AgentKind.PDF


def test_open_question_with_other_keywords_is_not_pdf() -> None:
    message = "¿puedes ordenar estos datos?"
    assert has_other_agent_keywords(message)
    assert route(message, WITH_DOC) == AgentKind.SPREADSHEET


def test_docs_request() -> None:
    assert route("redacta un informe sobre el proyecto", NO_DOC) == AgentKind.DOCS


def test_extended_agents_only_when_enabled() -> None:
    message = "dibuja un diagrama de barras"
    assert route(message, NO_DOC) == AgentKind.DIRECT
    assert route(message, NO_DOC, include_extended=True) == AgentKind.CHART
    assert route("busca en internet el clima", NO_DOC, include_extended=True) == AgentKind.RESEARCH


def test_general_message_is_direct() -> None:
    agent, reason = explain_route("hola, buenos días", NO_DOC)
    assert agent == AgentKind.DIRECT
    assert reason == "General query - using direct response"


@pytest.mark.parametrize(
    "message",
    ["crea una tabla", "hola", "¿qué dice el pdf?", "redacta una carta", "what is this?"],
)
def test_routing_is_deterministic(message: str) -> None:
    for state in (WITH_DOC, NO_DOC):
        assert {route(message, state) for _ in range(5)} == {route(message, state)}


def test_select_agent_builds_pdf_context() -> None:
    context = AgentContext(
        conversation_id="c1",
        pdf_path="/uploads/contract.pdf",
        pdf_pages=make_pages("Clause one", "Clause two"),
        metadata={"current_page": 2},
    )

    selection = select_agent("¿qué dice el documento?", context)

    assert selection.agent == AgentKind.PDF
    assert isinstance(selection.context, PdfContext)
    assert selection.context.filename == "contract.pdf"
    assert selection.context.current_page == 2
    assert len(selection.context.pages) == 2


def test_select_agent_builds_narrow_contexts() -> None:
    context = AgentContext(conversation_id="c1", artifact_id="wb-7", metadata={"sheet_id": "s1"})

    sheet = select_agent("crea una tabla de gastos", context)
    docs = select_agent("redacta un ensayo", context)
    direct = select_agent("hola", context)

    assert isinstance(sheet.context, SpreadsheetContext)
    assert sheet.context.workbook_id == "wb-7"
    assert sheet.context.sheet_id == "s1"
    assert isinstance(docs.context, DocsContext)
    assert docs.context.document_id == "wb-7"
    assert isinstance(direct.context, DirectContext)
    assert direct.context.kind == AgentKind.DIRECT


def test_without_pages_no_pdf_routing() -> None:
    context = AgentContext(conversation_id="c1", pdf_path="/uploads/contract.pdf")
    assert select_agent("¿qué dice el documento?", context).agent != AgentKind.PDF


def test_status_messages() -> None:
    assert agent_status_message(AgentKind.PDF, AgentStatus.ROUTING) == "Thinking..."
    assert agent_status_message(AgentKind.PDF, AgentStatus.EXECUTING) == "Analyzing PDF..."
    assert agent_status_message(AgentKind.SPREADSHEET, AgentStatus.EXECUTING) == "Creating spreadsheet..."
    assert agent_status_message(AgentKind.DOCS, AgentStatus.COMPLETING) == "Finishing up..."
    assert agent_status_message(AgentKind.DOCS, AgentStatus.IDLE) == ""


def test_shared_context_template() -> None:
    now = datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)

    text = format_context_for_agent(artifact_name="Budget", pdf_loaded=True, now=now)

    assert "- User: User" in text
    assert "- Timezone: UTC" in text
    assert "- Date/Time: 2024-05-01 09:30:00" in text
    assert "- Active Artifact: Budget" in text
    assert "- PDF Loaded: Yes" in text


@pytest.mark.parametrize(("value", "expected"), [("3", 3), ("next", 1), (None, 1), (0, 1), (2.0, 2)])
def test_current_page_metadata_is_sanitized(value: object, expected: int) -> None:
    context = AgentContext(
        conversation_id="c1",
        pdf_path="/uploads/contract.pdf",
        pdf_pages=make_pages("Clause one", "Clause two", "Clause three"),
        metadata={"current_page": value},
    )

    selection = select_agent("¿qué dice el documento?", context)

    assert selection.context.current_page == expected
