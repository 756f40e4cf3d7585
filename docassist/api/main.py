"""FastAPI application entry point."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import Body, Depends, FastAPI, File, HTTPException, UploadFile

from docassist.agents.dispatcher import AgentDispatcher
from docassist.agents.pdf_tools import PdfToolset
from docassist.config import settings
from docassist.ingestion.pdf_context import PdfContextService
from docassist.ingestion.pipeline import DocumentIngestor
from docassist.models.agent import AgentContext, AgentResponse, PdfContext, SessionState
from docassist.models.api import (
    ChatRequest,
    DocumentSearchHit,
    DocumentSummary,
    RouteRequest,
    SearchRequest,
    SearchResponse,
)
from docassist.models.document import DocumentFile
from docassist.retrieval.citation_search import search_with_citations
from docassist.routing.router import explain_route
from docassist.storage.document_store import (
    DocumentStore,
    InvalidConversationId,
    create_document_store,
)

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="DocAssist",
    description="Document-grounded assistant with page-level citations",
    version="0.1.0",
)

store = create_document_store(settings)
pdf_context = PdfContextService()
ingestor = DocumentIngestor(store, pdf_context)
dispatcher = AgentDispatcher(store=store)


def get_store() -> DocumentStore:
    return store


def get_pdf_context() -> PdfContextService:
    return pdf_context


def get_ingestor() -> DocumentIngestor:
    return ingestor


def get_dispatcher() -> AgentDispatcher:
    return dispatcher


def to_summary(document: DocumentFile) -> DocumentSummary:
    metadata = document.metadata
    return DocumentSummary(
        id=document.id,
        filename=document.filename,
        content_type=document.content_type,
        processing_status=document.processing_status,
        page_count=metadata.page_count if metadata else None,
        word_count=metadata.word_count if metadata else None,
        error=document.error,
        failure_reason=document.failure_reason,
    )


@app.get("/health")
def health() -> dict[str, str]:
    """Simple readiness check."""
    return {"status": "ok"}


@app.post("/route")
def route_message(payload: RouteRequest) -> dict[str, str]:
    """Show which specialist a message would go to, without calling a model."""
    state = SessionState(
        has_document_loaded=payload.has_document_loaded,
        has_active_artifact=payload.has_active_artifact,
    )
    agent, reason = explain_route(payload.message, state, payload.include_extended)
    return {"agent": agent.value, "reason": reason}


@app.post("/conversations/{conversation_id}/documents", response_model=DocumentSummary)
async def upload_document(
    conversation_id: str,
    file: UploadFile = File(...),
    document_ingestor: DocumentIngestor = Depends(get_ingestor),
) -> DocumentSummary:
    data = await file.read()
    try:
        document = await document_ingestor.ingest(
            conversation_id, file.filename or "document", file.content_type, data
        )
    except InvalidConversationId as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    if document.processing_status == "failed":
        raise HTTPException(status_code=422, detail=document.error or "Extraction failed.")
    return to_summary(document)


@app.get("/conversations/{conversation_id}/documents", response_model=List[DocumentSummary])
def list_documents(
    conversation_id: str, document_store: DocumentStore = Depends(get_store)
) -> List[DocumentSummary]:
    try:
        documents = document_store.list_documents(conversation_id, status=None)
    except InvalidConversationId as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return [to_summary(d) for d in documents]


@app.delete("/conversations/{conversation_id}/documents")
def clear_documents(
    conversation_id: str,
    document_store: DocumentStore = Depends(get_store),
    pdf_service: PdfContextService = Depends(get_pdf_context),
) -> dict[str, int]:
    """Drop a conversation's documents, cached pages and pending loads."""
    try:
        deleted = document_store.delete_conversation(conversation_id)
    except InvalidConversationId as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    cancelled = pdf_service.cancel(conversation_id)
    return {"deleted": deleted, "cancelled_loads": cancelled}


@app.post("/conversations/{conversation_id}/search", response_model=SearchResponse)
def search_documents(
    conversation_id: str,
    payload: SearchRequest,
    document_store: DocumentStore = Depends(get_store),
) -> SearchResponse:
    try:
        documents = document_store.list_documents(conversation_id)
    except InvalidConversationId as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    hits: List[DocumentSearchHit] = []
    for document in documents:
        remaining = payload.max_results - len(hits)
        if remaining <= 0:
            break
        for chunk in search_with_citations(payload.query, document.pages or [], remaining):
            hits.append(
                DocumentSearchHit(
                    **chunk.model_dump(), filename=document.filename, document_id=document.id
                )
            )
    return SearchResponse(query=payload.query, results=hits)


@app.post("/conversations/{conversation_id}/chat", response_model=AgentResponse)
async def chat(
    conversation_id: str,
    payload: ChatRequest,
    pdf_service: PdfContextService = Depends(get_pdf_context),
    agent_dispatcher: AgentDispatcher = Depends(get_dispatcher),
) -> AgentResponse:
    loaded = pdf_service.get(conversation_id)
    context = AgentContext(
        user_id=payload.user_id,
        conversation_id=conversation_id,
        artifact_id=payload.artifact_id,
        pdf_path=loaded.source if loaded else None,
        pdf_pages=list(loaded.pages) if loaded else [],
    )
    try:
        return await agent_dispatcher.dispatch(payload.message, context)
    except Exception as exc:
        logger.error("Agent dispatch failed: %s", exc)
        raise HTTPException(status_code=502, detail="Answer generation failed.") from exc


@app.post("/conversations/{conversation_id}/pdf/tools/{tool_name}")
def run_pdf_tool(
    conversation_id: str,
    tool_name: str,
    arguments: Optional[Dict[str, Any]] = Body(default=None),
    pdf_service: PdfContextService = Depends(get_pdf_context),
) -> Dict[str, Any]:
    if tool_name not in PdfToolset.tool_names:
        raise HTTPException(status_code=404, detail=f"Unknown PDF tool: {tool_name}")
    loaded = pdf_service.get(conversation_id)
    if loaded is None:
        raise HTTPException(status_code=404, detail="No PDF loaded for this conversation.")
    context = PdfContext(conversation_id=conversation_id, pdf_path=loaded.source, pages=loaded.pages)
    try:
        return PdfToolset(context).run(tool_name, **(arguments or {}))
    except TypeError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
