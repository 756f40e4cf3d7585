"""Run one chat turn: route, assemble context, call the model."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Sequence

from docassist.agents.pdf_tools import ProgressCallback
from docassist.config import settings
from docassist.llm.openai_client import ChatClient, OpenAIChatClient
from docassist.llm.prompts import build_system_prompt, build_user_prompt
from docassist.models.agent import (
    AgentContext,
    AgentKind,
    AgentResponse,
    AgentStatus,
    PdfContext,
    ProgressUpdate,
)
from docassist.models.citation import DocumentContext
from docassist.models.document import DocumentFile
from docassist.retrieval.citations import link_citation_numerals
from docassist.retrieval.context import assemble_context, get_document_context
from docassist.routing.agent_table import (
    AGENT_PROFILES,
    agent_status_message,
    format_context_for_agent,
)
from docassist.routing.router import select_agent
from docassist.storage.document_store import DocumentStore
from docassist.utils import tokenization

logger = logging.getLogger(__name__)

NO_PDF_MESSAGE = "No hay un PDF cargado para consultar. Por favor, sube un documento primero."


class AgentDispatcher:
    """Hands a routed message to its specialist.

    The language model is a black box behind ``ChatClient``; it is created
    lazily so routing and context assembly work without credentials.
    """

    def __init__(
        self,
        client: Optional[ChatClient] = None,
        store: Optional[DocumentStore] = None,
        include_extended: bool = False,
        max_output_tokens: Optional[int] = None,
    ) -> None:
        self._client = client
        self.store = store
        self.include_extended = include_extended
        self.max_output_tokens = max_output_tokens or settings.max_output_tokens

    @property
    def client(self) -> ChatClient:
        if self._client is None:
            self._client = OpenAIChatClient()
        return self._client

    @staticmethod
    def _emit(
        on_progress: Optional[ProgressCallback], agent: AgentKind, status: AgentStatus
    ) -> None:
        if on_progress is not None:
            on_progress(
                ProgressUpdate(
                    agent=agent, status=status, message=agent_status_message(agent, status)
                )
            )

    def _document_context(
        self,
        message: str,
        context: AgentContext,
        documents: Optional[Sequence[DocumentFile]],
        pdf: Optional[PdfContext],
    ) -> DocumentContext:
        if pdf is not None:
            loaded = DocumentFile(
                conversation_id=context.conversation_id,
                filename=pdf.filename,
                pages=pdf.pages,
                processing_status="completed",
            )
            return assemble_context([loaded], message)
        if documents is not None:
            return assemble_context(documents, message)
        if self.store is not None:
            return get_document_context(self.store, context.conversation_id, message)
        return DocumentContext()

    async def dispatch(
        self,
        message: str,
        context: AgentContext,
        documents: Optional[Sequence[DocumentFile]] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> AgentResponse:
        self._emit(on_progress, AgentKind.DIRECT, AgentStatus.ROUTING)
        selection = select_agent(message, context, self.include_extended)
        agent = selection.agent
        pdf = selection.context if isinstance(selection.context, PdfContext) else None

        if agent == AgentKind.PDF and (pdf is None or not pdf.pages):
            self._emit(on_progress, agent, AgentStatus.COMPLETING)
            return AgentResponse(
                agent=agent,
                reason=selection.reason,
                response=NO_PDF_MESSAGE,
                rendered_response=NO_PDF_MESSAGE,
            )

        document_context = self._document_context(message, context, documents, pdf)
        session_block = format_context_for_agent(
            user_name=context.user_id or None,
            artifact_name=context.artifact_id,
            pdf_loaded=bool(context.pdf_pages),
        )
        system_prompt = build_system_prompt(
            agent,
            session_block=session_block,
            document_context=document_context.context_text,
            pdf_filename=pdf.filename if pdf else None,
            pdf_page_count=len(pdf.pages) if pdf else 0,
        )
        user_prompt = build_user_prompt(message, context.selected_text)
        prompt_tokens = tokenization.estimate_prompt_tokens(system_prompt, user_prompt)
        logger.debug("Prompt for %s is about %s tokens", agent.value, prompt_tokens)

        self._emit(on_progress, agent, AgentStatus.EXECUTING)
        profile = AGENT_PROFILES[agent]
        answer = await asyncio.to_thread(
            self.client.complete,
            system_prompt,
            user_prompt,
            profile.temperature,
            self.max_output_tokens,
        )
        self._emit(on_progress, agent, AgentStatus.COMPLETING)

        return AgentResponse(
            agent=agent,
            reason=selection.reason,
            response=answer,
            rendered_response=link_citation_numerals(answer, document_context.citations),
            citations=document_context.citations,
            prompt_tokens=prompt_tokens,
        )
