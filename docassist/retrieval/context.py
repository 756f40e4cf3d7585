"""Assemble the numbered, length-bounded document context for one chat turn."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

from docassist.config import settings
from docassist.models.citation import CitationWithPosition, DocumentContext
from docassist.models.document import DocumentFile
from docassist.retrieval.citation_search import (
    ELLIPSIS,
    QUERY_PUNCTUATION,
    fold_case,
    search_with_citations,
)
from docassist.retrieval.citations import build_citation_marker, format_citation
from docassist.storage.document_store import DocumentStore
from docassist.utils.text import truncate

logger = logging.getLogger(__name__)

FLAT_LEADING_CONTEXT = 100
FLAT_TRAILING_CONTEXT = 200
FLAT_MIN_WORD_LENGTH = 4
RULE = "=" * 80

CITATION_INSTRUCTIONS = f"""
{RULE}

⚠️ CRITICAL: CITATION INSTRUCTIONS (YOU MUST FOLLOW THESE EXACTLY)

YOU MUST use numeric citations [1], [2], [3] in your response like academic papers.

RULES:
1. EVERY fact from documents MUST have a citation number immediately after it
2. Use [1], [2], [3] etc. matching the numbered excerpts above
3. Place citations INLINE after each claim: "El proyecto tiene 2 etapas [1]"
4. Multiple sources for same fact: "La inversión fue de $1M [1][3]"
5. DO NOT write any information without a citation number
6. If not found: "No encontré esta información en los documentos."

CORRECT FORMAT EXAMPLE:
"El servicio consiste en revisar costos [1] y elaborar la Cuarta Modificación [2]. El plazo total es de 6 meses [3], dividido en dos etapas [1][2]."

WRONG (never do this):
"El servicio consiste en revisar costos y elaborar la Cuarta Modificación."

Remember: EVERY piece of information needs [N] citation.
{RULE}
"""


def build_context_prompt(
    parts: Sequence[str], document_names: Sequence[str], is_search_result: bool
) -> str:
    """Wrap context parts in the document header and the citation instructions."""
    if not parts:
        return ""
    listing = "\n".join(f"- {name}" for name in document_names)
    intro = (
        "The following excerpts are RELEVANT to the user's query (with citations):"
        if is_search_result
        else "Document summaries:"
    )
    header = (
        f"\n{RULE}\nDOCUMENT CONTEXT - UPLOADED FILES\n{RULE}\n\n"
        f"The user has uploaded {len(document_names)} document(s) to this conversation:\n"
        f"{listing}\n\n{intro}\n\n"
    )
    return header + "\n".join(parts) + CITATION_INSTRUCTIONS


def format_context_chunk(citation_id: int, citation: str, text: str) -> str:
    return f'\n[{citation_id}] {citation}:\n>>> "{text}"\n'


def find_flat_snippet(content: str, query: str) -> Optional[str]:
    """First query word found in unpaginated text, with a ±100/200 character window."""
    lowered = fold_case(content)
    for raw in fold_case(query).split():
        word = raw.strip(QUERY_PUNCTUATION)
        if len(word) < FLAT_MIN_WORD_LENGTH:
            continue
        index = lowered.find(word)
        if index == -1:
            continue
        start = max(0, index - FLAT_LEADING_CONTEXT)
        end = min(len(content), index + len(word) + FLAT_TRAILING_CONTEXT)
        snippet = content[start:end]
        if start > 0:
            snippet = ELLIPSIS + snippet
        if end < len(content):
            snippet += ELLIPSIS
        return snippet
    return None


def _document_excerpts(
    document: DocumentFile, query: str, max_results: int
) -> List[CitationWithPosition]:
    """Candidate citations for one document; ids are assigned by the caller."""
    if document.pages:
        excerpts = []
        for chunk in search_with_citations(query, document.pages, max_results):
            excerpts.append(
                CitationWithPosition(
                    text=chunk.text,
                    filename=document.filename,
                    page_number=chunk.page_number,
                    citation=format_citation(document.filename, chunk.page_number, "bracket"),
                    citation_id=0,
                    citation_marker="",
                    bounding_box=chunk.bounding_box,
                    page_width=chunk.page_width,
                    page_height=chunk.page_height,
                )
            )
        return excerpts

    if document.extracted_content:
        snippet = find_flat_snippet(document.extracted_content, query)
        if snippet is not None:
            return [
                CitationWithPosition(
                    text=snippet,
                    filename=document.filename,
                    citation=f"[{document.filename}]",
                    citation_id=0,
                    citation_marker="",
                )
            ]
    return []


def _search_documents(
    documents: Sequence[DocumentFile], query: str, max_length: int, max_results: int
) -> Tuple[List[str], List[CitationWithPosition]]:
    parts: List[str] = []
    citations: List[CitationWithPosition] = []
    used = 0
    for document in documents:
        for excerpt in _document_excerpts(document, query, max_results):
            citation_id = len(citations) + 1
            chunk = format_context_chunk(citation_id, excerpt.citation, excerpt.text)
            if used + len(chunk) > max_length:
                logger.info("Context budget reached after %s excerpts", len(citations))
                return parts, citations
            marker = build_citation_marker(
                citation_id, excerpt.filename, excerpt.page_number, excerpt.text
            )
            citations.append(
                excerpt.model_copy(update={"citation_id": citation_id, "citation_marker": marker})
            )
            parts.append(chunk)
            used += len(chunk)
    return parts, citations


def format_document_summary(document: DocumentFile) -> str:
    metadata = document.metadata
    block = f"**{document.filename}**"
    if metadata is not None and metadata.page_count:
        block += f" ({metadata.page_count} pages)"
    if metadata is not None and metadata.word_count:
        block += f" - {metadata.word_count} words"
    block += "\n"

    if metadata is not None and metadata.summary:
        block += f"Summary: {truncate(metadata.summary, settings.max_summary_length)}\n"
    elif document.extracted_content:
        preview = truncate(document.extracted_content, settings.max_doc_preview_length)
        block += f"Content preview: {preview}\n"
    return block + "\n"


def _summarize_documents(documents: Sequence[DocumentFile], max_length: int) -> List[str]:
    parts: List[str] = []
    used = 0
    for document in documents:
        if used >= max_length:
            break
        block = format_document_summary(document)
        if used + len(block) <= max_length:
            parts.append(block)
            used += len(block)
    return parts


def assemble_context(
    documents: Sequence[DocumentFile],
    query: str,
    max_length: Optional[int] = None,
    max_results: Optional[int] = None,
) -> DocumentContext:
    """Build the context block for ``documents`` (most recent first).

    With a non-empty query, literal search excerpts are numbered from 1 in
    the order they are accepted. Excerpts are added whole until the next one
    would exceed ``max_length``. When the query is empty or nothing matches,
    per-document summaries are used instead and no citations are issued.
    """
    if max_length is None:
        max_length = settings.max_context_length
    if max_results is None:
        max_results = settings.max_search_results
    if not documents:
        return DocumentContext()

    names = [document.filename for document in documents]
    if query.strip():
        parts, citations = _search_documents(documents, query, max_length, max_results)
        if parts:
            logger.info("Assembled %s cited excerpts from %s documents", len(parts), len(names))
            return DocumentContext(
                has_context=True,
                context_text=build_context_prompt(parts, names, True),
                document_names=names,
                citations=citations,
                total_documents=len(documents),
            )
        logger.info("No excerpts matched %r; using document summaries", query)

    parts = _summarize_documents(documents, max_length)
    return DocumentContext(
        has_context=bool(parts),
        context_text=build_context_prompt(parts, names, False),
        document_names=names,
        total_documents=len(documents),
    )


def get_document_context(
    store: DocumentStore,
    conversation_id: str,
    query: str,
    search_content: bool = True,
    max_length: Optional[int] = None,
) -> DocumentContext:
    """Context for a conversation's completed documents; storage errors yield no context."""
    try:
        documents = store.list_documents(conversation_id)
    except Exception:
        logger.exception("Failed to list documents for %s", conversation_id)
        return DocumentContext()
    return assemble_context(documents, query if search_content else "", max_length)
