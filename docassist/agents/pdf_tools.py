"""Tools the PDF specialist can call against the loaded document.

Each tool returns a plain dict with ``success`` and either ``message`` or
``error``. Viewer effects (navigation, highlighting) are reported through the
``on_progress`` observer rather than returned.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from docassist.models.agent import AgentKind, AgentStatus, PdfContext, ProgressUpdate
from docassist.models.page import PageContent, count_words
from docassist.retrieval.citation_search import search_with_citations

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressUpdate], None]
ToolResult = Dict[str, Any]

MAX_SEARCH_RESULTS = 10
SUMMARY_CONTENT_LIMIT = 15_000
SECTION_SEARCH_RESULTS = 3
SECTION_EXTRA_PAGES = 2
ANSWER_RESULTS_PER_TERM = 3
ANSWER_MAX_PAGES = 5
ANSWER_PAGE_CONTENT_LIMIT = 2_000
SUMMARY_STYLES = ("brief", "detailed", "bullets")
HIGHLIGHT_COLORS = ("yellow", "green", "blue", "pink", "orange")

NOT_LOADED = "PDF no cargado"


class PdfToolset:
    """PDF tools bound to one conversation's loaded pages."""

    tool_names = (
        "search_pdf",
        "get_page_content",
        "get_page_range",
        "summarize_document",
        "extract_section",
        "navigate_to_page",
        "highlight_text",
        "get_document_info",
        "answer_with_citations",
    )

    def __init__(self, context: PdfContext, on_progress: Optional[ProgressCallback] = None) -> None:
        self.context = context
        self.on_progress = on_progress

    @property
    def pages(self) -> List[PageContent]:
        return self.context.pages

    @property
    def last_page(self) -> int:
        return max(page.page_number for page in self.pages)

    def _emit(self, tool_name: str, stage: str, data: Optional[Dict[str, Any]] = None) -> None:
        if self.on_progress is None:
            return
        self.on_progress(
            ProgressUpdate(
                agent=AgentKind.PDF,
                status=AgentStatus.EXECUTING,
                message="Analyzing PDF...",
                tool_name=tool_name,
                stage=stage,
                data=data or {},
            )
        )

    def _find_page(self, page_number: int) -> Optional[PageContent]:
        for page in self.pages:
            if page.page_number == page_number:
                return page
        return None

    def _missing_page(self, page_number: int) -> ToolResult:
        return {
            "success": False,
            "error": f"Página {page_number} no existe. El documento tiene {len(self.pages)} páginas.",
        }

    def run(self, tool_name: str, **arguments: Any) -> ToolResult:
        """Execute a tool by name, reporting its start and outcome."""
        if tool_name not in self.tool_names:
            raise ValueError(f"Unknown PDF tool: {tool_name}")
        self._emit(tool_name, "starting")
        if not self.pages:
            result: ToolResult = {"success": False, "error": NOT_LOADED}
        else:
            result = getattr(self, tool_name)(**arguments)
        self._emit(tool_name, "completed" if result.get("success") else "failed")
        return result

    def search_pdf(self, query: str, max_results: int = 5) -> ToolResult:
        max_results = max(1, min(max_results, MAX_SEARCH_RESULTS))
        logger.info("Searching PDF for %r", query)
        results = search_with_citations(query, self.pages, max_results)
        if not results:
            return {
                "success": True,
                "found": False,
                "query": query,
                "results": [],
                "message": f'No se encontró "{query}" en el documento.',
            }
        return {
            "success": True,
            "found": True,
            "query": query,
            "result_count": len(results),
            "results": [
                {
                    "citation_id": index,
                    "page": chunk.page_number,
                    "excerpt": chunk.text,
                    "citation": f"[página {chunk.page_number}]",
                }
                for index, chunk in enumerate(results, start=1)
            ],
            "message": f'Encontré {len(results)} resultado(s) para "{query}".',
        }

    def get_page_content(self, page_number: int) -> ToolResult:
        page = self._find_page(page_number)
        if page is None:
            return self._missing_page(page_number)
        return {
            "success": True,
            "page_number": page_number,
            "word_count": page.word_count,
            "content": page.content,
            "message": f"Contenido de página {page_number} ({page.word_count} palabras).",
        }

    def get_page_range(self, start_page: int, end_page: int) -> ToolResult:
        start = max(1, min(start_page, self.last_page))
        end = max(start, min(end_page, self.last_page))
        selected = [page for page in self.pages if start <= page.page_number <= end]
        return {
            "success": True,
            "range": {"start": start, "end": end},
            "page_count": len(selected),
            "total_words": sum(page.word_count for page in selected),
            "pages": [
                {"page_number": p.page_number, "word_count": p.word_count, "content": p.content}
                for p in selected
            ],
            "message": f"Contenido de páginas {start}-{end}.",
        }

    def summarize_document(
        self, pages: Optional[Sequence[int]] = None, style: str = "detailed"
    ) -> ToolResult:
        if style not in SUMMARY_STYLES:
            return {"success": False, "error": f"Estilo de resumen no válido: {style}"}
        selected = [p for p in self.pages if p.page_number in pages] if pages else self.pages
        content = "\n\n".join(page.content for page in selected)
        return {
            "success": True,
            "pages_included": [page.page_number for page in selected],
            "word_count": count_words(content),
            "style": style,
            "content_to_summarize": content[:SUMMARY_CONTENT_LIMIT],
            "instruction": (
                f"Please create a {style} summary of this document content. "
                "Include page citations."
            ),
            "message": f"Contenido de {len(selected)} páginas listo para resumir.",
        }

    def extract_section(self, section_title: str, include_subsections: bool = True) -> ToolResult:
        results = search_with_citations(section_title, self.pages, SECTION_SEARCH_RESULTS)
        if not results:
            return {
                "success": False,
                "error": f'No se encontró la sección "{section_title}" en el documento.',
            }
        start = results[0].page_number
        last = start + SECTION_EXTRA_PAGES if include_subsections else start
        selected = [page for page in self.pages if start <= page.page_number <= last]
        numbers = [page.page_number for page in selected]
        return {
            "success": True,
            "section_title": section_title,
            "start_page": start,
            "pages": [{"page_number": p.page_number, "content": p.content} for p in selected],
            "citation": f"[páginas {', '.join(str(n) for n in numbers)}]",
            "message": f'Sección "{section_title}" extraída (páginas {start}-{numbers[-1]}).',
        }

    def navigate_to_page(self, page_number: int) -> ToolResult:
        if page_number < 1 or page_number > self.last_page:
            return self._missing_page(page_number)
        self._emit(
            "navigate_to_page",
            "running",
            {"event": "pdf:navigate", "page_number": page_number},
        )
        return {
            "success": True,
            "page_number": page_number,
            "message": f"Navegando a página {page_number}.",
        }

    def highlight_text(self, text: str, color: str = "yellow") -> ToolResult:
        if color not in HIGHLIGHT_COLORS:
            return {"success": False, "error": f"Color no válido: {color}"}
        results = search_with_citations(text, self.pages, 1)
        if not results:
            return {
                "success": False,
                "error": f'No se encontró el texto "{text[:50]}..." en el documento.',
            }
        chunk = results[0]
        data: Dict[str, Any] = {
            "event": "pdf:highlight",
            "text": text,
            "page_number": chunk.page_number,
            "color": color,
        }
        if chunk.bounding_box is not None:
            data["bounding_box"] = chunk.bounding_box.model_dump()
        self._emit("highlight_text", "running", data)
        return {
            "success": True,
            "text": text[:100],
            "page_number": chunk.page_number,
            "color": color,
            "message": f"Texto resaltado en página {chunk.page_number}.",
        }

    def get_document_info(self) -> ToolResult:
        total_words = sum(page.word_count for page in self.pages)
        return {
            "success": True,
            "filename": self.context.filename,
            "page_count": len(self.pages),
            "total_words": total_words,
            "avg_words_per_page": round(total_words / len(self.pages)),
            "current_page": self.context.current_page,
            "has_selected_text": bool(self.context.selected_text),
            "message": f"Documento: {len(self.pages)} páginas, {total_words} palabras.",
        }

    def answer_with_citations(
        self, question: str, search_terms: Optional[Sequence[str]] = None
    ) -> ToolResult:
        hits = []
        for term in [question, *(search_terms or [])]:
            hits.extend(search_with_citations(term, self.pages, ANSWER_RESULTS_PER_TERM))

        page_numbers: List[int] = []
        for hit in hits:
            if hit.page_number not in page_numbers:
                page_numbers.append(hit.page_number)

        relevant = []
        for page_number in page_numbers[:ANSWER_MAX_PAGES]:
            page = self._find_page(page_number)
            relevant.append(
                {
                    "page_number": page_number,
                    "excerpts": [hit.text for hit in hits if hit.page_number == page_number],
                    "full_content": page.content[:ANSWER_PAGE_CONTENT_LIMIT] if page else "",
                }
            )
        logger.info("Found %s relevant pages for question", len(relevant))

        listing = "\n".join(
            f"--- Page {item['page_number']} ---\n" + "\n...\n".join(item["excerpts"])
            for item in relevant
        )
        instruction = (
            f'Based on the following content from the PDF, answer the question: "{question}"\n\n'
            "IMPORTANT: Include [página N] citations after EVERY piece of information "
            "from the document.\n\n"
            f"Relevant content:\n{listing}\n\n"
            'If the information is not in the provided content, say "No encontré esta '
            'información en el documento."'
        )
        return {
            "success": True,
            "question": question,
            "relevant_pages": relevant,
            "instruction": instruction,
            "message": f"Encontré información relevante en {len(relevant)} páginas.",
        }
