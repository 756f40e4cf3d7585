"""Per-conversation cache of the PDF pages the PDF specialist works on."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from docassist.config import settings
from docassist.ingestion.extraction import Extraction, extract_async
from docassist.models.page import ExtractionFailure, PageContent
from docassist.storage.cache import TTLCache

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"

Extractor = Callable[[bytes, Optional[str]], Awaitable[Extraction]]


@dataclass(frozen=True)
class LoadedPdfContext:
    source: str
    pages: List[PageContent]
    loaded_at: float = field(default_factory=time.time)


class PdfContextService:
    """Loads, caches and drops PDF page content keyed by conversation.

    A second load for the same conversation and source while one is running
    awaits the running one instead of extracting again.
    """

    def __init__(
        self,
        cache: Optional[TTLCache[str, LoadedPdfContext]] = None,
        extractor: Extractor = extract_async,
    ) -> None:
        self.cache = cache if cache is not None else TTLCache(settings.pdf_cache_ttl_seconds)
        self._extractor = extractor
        self._inflight: Dict[Tuple[str, str], asyncio.Task] = {}

    def get(self, conversation_id: str) -> Optional[LoadedPdfContext]:
        return self.cache.get(conversation_id)

    def get_pages(self, conversation_id: str) -> List[PageContent]:
        loaded = self.get(conversation_id)
        return list(loaded.pages) if loaded else []

    def prime(self, conversation_id: str, source: str, pages: List[PageContent]) -> None:
        """Cache pages that were already extracted elsewhere (e.g. on upload)."""
        self.cache.set(conversation_id, LoadedPdfContext(source=source, pages=list(pages)))
        logger.info("Cached %s PDF pages for %s", len(pages), conversation_id)

    async def load_from_bytes(
        self, conversation_id: str, source: str, data: bytes
    ) -> Optional[List[PageContent]]:
        async def read() -> Optional[bytes]:
            return data

        return await self._load(conversation_id, source, read)

    async def load_from_path(self, conversation_id: str, path: Path) -> Optional[List[PageContent]]:
        async def read() -> Optional[bytes]:
            try:
                return await asyncio.to_thread(path.read_bytes)
            except OSError as exc:
                logger.error("Error loading PDF %s: %s", path, exc)
                return None

        return await self._load(conversation_id, str(path), read)

    async def _load(
        self,
        conversation_id: str,
        source: str,
        read: Callable[[], Awaitable[Optional[bytes]]],
    ) -> Optional[List[PageContent]]:
        cached = self.get(conversation_id)
        if cached is not None and cached.source == source:
            logger.info("Using cached PDF context for %s", conversation_id)
            return list(cached.pages)

        key = (conversation_id, source)
        task = self._inflight.get(key)
        if task is None:
            logger.info("Loading PDF context: %s", source)
            task = asyncio.ensure_future(self._run(key, read))
            self._inflight[key] = task
        else:
            logger.info("Awaiting in-flight PDF load for %s", source)

        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            if task.cancelled():
                logger.info("PDF load for %s was cancelled", source)
                return None
            raise

    async def _run(
        self, key: Tuple[str, str], read: Callable[[], Awaitable[Optional[bytes]]]
    ) -> Optional[List[PageContent]]:
        conversation_id, source = key
        try:
            data = await read()
            if data is None:
                return None
            outcome = await self._extractor(data, PDF_MIME_TYPE)
        finally:
            self._inflight.pop(key, None)

        if isinstance(outcome, ExtractionFailure):
            logger.warning("Failed to extract text from PDF %s: %s", source, outcome.error)
            return None

        self.cache.set(conversation_id, LoadedPdfContext(source=source, pages=outcome.pages))
        logger.info("Loaded %s pages from PDF", len(outcome.pages))
        return list(outcome.pages)

    def clear(self, conversation_id: str) -> None:
        self.cache.invalidate(conversation_id)
        logger.info("Cleared PDF context for %s", conversation_id)

    def cancel(self, conversation_id: str) -> int:
        """Abandon in-flight loads for a conversation and drop its pages."""
        cancelled = 0
        for key, task in list(self._inflight.items()):
            if key[0] != conversation_id:
                continue
            self._inflight.pop(key, None)
            if not task.done():
                task.cancel()
                cancelled += 1
        self.clear(conversation_id)
        return cancelled
