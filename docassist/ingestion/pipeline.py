"""Upload-time processing: extract once, persist pages and metadata."""

from __future__ import annotations

import logging
from typing import Optional

from docassist.ingestion.document_types import guess_mime_type, is_pdf, is_processable_document
from docassist.ingestion.extraction import process_document_async
from docassist.ingestion.pdf_context import PdfContextService
from docassist.models.document import DocumentFile
from docassist.storage.document_store import DocumentStore

logger = logging.getLogger(__name__)


def resolve_mime_type(filename: str, content_type: Optional[str]) -> Optional[str]:
    """Prefer the declared type; fall back to the extension for generic uploads."""
    if content_type and is_processable_document(content_type):
        return content_type
    return guess_mime_type(filename) or content_type


class DocumentIngestor:
    """Creates a document record, extracts it and writes the result back."""

    def __init__(
        self, store: DocumentStore, pdf_context: Optional[PdfContextService] = None
    ) -> None:
        self.store = store
        self.pdf_context = pdf_context

    async def ingest(
        self,
        conversation_id: str,
        filename: str,
        content_type: Optional[str],
        data: bytes,
    ) -> DocumentFile:
        mime_type = resolve_mime_type(filename, content_type)
        document = self.store.add(
            DocumentFile(
                conversation_id=conversation_id,
                filename=filename,
                content_type=mime_type,
                file_size=len(data),
                processing_status="processing",
            )
        )

        processed = await process_document_async(data, filename, mime_type)
        document = self.store.update(
            document.model_copy(
                update={
                    "extracted_content": processed.content,
                    "pages": processed.pages or None,
                    "metadata": processed.metadata,
                    "processing_status": processed.processing_status,
                    "error": processed.error,
                    "failure_reason": processed.failure_reason,
                }
            )
        )

        if not processed.success:
            logger.warning("Ingestion of %s failed: %s", filename, processed.error)
        elif self.pdf_context is not None and is_pdf(mime_type):
            self.pdf_context.prime(conversation_id, filename, processed.pages)
        return document
