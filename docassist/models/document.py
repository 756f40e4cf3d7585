"""Document records as kept by the persistence collaborator."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from .page import DocumentMetadata, FailureReason, PageContent, ProcessingStatus


def _now() -> datetime:
    return datetime.now(timezone.utc)


class DocumentFile(BaseModel):
    """A file attached to a conversation.

    ``pages`` is the page-addressable content written once after extraction;
    ``extracted_content`` is the flat fallback used when pages are missing.
    """

    id: str = Field(default_factory=lambda: uuid4().hex)
    conversation_id: str
    filename: str
    content_type: Optional[str] = None
    file_size: Optional[int] = None
    extracted_content: Optional[str] = None
    pages: Optional[List[PageContent]] = None
    metadata: Optional[DocumentMetadata] = None
    processing_status: ProcessingStatus = "pending"
    error: Optional[str] = None
    failure_reason: Optional[FailureReason] = None
    created_at: datetime = Field(default_factory=_now)
