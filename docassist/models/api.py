"""Request/response models for the public API."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from .citation import CitedChunk
from .page import FailureReason, ProcessingStatus


class RouteRequest(BaseModel):
    message: str
    has_document_loaded: bool = False
    has_active_artifact: bool = False
    include_extended: bool = False


class ChatRequest(BaseModel):
    """Incoming chat turn."""

    message: str = Field(..., min_length=1)
    artifact_id: Optional[str] = None
    user_id: str = ""


class SearchRequest(BaseModel):
    query: str = Field(..., min_length=1)
    max_results: int = Field(5, ge=0, le=50)


class DocumentSearchHit(CitedChunk):
    filename: str
    document_id: str


class SearchResponse(BaseModel):
    query: str
    results: List[DocumentSearchHit]


class DocumentSummary(BaseModel):
    """What the API reports about an attached document."""

    id: str
    filename: str
    content_type: Optional[str] = None
    processing_status: ProcessingStatus
    page_count: Optional[int] = None
    word_count: Optional[int] = None
    error: Optional[str] = None
    failure_reason: Optional[FailureReason] = None
