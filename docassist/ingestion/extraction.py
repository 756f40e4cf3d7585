"""Turn raw document bytes into page-addressable text."""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union

import fitz

from docassist.config import settings
from docassist.ingestion.document_types import (
    guess_mime_type,
    is_office,
    is_pdf,
    is_text,
    normalize_mime_type,
)
from docassist.models.page import (
    BoundingBox,
    DocumentMetadata,
    ExtractionFailure,
    ExtractionResult,
    FailureReason,
    PageContent,
    ProcessedDocument,
    TextRegion,
    count_words,
)
from docassist.utils.text import detect_language, generate_summary, title_from_filename

logger = logging.getLogger(__name__)

IMAGE_BLOCK = 1
BLOCK_SEPARATOR = " "

Extraction = Union[ExtractionResult, ExtractionFailure]


def normalize_block_text(text: str) -> str:
    parts = [line.strip() for line in text.splitlines() if line.strip()]
    return " ".join(parts)


def iter_page_blocks(page: fitz.Page) -> Iterator[Tuple[str, BoundingBox]]:
    """Yield cleaned text blocks of a page in reading order."""
    blocks = page.get_text("blocks")
    for block in sorted(blocks, key=lambda b: (b[1], b[0])):
        if block[6] == IMAGE_BLOCK:
            continue
        text = normalize_block_text(block[4])
        if text:
            bbox = BoundingBox(
                x=block[0], y=block[1], width=block[2] - block[0], height=block[3] - block[1]
            )
            yield text, bbox


def read_page(page: fitz.Page, page_number: int) -> Optional[PageContent]:
    """Build a ``PageContent`` for one page, or ``None`` when it has no text."""
    parts: List[str] = []
    regions: List[TextRegion] = []
    offset = 0
    try:
        for text, bbox in iter_page_blocks(page):
            if parts:
                offset += len(BLOCK_SEPARATOR)
            regions.append(TextRegion(char_start=offset, char_end=offset + len(text), bbox=bbox))
            parts.append(text)
            offset += len(text)
    except (RuntimeError, ValueError) as exc:
        logger.warning("Failed to extract text from PDF page %s: %s", page_number, exc)
        return None

    content = BLOCK_SEPARATOR.join(parts)
    if not content:
        return None
    return PageContent(
        page_number=page_number,
        content=content,
        width=page.rect.width,
        height=page.rect.height,
        regions=regions,
    )


def merge_pages(pages: List[PageContent], max_text_length: int) -> str:
    """Join pages behind ``[Page N]`` markers and hard-cut at the budget."""
    merged = "\n\n".join(f"[Page {page.page_number}]\n{page.content}" for page in pages)
    if len(merged) > max_text_length:
        logger.info("Truncating text from %s to %s chars", len(merged), max_text_length)
        merged = merged[:max_text_length]
    return merged


def extract_pdf(buffer: bytes, max_text_length: int) -> Extraction:
    try:
        doc = fitz.open(stream=buffer, filetype="pdf")
    except (RuntimeError, ValueError) as exc:
        logger.error("PDF could not be opened: %s", exc)
        return ExtractionFailure(reason=FailureReason.CORRUPT, error=f"Could not open PDF: {exc}")

    with doc:
        if doc.needs_pass and not doc.authenticate(""):
            return ExtractionFailure(
                reason=FailureReason.CORRUPT, error="PDF is password protected"
            )
        page_count = doc.page_count
        if page_count == 0:
            return ExtractionFailure(reason=FailureReason.CORRUPT, error="PDF has no pages")
        logger.info("PDF loaded, pages: %s", page_count)
        pages: List[PageContent] = []
        for index in range(page_count):
            page = read_page(doc[index], index + 1)
            if page is not None:
                pages.append(page)

    if not pages:
        logger.warning("PDF appears to be image-based or empty")
        return ExtractionFailure(
            reason=FailureReason.NO_TEXT, error="No extractable text found in PDF"
        )

    merged = merge_pages(pages, max_text_length)
    logger.info("Extracted %s chars from %s pages", len(merged), len(pages))
    return ExtractionResult(merged_content=merged, pages=pages, page_count=page_count)


def decode_text(buffer: bytes) -> str:
    try:
        return buffer.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.info("Buffer is not valid UTF-8; decoding as latin-1")
        return buffer.decode("latin-1")


def extract_text(buffer: bytes, max_text_length: int) -> Extraction:
    """Plain text and code files become a single page."""
    text = decode_text(buffer).strip()
    if len(text) > max_text_length:
        logger.info("Truncating text from %s to %s chars", len(text), max_text_length)
        text = text[:max_text_length]
    if not text:
        return ExtractionFailure(reason=FailureReason.NO_TEXT, error="Text file is empty")
    page = PageContent(page_number=1, content=text)
    return ExtractionResult(merged_content=text, pages=[page], page_count=1)


def extract(
    buffer: bytes, mime_type: Optional[str], max_text_length: Optional[int] = None
) -> Extraction:
    """Extract page-addressable text; failures are returned, never raised."""
    if max_text_length is None:
        max_text_length = settings.max_text_length

    if is_pdf(mime_type):
        return extract_pdf(buffer, max_text_length)
    if is_text(mime_type):
        return extract_text(buffer, max_text_length)
    if is_office(mime_type):
        logger.info("Office document - text extraction not implemented")
        return ExtractionFailure(
            reason=FailureReason.UNSUPPORTED_TYPE,
            error="Text extraction is not implemented for Office documents",
        )
    logger.warning("Unsupported document type: %s", mime_type)
    return ExtractionFailure(
        reason=FailureReason.UNSUPPORTED_TYPE,
        error=f"Unsupported document type: {normalize_mime_type(mime_type) or 'unknown'}",
    )


def extract_file(
    path: Path, mime_type: Optional[str] = None, max_text_length: Optional[int] = None
) -> Extraction:
    mime_type = mime_type or guess_mime_type(path.name)
    try:
        buffer = path.read_bytes()
    except OSError as exc:
        logger.error("Failed to read %s: %s", path, exc)
        return ExtractionFailure(reason=FailureReason.IO_ERROR, error=f"Could not read file: {exc}")
    return extract(buffer, mime_type, max_text_length)


async def extract_async(
    buffer: bytes, mime_type: Optional[str], max_text_length: Optional[int] = None
) -> Extraction:
    """Run ``extract`` in a worker thread so other turns keep running."""
    return await asyncio.to_thread(extract, buffer, mime_type, max_text_length)


async def extract_file_async(
    path: Path, mime_type: Optional[str] = None, max_text_length: Optional[int] = None
) -> Extraction:
    return await asyncio.to_thread(extract_file, path, mime_type, max_text_length)


def build_metadata(filename: str, result: Optional[ExtractionResult]) -> DocumentMetadata:
    metadata = DocumentMetadata(
        title=title_from_filename(filename),
        extracted_at=datetime.now(timezone.utc),
    )
    if result is not None:
        content = result.merged_content
        metadata.word_count = count_words(content)
        metadata.language = detect_language(content)
        metadata.summary = generate_summary(content, settings.summary_max_words)
        metadata.page_count = result.page_count
    return metadata


def to_processed_document(filename: str, outcome: Extraction) -> ProcessedDocument:
    if isinstance(outcome, ExtractionFailure):
        return ProcessedDocument(
            success=False,
            metadata=build_metadata(filename, None),
            processing_status="failed",
            error=outcome.error,
            failure_reason=outcome.reason,
        )
    return ProcessedDocument(
        success=True,
        content=outcome.merged_content,
        pages=outcome.pages,
        page_count=outcome.page_count,
        metadata=build_metadata(filename, outcome),
        processing_status="completed",
    )


def process_document(buffer: bytes, filename: str, mime_type: Optional[str]) -> ProcessedDocument:
    """Extract content and metadata for one uploaded file."""
    started = time.perf_counter()
    logger.info("Processing: %s (%s)", filename, mime_type)
    try:
        processed = to_processed_document(filename, extract(buffer, mime_type))
    except Exception as exc:
        logger.exception("Processing failed for %s", filename)
        return ProcessedDocument(
            success=False,
            metadata=build_metadata(filename, None),
            processing_status="failed",
            error=str(exc) or "Unknown error",
            failure_reason=FailureReason.CORRUPT,
        )
    logger.info(
        "Completed %s in %.0fms, extracted %s chars from %s pages",
        filename,
        (time.perf_counter() - started) * 1000,
        len(processed.content or ""),
        len(processed.pages),
    )
    return processed


async def process_document_async(
    buffer: bytes, filename: str, mime_type: Optional[str]
) -> ProcessedDocument:
    return await asyncio.to_thread(process_document, buffer, filename, mime_type)
