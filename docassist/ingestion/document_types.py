"""Supported document types and extension lookups."""

from __future__ import annotations

from pathlib import PurePath
from typing import Dict, FrozenSet, Optional

PDF_TYPES: FrozenSet[str] = frozenset({"application/pdf", "application/x-pdf"})
TEXT_TYPES: FrozenSet[str] = frozenset(
    {"text/plain", "text/markdown", "text/csv", "text/html", "text/css"}
)
CODE_TYPES: FrozenSet[str] = frozenset(
    {
        "text/javascript",
        "application/json",
        "application/typescript",
        "text/x-python",
        "text/x-java",
        "text/x-c",
        "text/x-c++",
        "text/x-csharp",
        "text/x-golang",
        "text/x-ruby",
        "text/x-php",
        "application/x-sh",
        "text/x-tex",
    }
)
# Recognised, but text extraction is not implemented for them.
OFFICE_TYPES: FrozenSet[str] = frozenset(
    {
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.openxmlformats-officedocument.presentationml.presentation",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    }
)

EXTENSION_TYPES: Dict[str, str] = {
    "pdf": "application/pdf",
    "txt": "text/plain",
    "md": "text/markdown",
    "csv": "text/csv",
    "html": "text/html",
    "css": "text/css",
    "js": "text/javascript",
    "jsx": "text/javascript",
    "ts": "application/typescript",
    "tsx": "application/typescript",
    "json": "application/json",
    "py": "text/x-python",
    "java": "text/x-java",
    "c": "text/x-c",
    "cpp": "text/x-c++",
    "cs": "text/x-csharp",
    "go": "text/x-golang",
    "rb": "text/x-ruby",
    "php": "text/x-php",
    "sh": "application/x-sh",
    "tex": "text/x-tex",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


def normalize_mime_type(mime_type: Optional[str]) -> str:
    """Lowercase and drop parameters such as ``; charset=utf-8``."""
    if not mime_type:
        return ""
    return mime_type.split(";", 1)[0].strip().lower()


def is_pdf(mime_type: Optional[str]) -> bool:
    return normalize_mime_type(mime_type) in PDF_TYPES


def is_text(mime_type: Optional[str]) -> bool:
    normalized = normalize_mime_type(mime_type)
    return normalized in TEXT_TYPES or normalized in CODE_TYPES


def is_office(mime_type: Optional[str]) -> bool:
    return normalize_mime_type(mime_type) in OFFICE_TYPES


def is_processable_document(mime_type: Optional[str]) -> bool:
    return is_pdf(mime_type) or is_text(mime_type)


def is_processable_extension(extension: str) -> bool:
    ext = extension.lower().lstrip(".")
    mime_type = EXTENSION_TYPES.get(ext)
    return mime_type is not None and is_processable_document(mime_type)


def guess_mime_type(filename: str) -> Optional[str]:
    suffix = PurePath(filename).suffix.lower().lstrip(".")
    return EXTENSION_TYPES.get(suffix)
