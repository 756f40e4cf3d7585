"""Document records keyed by conversation."""

from __future__ import annotations

import json
import logging
import re
import threading
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol

from docassist.config import Settings
from docassist.models.document import DocumentFile
from docassist.models.page import ProcessingStatus

logger = logging.getLogger(__name__)

CONVERSATION_ID_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class InvalidConversationId(ValueError):
    """Conversation id that cannot be used as a store file name."""


class DocumentStore(Protocol):
    def list_documents(
        self, conversation_id: str, status: Optional[ProcessingStatus] = "completed"
    ) -> List[DocumentFile]:
        """Documents of a conversation, most recent first."""

    def get(self, conversation_id: str, document_id: str) -> Optional[DocumentFile]:
        ...

    def add(self, document: DocumentFile) -> DocumentFile:
        ...

    def update(self, document: DocumentFile) -> DocumentFile:
        ...

    def delete_conversation(self, conversation_id: str) -> int:
        ...


def newest_first(
    documents: Iterable[DocumentFile], status: Optional[ProcessingStatus]
) -> List[DocumentFile]:
    ranked = [
        (document.created_at, position, document)
        for position, document in enumerate(documents)
        if status is None or document.processing_status == status
    ]
    ranked.sort(key=lambda item: (item[0], item[1]), reverse=True)
    return [document for _, _, document in ranked]


class InMemoryDocumentStore:
    """Process-local store, used by default and in tests."""

    def __init__(self) -> None:
        self._documents: Dict[str, List[DocumentFile]] = {}
        self._lock = threading.Lock()

    def list_documents(
        self, conversation_id: str, status: Optional[ProcessingStatus] = "completed"
    ) -> List[DocumentFile]:
        with self._lock:
            return newest_first(self._documents.get(conversation_id, []), status)

    def get(self, conversation_id: str, document_id: str) -> Optional[DocumentFile]:
        with self._lock:
            for document in self._documents.get(conversation_id, []):
                if document.id == document_id:
                    return document
        return None

    def add(self, document: DocumentFile) -> DocumentFile:
        with self._lock:
            self._documents.setdefault(document.conversation_id, []).append(document)
        return document

    def update(self, document: DocumentFile) -> DocumentFile:
        with self._lock:
            documents = self._documents.get(document.conversation_id, [])
            for index, existing in enumerate(documents):
                if existing.id == document.id:
                    documents[index] = document
                    return document
        raise KeyError(f"Unknown document {document.id}")

    def delete_conversation(self, conversation_id: str) -> int:
        with self._lock:
            return len(self._documents.pop(conversation_id, []))


class JsonlDocumentStore:
    """One JSON-lines file per conversation under ``directory``."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def _path(self, conversation_id: str) -> Path:
        if not CONVERSATION_ID_PATTERN.match(conversation_id):
            raise InvalidConversationId(f"Invalid conversation id: {conversation_id!r}")
        return self.directory / f"{conversation_id}.jsonl"

    def _read(self, conversation_id: str) -> List[DocumentFile]:
        path = self._path(conversation_id)
        if not path.exists():
            return []
        documents: List[DocumentFile] = []
        with path.open("r", encoding="utf-8") as handle:
            for line in handle:
                if line.strip():
                    documents.append(DocumentFile.model_validate(json.loads(line)))
        return documents

    def _write(self, conversation_id: str, documents: List[DocumentFile]) -> None:
        path = self._path(conversation_id)
        with path.open("w", encoding="utf-8") as handle:
            for document in documents:
                handle.write(json.dumps(document.model_dump(mode="json")) + "\n")
        logger.debug("Wrote %s document rows to %s", len(documents), path)

    def list_documents(
        self, conversation_id: str, status: Optional[ProcessingStatus] = "completed"
    ) -> List[DocumentFile]:
        with self._lock:
            return newest_first(self._read(conversation_id), status)

    def get(self, conversation_id: str, document_id: str) -> Optional[DocumentFile]:
        with self._lock:
            for document in self._read(conversation_id):
                if document.id == document_id:
                    return document
        return None

    def add(self, document: DocumentFile) -> DocumentFile:
        with self._lock:
            documents = self._read(document.conversation_id)
            documents.append(document)
            self._write(document.conversation_id, documents)
        return document

    def update(self, document: DocumentFile) -> DocumentFile:
        with self._lock:
            documents = self._read(document.conversation_id)
            for index, existing in enumerate(documents):
                if existing.id == document.id:
                    documents[index] = document
                    self._write(document.conversation_id, documents)
                    return document
        raise KeyError(f"Unknown document {document.id}")

    def delete_conversation(self, conversation_id: str) -> int:
        with self._lock:
            documents = self._read(conversation_id)
            self._path(conversation_id).unlink(missing_ok=True)
        return len(documents)


def create_document_store(config: Settings) -> DocumentStore:
    if config.store_backend == "jsonl":
        logger.info("Using JSONL document store at %s", config.documents_dir_path)
        return JsonlDocumentStore(config.documents_dir_path)
    return InMemoryDocumentStore()
