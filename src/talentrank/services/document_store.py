"""
Document ingestion boundary.

Storage hands out loosely typed rows; everything past this module works
with validated Document snapshots.
"""

import threading
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Union, runtime_checkable

from pydantic import ValidationError as PydanticValidationError

from talentrank.core.exceptions import ValidationError
from talentrank.core.logging import logger
from talentrank.models.document import Document

# Column names used by the storage collaborator
_FIELD_ALIASES = {
    "content": "text",
    "filename": "source_ref",
    "user_id": "scope_key",
}
_DOCUMENT_FIELDS = ("id", "scope_key", "text", "embedding", "source_ref")


@runtime_checkable
class DocumentSource(Protocol):
    """Read-only access to the documents of one scope."""

    async def list_documents(self, scope_key: str) -> List[Document]: ...


def coerce_document(record: Union[Document, Mapping[str, Any]]) -> Document:
    """
    Turn a storage row into a Document.

    Raises:
        ValidationError: If id, scope or text is missing or invalid
    """
    if isinstance(record, Document):
        return record
    if not isinstance(record, Mapping):
        raise ValidationError(
            f"Unsupported document record type: {type(record).__name__}",
            context={"field": "record", "reason": "type"},
        )

    data: Dict[str, Any] = {}
    for key, value in record.items():
        name = _FIELD_ALIASES.get(key, key)
        if name in _DOCUMENT_FIELDS and name not in data:
            data[name] = value

    try:
        return Document(**data)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or "record"
        raise ValidationError(
            f"Invalid document record: {field}: {first.get('msg')}",
            context={"field": field, "reason": first.get("type"), "document_id": data.get("id")},
            cause=e,
        )


class InMemoryDocumentStore:
    """
    Process-local DocumentSource.

    Insertion order is preserved per scope, which keeps ranking ties
    deterministic. Adding a document with an existing id replaces it.
    """

    def __init__(self, documents: Optional[Iterable[Union[Document, Mapping[str, Any]]]] = None):
        self._documents: Dict[str, Document] = {}
        self._lock = threading.Lock()
        if documents is not None:
            self.add_many(documents)

    def add(self, record: Union[Document, Mapping[str, Any]]) -> Document:
        document = coerce_document(record)
        with self._lock:
            self._documents[document.id] = document
        return document

    def add_many(self, records: Iterable[Union[Document, Mapping[str, Any]]]) -> List[Document]:
        """Add valid records; invalid ones are logged and skipped."""
        added: List[Document] = []
        rejected = 0
        for record in records:
            try:
                added.append(self.add(record))
            except ValidationError as e:
                rejected += 1
                logger.warning("Rejected document record", error=e.message, **e.context)
        if rejected:
            logger.info("Document ingestion finished", added=len(added), rejected=rejected)
        return added

    def get(self, document_id: str) -> Optional[Document]:
        with self._lock:
            return self._documents.get(document_id)

    async def list_documents(self, scope_key: str) -> List[Document]:
        with self._lock:
            return [doc for doc in self._documents.values() if doc.scope_key == scope_key]

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)
