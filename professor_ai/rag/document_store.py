"""
Document Store

Persistence collaborator for the retrieval subsystem.

Implementations:
- SQLDocumentStore: SQLAlchemy-backed `documents` table (production)
- InMemoryDocumentStore: dict-backed store (development/testing)

Both expose the same async interface. The SQL store runs its blocking
session work in the Starlette thread pool so retrievals do not block the
event loop.
"""

import copy
import logging
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Protocol, runtime_checkable

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import case, or_, select, update
from sqlalchemy.orm import Session

from ..db.models import DocumentRecord
from .documents import Document, DocumentFilter

logger = logging.getLogger(__name__)


@runtime_checkable
class DocumentStore(Protocol):
    """Contract between the retrieval subsystem and document storage."""

    async def find(self, doc_filter: DocumentFilter) -> List[Document]:
        """Return all documents matching the filter."""
        ...

    async def get(self, document_id: str) -> Optional[Document]:
        """Return a document by id, or None."""
        ...

    async def save(self, document: Document) -> Document:
        """Insert or update a document."""
        ...

    async def update_embedding(self, document_id: str, embedding: List[float]) -> None:
        """Set the embedding of a document without touching any other field."""
        ...

    async def update_usage(self, document_id: str, used_at: datetime) -> None:
        """Increment usage_count and advance last_used_at."""
        ...

    async def delete(self, document_id: str) -> bool:
        """Delete a document. Returns False if it did not exist."""
        ...


class InMemoryDocumentStore:
    """
    In-memory document store for development/testing.

    Returns copies so callers observe the same write-back semantics as
    with a real database.
    """

    def __init__(self, documents: Optional[List[Document]] = None):
        self._documents: Dict[str, Document] = {}
        for doc in documents or []:
            self._documents[doc.id] = copy.deepcopy(doc)

    async def find(self, doc_filter: DocumentFilter) -> List[Document]:
        return [
            copy.deepcopy(doc)
            for doc in self._documents.values()
            if doc_filter.matches(doc)
        ]

    async def get(self, document_id: str) -> Optional[Document]:
        doc = self._documents.get(document_id)
        return copy.deepcopy(doc) if doc else None

    async def save(self, document: Document) -> Document:
        self._documents[document.id] = copy.deepcopy(document)
        return document

    async def update_embedding(self, document_id: str, embedding: List[float]) -> None:
        doc = self._documents.get(document_id)
        if doc is None:
            raise KeyError(f"Document not found: {document_id}")
        doc.embedding = list(embedding)

    async def update_usage(self, document_id: str, used_at: datetime) -> None:
        doc = self._documents.get(document_id)
        if doc is None:
            raise KeyError(f"Document not found: {document_id}")
        doc.usage_count += 1
        if doc.last_used_at is None or used_at > doc.last_used_at:
            doc.last_used_at = used_at

    async def delete(self, document_id: str) -> bool:
        return self._documents.pop(document_id, None) is not None

    def __len__(self) -> int:
        return len(self._documents)


class SQLDocumentStore:
    """Document store backed by the SQLAlchemy `documents` table."""

    def __init__(self, session_factory: Callable[[], Session]):
        """
        Initialize SQL store.

        Args:
            session_factory: Callable returning a new SQLAlchemy session
                (e.g. db.session.SessionLocal)
        """
        self._session_factory = session_factory

    async def find(self, doc_filter: DocumentFilter) -> List[Document]:
        return await run_in_threadpool(self._find, doc_filter)

    async def get(self, document_id: str) -> Optional[Document]:
        return await run_in_threadpool(self._get, document_id)

    async def save(self, document: Document) -> Document:
        return await run_in_threadpool(self._save, document)

    async def update_embedding(self, document_id: str, embedding: List[float]) -> None:
        await run_in_threadpool(self._update_embedding, document_id, embedding)

    async def update_usage(self, document_id: str, used_at: datetime) -> None:
        await run_in_threadpool(self._update_usage, document_id, used_at)

    async def delete(self, document_id: str) -> bool:
        return await run_in_threadpool(self._delete, document_id)

    def _find(self, doc_filter: DocumentFilter) -> List[Document]:
        stmt = select(DocumentRecord)

        if doc_filter.topic is not None:
            stmt = stmt.where(DocumentRecord.topic == doc_filter.topic)
        if doc_filter.owner_id is not None:
            stmt = stmt.where(DocumentRecord.owner_id == doc_filter.owner_id)
        if doc_filter.user_id is not None:
            stmt = stmt.where(
                or_(
                    DocumentRecord.owner_id == doc_filter.user_id,
                    DocumentRecord.is_public.is_(True),
                )
            )

        with self._session_factory() as session:
            records = session.scalars(stmt).all()
            return [_to_document(record) for record in records]

    def _get(self, document_id: str) -> Optional[Document]:
        with self._session_factory() as session:
            record = session.get(DocumentRecord, document_id)
            return _to_document(record) if record else None

    def _save(self, document: Document) -> Document:
        now = datetime.now(timezone.utc)
        if document.created_at is None:
            document.created_at = now
        document.updated_at = now

        with self._session_factory() as session:
            record = session.get(DocumentRecord, document.id)
            if record is None:
                record = DocumentRecord(id=document.id)
                session.add(record)
            _apply(record, document)
            session.commit()

        return document

    def _update_embedding(self, document_id: str, embedding: List[float]) -> None:
        stmt = (
            update(DocumentRecord)
            .where(DocumentRecord.id == document_id)
            .values(embedding=list(embedding), updated_at=datetime.now(timezone.utc))
        )

        with self._session_factory() as session:
            result = session.execute(stmt)
            session.commit()

        if result.rowcount == 0:
            raise KeyError(f"Document not found: {document_id}")

    def _update_usage(self, document_id: str, used_at: datetime) -> None:
        stmt = (
            update(DocumentRecord)
            .where(DocumentRecord.id == document_id)
            .values(
                usage_count=DocumentRecord.usage_count + 1,
                last_used_at=case(
                    (
                        or_(
                            DocumentRecord.last_used_at.is_(None),
                            DocumentRecord.last_used_at < used_at,
                        ),
                        used_at,
                    ),
                    else_=DocumentRecord.last_used_at,
                ),
            )
        )

        with self._session_factory() as session:
            result = session.execute(stmt)
            session.commit()

        if result.rowcount == 0:
            raise KeyError(f"Document not found: {document_id}")

    def _delete(self, document_id: str) -> bool:
        with self._session_factory() as session:
            record = session.get(DocumentRecord, document_id)
            if record is None:
                return False
            session.delete(record)
            session.commit()
            return True


def _to_document(record: DocumentRecord) -> Document:
    return Document(
        id=record.id,
        title=record.title,
        content=record.content,
        topic=record.topic,
        owner_id=record.owner_id,
        is_public=record.is_public,
        embedding=list(record.embedding) if record.embedding else None,
        usage_count=record.usage_count or 0,
        last_used_at=record.last_used_at,
        source=record.source,
        tags=list(record.tags or []),
        syllabus_id=record.syllabus_id,
        metadata=dict(record.doc_metadata or {}),
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def _apply(record: DocumentRecord, document: Document) -> None:
    record.title = document.title
    record.content = document.content
    record.topic = document.topic
    record.owner_id = document.owner_id
    record.is_public = document.is_public
    record.embedding = list(document.embedding) if document.embedding else None
    record.usage_count = document.usage_count
    record.last_used_at = document.last_used_at
    record.source = document.source
    record.tags = list(document.tags)
    record.syllabus_id = document.syllabus_id
    record.doc_metadata = dict(document.metadata)
    record.created_at = document.created_at
    record.updated_at = document.updated_at


def get_document_store(backend: str = "database") -> DocumentStore:
    """
    Factory function to get the appropriate document store.

    Args:
        backend: 'database' for the SQLAlchemy store, 'memory' for in-memory

    Returns:
        DocumentStore implementation
    """
    if backend == "memory":
        logger.info("Using in-memory document store")
        return InMemoryDocumentStore()

    if backend != "database":
        raise ValueError(f"Unknown corpus backend: {backend}")

    from ..db.session import SessionLocal
    logger.info("Using SQL document store")
    return SQLDocumentStore(SessionLocal)
