"""SQLAlchemy database models for the knowledge base."""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class DocumentRecord(Base):
    """
    Knowledge-base document.

    The embedding is stored as a JSON array and filled in lazily the first
    time a retrieval touches the document.
    """
    __tablename__ = "documents"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    # Filtering
    topic: Mapped[Optional[str]] = mapped_column(String(200), nullable=True, index=True)
    owner_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Retrieval
    embedding: Mapped[Optional[List[float]]] = mapped_column(JSON, nullable=True)
    usage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_used_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Provenance
    source: Mapped[str] = mapped_column(String(30), nullable=False, default="user_upload")
    tags: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    syllabus_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    doc_metadata: Mapped[dict] = mapped_column("metadata", JSON, nullable=False, default=dict)

    created_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("usage_count >= 0", name="check_usage_count_positive"),
        Index("ix_documents_topic_public", "topic", "is_public"),
    )

    def __repr__(self) -> str:
        return f"<DocumentRecord(id={self.id}, title={self.title!r}, topic={self.topic})>"
