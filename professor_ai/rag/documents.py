"""
Retrieval Data Types

Documents as seen by the retrieval subsystem, plus the ephemeral query
and result records that flow through a retrieval.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .exceptions import InvalidArgument

SOURCE_USER_UPLOAD = "user_upload"
SOURCE_SYSTEM_GENERATED = "system_generated"


@dataclass
class Document:
    """A knowledge-base document and its (lazily computed) embedding."""
    id: str
    title: str
    content: str
    topic: Optional[str] = None
    owner_id: Optional[str] = None
    is_public: bool = False
    embedding: Optional[List[float]] = None
    usage_count: int = 0
    last_used_at: Optional[datetime] = None
    source: str = SOURCE_USER_UPLOAD
    tags: List[str] = field(default_factory=list)
    syllabus_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def has_embedding(self) -> bool:
        return bool(self.embedding)

    def is_visible_to(self, user_id: Optional[str]) -> bool:
        """Owners see their own documents; everyone sees public ones."""
        if user_id is None:
            return True
        return self.owner_id == user_id or self.is_public


@dataclass
class DocumentFilter:
    """
    Candidate selection for a document store lookup.

    topic:    exact-match topic label
    user_id:  acting user; restricts to owned or public documents
    owner_id: exact owner match (listing a user's own documents)
    """
    topic: Optional[str] = None
    user_id: Optional[str] = None
    owner_id: Optional[str] = None

    def matches(self, doc: Document) -> bool:
        if self.topic is not None and doc.topic != self.topic:
            return False
        if self.owner_id is not None and doc.owner_id != self.owner_id:
            return False
        return doc.is_visible_to(self.user_id)


@dataclass
class RetrievalQuery:
    """A single retrieval request."""
    text: str
    topic: Optional[str] = None
    user_id: Optional[str] = None
    limit: int = 3
    threshold: float = 0.7

    def validate(self) -> None:
        """Raise InvalidArgument for a malformed limit or threshold."""
        if isinstance(self.limit, bool) or not isinstance(self.limit, int):
            raise InvalidArgument(f"limit must be an integer, got {self.limit!r}")
        if self.limit < 1:
            raise InvalidArgument(f"limit must be at least 1, got {self.limit}")
        if isinstance(self.threshold, bool) or not isinstance(self.threshold, (int, float)):
            raise InvalidArgument(f"threshold must be a number, got {self.threshold!r}")
        if not 0.0 <= self.threshold <= 1.0:
            raise InvalidArgument(
                f"threshold must be between 0 and 1, got {self.threshold}"
            )

    def to_filter(self) -> DocumentFilter:
        return DocumentFilter(topic=self.topic, user_id=self.user_id)


@dataclass
class RetrievalResult:
    """A retrieved document with its cosine similarity to the query."""
    document: Document
    similarity: float
