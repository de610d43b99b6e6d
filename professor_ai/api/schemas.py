"""
API Request/Response Models (Pydantic Schemas)

Defines data validation and serialization for FastAPI endpoints.
"""

from typing import List, Dict, Any, Optional
from pydantic import BaseModel, Field
from datetime import datetime, timezone

from ..agent.prompts import LearnerProfile


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Document Models
class DocumentResponse(BaseModel):
    """Knowledge-base document (without its embedding)"""

    id: str = Field(..., description="Document identifier")
    title: str = Field(..., description="Document title")
    content: str = Field(..., description="Document text")
    topic: Optional[str] = Field(None, description="Topic label")
    owner_id: Optional[str] = Field(None, description="Creating user (null for system documents)")
    is_public: bool = Field(..., description="Visible to every user")
    source: str = Field(..., description="user_upload or system_generated")
    tags: List[str] = Field(default_factory=list)
    syllabus_id: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    has_embedding: bool = Field(..., description="Whether the embedding has been computed")
    usage_count: int = Field(..., description="Times returned by a retrieval")
    last_used_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DocumentListResponse(BaseModel):
    """List of documents"""

    documents: List[DocumentResponse]
    total: int = Field(..., description="Number of documents returned")


class SearchResultItem(BaseModel):
    """One retrieval result"""

    document: DocumentResponse
    similarity: float = Field(..., description="Cosine similarity to the query")


class SemanticSearchResponse(BaseModel):
    """Response model for document search"""

    success: bool = Field(..., description="Whether search succeeded")
    query: str = Field(..., description="Original query")
    results: List[SearchResultItem] = Field(default_factory=list)
    results_count: int = Field(..., description="Number of results")
    candidates_count: int = Field(..., description="Documents considered after filtering")
    degraded: bool = Field(
        ...,
        description="True when the query embedding was a fallback vector"
    )


class SyllabusDocumentsResponse(BaseModel):
    """Documents generated from a syllabus"""

    syllabus_title: str
    documents: List[DocumentResponse]
    total: int


# Tutoring Models
class ChatRequest(BaseModel):
    """Request model for a tutoring turn"""

    message: str = Field(
        ...,
        min_length=1,
        max_length=4000,
        description="The learner's message",
        examples=["Can you explain the chain rule?"]
    )
    topic: Optional[str] = Field(None, description="Current session topic")
    use_rag: bool = Field(default=True, description="Ground the answer in knowledge-base documents")
    profile: Optional[LearnerProfile] = Field(None, description="Learner profile for personalization")


class CitedDocument(BaseModel):
    """Document cited in a tutor answer"""

    label: str = Field(..., description="Citation label, e.g. [Document 1]")
    id: str
    title: str
    topic: Optional[str] = None


class ChatResponse(BaseModel):
    """Response model for a tutoring turn"""

    response: str = Field(..., description="Tutor answer")
    documents: List[CitedDocument] = Field(default_factory=list)
    retrieval_degraded: bool = Field(..., description="Query embedding was a fallback vector")
    llm_available: bool = Field(..., description="False when a fallback answer was returned")
    execution_time_ms: int = Field(..., description="Total execution time in milliseconds")


# Health Check
class HealthResponse(BaseModel):
    """Health check response"""

    status: str = Field(..., description="Service status", examples=["healthy"])
    database: str = Field(..., description="Database connection status", examples=["connected"])
    embeddings: str = Field(..., description="Embedding endpoint status", examples=["reachable"])
    llm: str = Field(..., description="LLM provider status", examples=["configured"])
    version: str = Field(..., description="API version", examples=["0.1.0"])
    timestamp: datetime = Field(default_factory=_utcnow, description="Current server time")


# Error Response
class ErrorResponse(BaseModel):
    """Standard error response"""

    detail: str = Field(..., description="Error message")
    error_code: Optional[str] = Field(None, description="Error code for client handling")
    timestamp: datetime = Field(default_factory=_utcnow)
