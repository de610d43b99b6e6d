"""
RAG System Configuration

Centralized configuration for all retrieval components including:
- Embedding endpoint settings
- Retrieval parameters (limits, threshold)
- Prompt composition mode
- Corpus backend selection
"""

import os
from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings


class RAGConfig(BaseSettings):
    """Configuration for RAG system."""

    # Embedding endpoint
    embedding_api_url: str = Field(
        default="http://localhost:11434",
        description="Base URL of the embedding API"
    )
    embedding_endpoint_path: str = Field(
        default="/api/embeddings",
        description="Path of the embedding endpoint relative to the base URL"
    )
    embedding_model: str = Field(
        default="llama3",
        description="Model name sent with every embedding request"
    )
    embedding_api_key: Optional[str] = Field(
        default=None,
        description="Bearer key for the embedding API (if required)"
    )
    embedding_dimension: int = Field(
        default=384,
        description="Dimension of embedding vectors for the whole corpus"
    )
    embedding_timeout: float = Field(
        default=5.0,
        description="Seconds to wait for the embedding API before falling back"
    )
    embedding_concurrency: int = Field(
        default=8,
        ge=1,
        description="Maximum concurrent embedding requests while back-filling documents"
    )

    # Retrieval
    top_k: int = Field(
        default=3,
        description="Number of documents retrieved for plain prompts"
    )
    citation_top_k: int = Field(
        default=5,
        description="Number of documents retrieved for citation-labeled prompts"
    )
    score_threshold: float = Field(
        default=0.7,
        description="Similarity a document must exceed to be retrieved"
    )

    # Prompt composition
    use_citations: bool = Field(
        default=True,
        description="Label retrieved documents as [Document k] and ask for citations"
    )

    # Corpus
    corpus_backend: str = Field(
        default="database",
        description="Where documents live: 'database' (SQLAlchemy) or 'memory'"
    )
    embed_on_ingest: bool = Field(
        default=False,
        description="Embed documents when they are added instead of on first retrieval"
    )

    class Config:
        env_prefix = "RAG_"
        case_sensitive = False

    @property
    def default_limit(self) -> int:
        """Retrieval limit matching the configured prompt mode."""
        return self.citation_top_k if self.use_citations else self.top_k


def get_rag_config() -> RAGConfig:
    """Get RAG configuration from environment."""
    # Plain EMBEDDING_* variables take precedence over RAG_EMBEDDING_*
    overrides = {}
    if os.getenv("EMBEDDING_API_URL"):
        overrides["embedding_api_url"] = os.getenv("EMBEDDING_API_URL")
    if os.getenv("EMBEDDING_MODEL"):
        overrides["embedding_model"] = os.getenv("EMBEDDING_MODEL")
    if os.getenv("EMBEDDING_API_KEY"):
        overrides["embedding_api_key"] = os.getenv("EMBEDDING_API_KEY")
    return RAGConfig(**overrides)
