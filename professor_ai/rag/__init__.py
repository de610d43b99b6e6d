"""
RAG (Retrieval Augmented Generation) System

Grounds tutor answers in the Professor AI knowledge base.

Components:
- embedding_service: Converts text to vectors via an HTTP embedding API
- similarity: Cosine similarity and ranking
- document_store: SQL and in-memory document persistence
- retriever: Filtered, thresholded retrieval with lazy embedding back-fill
- prompt_composer: Builds citation-labeled prompts
- service: enhance_prompt_with_rag() and ingestion
"""

from .config import RAGConfig, get_rag_config
from .documents import Document, DocumentFilter, RetrievalQuery, RetrievalResult
from .embedding_service import EmbeddingOutcome, EmbeddingService
from .exceptions import DimensionMismatch, InvalidArgument, ProviderUnavailable, RAGError
from .prompt_composer import ComposedPrompt, compose_prompt
from .retriever import DocumentRetriever, RetrievalReport
from .service import BackfillReport, EnhancedPrompt, RAGService, get_rag_service
from .similarity import cosine_similarity

__all__ = [
    "RAGConfig",
    "get_rag_config",
    "Document",
    "DocumentFilter",
    "RetrievalQuery",
    "RetrievalResult",
    "EmbeddingOutcome",
    "EmbeddingService",
    "RAGError",
    "ProviderUnavailable",
    "DimensionMismatch",
    "InvalidArgument",
    "ComposedPrompt",
    "compose_prompt",
    "DocumentRetriever",
    "RetrievalReport",
    "BackfillReport",
    "EnhancedPrompt",
    "RAGService",
    "get_rag_service",
    "cosine_similarity",
]
