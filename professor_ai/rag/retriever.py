"""
Document Retriever

Orchestrates a retrieval:
1. Embed the query text
2. Select candidates by topic and visibility
3. Back-fill missing document embeddings (written back to the store)
4. Score, threshold, sort and truncate
5. Record usage statistics for the returned documents
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from .config import RAGConfig
from .document_store import DocumentStore
from .documents import Document, RetrievalQuery, RetrievalResult
from .embedding_service import EmbeddingOutcome, EmbeddingService
from .similarity import rank_documents

logger = logging.getLogger(__name__)


@dataclass
class RetrievalReport:
    """Results of a retrieval plus how they were obtained."""
    results: List[RetrievalResult]
    query_embedding: EmbeddingOutcome
    candidates_count: int = 0
    skipped_ids: List[str] = field(default_factory=list)
    backfilled_count: int = 0

    @property
    def degraded(self) -> bool:
        """True when the query vector was a fallback, not a real embedding."""
        return self.query_embedding.fallback

    @property
    def documents(self) -> List[Document]:
        return [r.document for r in self.results]


class DocumentRetriever:
    """Retrieves the documents most similar to a query."""

    def __init__(
        self,
        config: RAGConfig,
        embedding_service: EmbeddingService,
        document_store: DocumentStore
    ):
        """
        Initialize retriever with injected dependencies.

        Args:
            config: RAG configuration (defaults for limit/threshold)
            embedding_service: Embedding provider for queries and back-fill
            document_store: Document persistence
        """
        self.config = config
        self.embedding_service = embedding_service
        self.document_store = document_store

    def build_query(
        self,
        text: str,
        topic: Optional[str] = None,
        user_id: Optional[str] = None,
        limit: Optional[int] = None,
        threshold: Optional[float] = None
    ) -> RetrievalQuery:
        """Build a query, filling unspecified values from configuration."""
        return RetrievalQuery(
            text=text,
            topic=topic,
            user_id=user_id,
            limit=self.config.default_limit if limit is None else limit,
            threshold=self.config.score_threshold if threshold is None else threshold,
        )

    async def retrieve(self, query: RetrievalQuery) -> List[RetrievalResult]:
        """
        Retrieve documents for a query.

        Returns:
            At most `query.limit` results, each with similarity above
            `query.threshold`, ordered by similarity (ties by id)

        Raises:
            InvalidArgument: If limit or threshold are malformed
        """
        report = await self.search(query)
        return report.results

    async def search(self, query: RetrievalQuery) -> RetrievalReport:
        """Same as retrieve(), returning a RetrievalReport."""
        query.validate()
        start_time = time.time()

        query_embedding = await self.embedding_service.embed(query.text)

        candidates = await self.document_store.find(query.to_filter())
        if not candidates:
            logger.info(f"No candidate documents (topic={query.topic!r})")
            return RetrievalReport(results=[], query_embedding=query_embedding)

        scored_pairs, backfilled = await self._vectors_for(candidates)

        ranked, skipped = rank_documents(
            query_embedding.vector,
            scored_pairs,
            threshold=query.threshold
        )
        results = ranked[:query.limit]

        await self._record_usage(results)

        duration = (time.time() - start_time) * 1000
        logger.info(
            f"Retrieved {len(results)}/{len(candidates)} documents "
            f"(threshold={query.threshold}, limit={query.limit}, "
            f"degraded={query_embedding.fallback}) in {duration:.0f}ms"
        )

        return RetrievalReport(
            results=results,
            query_embedding=query_embedding,
            candidates_count=len(candidates),
            skipped_ids=skipped,
            backfilled_count=backfilled,
        )

    async def _vectors_for(
        self,
        candidates: List[Document]
    ) -> Tuple[List[Tuple[Document, List[float]]], int]:
        """
        Pair every candidate with the vector to score it by.

        Missing embeddings are computed concurrently, at most
        `embedding_concurrency` at a time. Real embeddings are written back
        to the store; fallback vectors are used for this request only.
        Documents whose embedding could not be computed at all are left out.
        """
        missing = [doc for doc in candidates if not doc.has_embedding]
        if not missing:
            return [(doc, doc.embedding) for doc in candidates], 0

        logger.info(f"Back-filling embeddings for {len(missing)} documents")
        semaphore = asyncio.Semaphore(self.config.embedding_concurrency)
        outcomes = await asyncio.gather(
            *(self._backfill(doc, semaphore) for doc in missing),
            return_exceptions=True
        )

        vectors = {}
        persisted = 0
        for doc, outcome in zip(missing, outcomes):
            if isinstance(outcome, Exception):
                logger.error(f"Failed to embed document {doc.id}: {outcome}")
                continue
            embedding, stored = outcome
            vectors[doc.id] = embedding.vector
            persisted += stored

        pairs = [
            (doc, vectors[doc.id] if doc.id in vectors else doc.embedding)
            for doc in candidates
            if doc.has_embedding or doc.id in vectors
        ]
        return pairs, persisted

    async def _backfill(
        self,
        doc: Document,
        semaphore: asyncio.Semaphore
    ) -> Tuple[EmbeddingOutcome, bool]:
        """Embed one document; returns the outcome and whether it was stored."""
        async with semaphore:
            outcome = await self.embedding_service.embed(doc.content)

        if outcome.fallback:
            logger.warning(f"Not persisting fallback embedding for document {doc.id}")
            return outcome, False

        doc.embedding = outcome.vector
        try:
            await self.document_store.update_embedding(doc.id, outcome.vector)
        except Exception as e:
            logger.error(f"Failed to store embedding for document {doc.id}: {e}")
            return outcome, False
        return outcome, True

    async def _record_usage(self, results: List[RetrievalResult]) -> None:
        """Update usage statistics; failures are logged, never raised."""
        if not results:
            return

        used_at = datetime.now(timezone.utc)
        outcomes = await asyncio.gather(
            *(self.document_store.update_usage(r.document.id, used_at) for r in results),
            return_exceptions=True
        )

        for result, outcome in zip(results, outcomes):
            if isinstance(outcome, Exception):
                logger.error(f"Failed to update usage for document {result.document.id}: {outcome}")
