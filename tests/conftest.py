"""Pytest configuration and shared fixtures."""

import math
from pathlib import Path
from typing import Dict, List, Optional

import httpx
import numpy as np
import pytest

from professor_ai.rag import Document, EmbeddingOutcome, EmbeddingService, RAGConfig
from professor_ai.rag.document_store import InMemoryDocumentStore


class StubEmbeddingService:
    """
    Embedding service double.

    Texts listed in `vectors` embed to that vector. Any other text embeds to
    a fallback vector when `available` is False, and to `default` otherwise.
    """

    def __init__(
        self,
        vectors: Optional[Dict[str, List[float]]] = None,
        dimension: int = 2,
        available: bool = True,
        default: Optional[List[float]] = None
    ):
        self.vectors = dict(vectors or {})
        self.dimension = dimension
        self.available = available
        self.default = default or [0.0] * dimension
        self.calls: List[str] = []
        self.closed = False

    async def embed(self, text: str) -> EmbeddingOutcome:
        self.calls.append(text)
        if not self.available:
            return EmbeddingOutcome(
                vector=[0.5] * self.dimension,
                fallback=True,
                reason="connection refused"
            )
        return EmbeddingOutcome(vector=list(self.vectors.get(text, self.default)))

    async def embed_text(self, text: str) -> List[float]:
        outcome = await self.embed(text)
        return outcome.vector

    async def aclose(self) -> None:
        self.closed = True


def unit_vector(cosine: float) -> List[float]:
    """2-d unit vector whose cosine similarity with [1, 0] is `cosine`."""
    return [cosine, math.sqrt(1.0 - cosine ** 2)]


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def rag_config():
    """Small-dimension configuration using the in-memory corpus."""
    return RAGConfig(
        embedding_api_url="http://embeddings.test",
        embedding_dimension=2,
        top_k=3,
        citation_top_k=5,
        score_threshold=0.7,
        use_citations=True,
        corpus_backend="memory",
    )


@pytest.fixture
def make_document():
    """Factory for documents with sensible defaults."""
    def _make(doc_id: str, **kwargs) -> Document:
        kwargs.setdefault("title", f"Title {doc_id}")
        kwargs.setdefault("content", f"Content of {doc_id}")
        return Document(id=doc_id, **kwargs)
    return _make


@pytest.fixture
def ranked_corpus(make_document):
    """Three documents scoring 0.9, 0.75 and 0.6 against the query [1, 0]."""
    return InMemoryDocumentStore([
        make_document("d1", topic="Calculus", embedding=unit_vector(0.9)),
        make_document("d2", topic="Calculus", embedding=unit_vector(0.75)),
        make_document("d3", topic="Calculus", embedding=unit_vector(0.6)),
    ])


@pytest.fixture(name="unit_vector")
def unit_vector_fixture():
    """The unit_vector helper, for tests that build their own corpus."""
    return unit_vector


@pytest.fixture
def stub_embeddings():
    """Factory for StubEmbeddingService instances."""
    return StubEmbeddingService


@pytest.fixture
def outage_config():
    """Realistic-dimension configuration for embedding outage scenarios."""
    return RAGConfig(
        embedding_api_url="http://embeddings.test",
        embedding_dimension=384,
        corpus_backend="memory",
    )


@pytest.fixture
def unavailable_embeddings(outage_config):
    """Real EmbeddingService whose provider answers every request with 503."""
    client = httpx.AsyncClient(
        base_url=outage_config.embedding_api_url,
        transport=httpx.MockTransport(lambda request: httpx.Response(503, text="unavailable"))
    )
    return EmbeddingService(outage_config, client=client, rng=np.random.default_rng(7))
