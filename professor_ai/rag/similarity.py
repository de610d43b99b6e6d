"""
Similarity Ranking

Cosine similarity between embedding vectors, and ranking of a corpus
against a query vector.
"""

import logging
from typing import Iterable, List, Sequence, Tuple

import numpy as np

from .documents import Document, RetrievalResult
from .exceptions import DimensionMismatch

logger = logging.getLogger(__name__)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Calculate cosine similarity between two vectors.

    Args:
        a: First vector
        b: Second vector

    Returns:
        dot(a, b) / (|a| * |b|), or 0.0 if either vector has zero magnitude

    Raises:
        DimensionMismatch: If the vectors have different lengths
    """
    vec_a = np.asarray(a, dtype=np.float64)
    vec_b = np.asarray(b, dtype=np.float64)

    if vec_a.shape != vec_b.shape:
        raise DimensionMismatch(vec_a.size, vec_b.size)

    norm_a = np.linalg.norm(vec_a)
    norm_b = np.linalg.norm(vec_b)

    if norm_a == 0 or norm_b == 0:
        return 0.0

    return float(np.dot(vec_a, vec_b) / (norm_a * norm_b))


def sort_results(results: Iterable[RetrievalResult]) -> List[RetrievalResult]:
    """Order by similarity descending, then document id ascending."""
    return sorted(results, key=lambda r: (-r.similarity, r.document.id))


def rank_documents(
    query_vector: Sequence[float],
    documents: Iterable[Tuple[Document, Sequence[float]]],
    threshold: float,
) -> Tuple[List[RetrievalResult], List[str]]:
    """
    Score documents against a query vector.

    Args:
        query_vector: Embedding of the query
        documents: (document, vector) pairs; the vector is used for scoring
        threshold: Similarity a document must strictly exceed

    Returns:
        (sorted results above threshold, ids of documents skipped because
        their vector dimension does not match the query)
    """
    results = []
    skipped = []

    for doc, vector in documents:
        try:
            similarity = cosine_similarity(query_vector, vector)
        except DimensionMismatch as e:
            logger.error(f"Skipping document {doc.id}: {e}")
            skipped.append(doc.id)
            continue

        if similarity > threshold:
            results.append(RetrievalResult(document=doc, similarity=similarity))

    return sort_results(results), skipped
