"""
Embedding Service

Generates vector embeddings for text by calling an HTTP embedding API.

Request:  POST {embedding_api_url}{embedding_endpoint_path}
          {"model": ..., "input": ..., "encoding_format": "float"}
Response: {"data": [{"embedding": [...]}]}  (OpenAI-compatible)
          {"embedding": [...]}              (Ollama-style, also accepted)

When the API is unreachable, times out, answers with a non-2xx status or
returns an unusable vector, a pseudo-random vector of the configured
dimension (zero-mean, see fallback_vector) is returned instead. The outcome
records whether that happened.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

import httpx
import numpy as np

from .config import RAGConfig
from .exceptions import ProviderUnavailable

logger = logging.getLogger(__name__)


@dataclass
class EmbeddingOutcome:
    """
    Result of an embedding request.

    fallback=False: vector came from the embedding API (or is the zero
    vector for blank text).
    fallback=True:  vector is pseudo-random; reason says why.
    """
    vector: List[float]
    fallback: bool = False
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return not self.fallback


class EmbeddingService:
    """Service for generating text embeddings."""

    def __init__(
        self,
        config: RAGConfig,
        client: Optional[httpx.AsyncClient] = None,
        rng: Optional[np.random.Generator] = None
    ):
        """
        Initialize embedding service.

        Args:
            config: RAG configuration
            client: HTTP client (created from config if not provided)
            rng: Random generator used for fallback vectors
        """
        self.config = config
        self.model_name = config.embedding_model
        self.dimension = config.embedding_dimension
        self._rng = rng or np.random.default_rng()

        headers = {"Content-Type": "application/json"}
        if config.embedding_api_key:
            headers["Authorization"] = f"Bearer {config.embedding_api_key}"

        self._client = client or httpx.AsyncClient(
            base_url=config.embedding_api_url,
            headers=headers,
            timeout=config.embedding_timeout,
        )

        logger.info(f"Embedding endpoint: {config.embedding_api_url}{config.embedding_endpoint_path}")
        logger.info(f"Embedding model: {self.model_name} ({self.dimension} dims)")

    async def embed(self, text: str) -> EmbeddingOutcome:
        """
        Generate embedding for a single text.

        Never raises: provider failures produce a fallback outcome.

        Args:
            text: Text to embed

        Returns:
            EmbeddingOutcome with a vector of exactly `dimension` floats
        """
        if not text or not text.strip():
            return EmbeddingOutcome(vector=[0.0] * self.dimension)

        try:
            vector = await self._request_embedding(text)
        except ProviderUnavailable as e:
            logger.warning(f"Embedding provider unavailable, using fallback vector: {e}")
            return EmbeddingOutcome(
                vector=self.fallback_vector(),
                fallback=True,
                reason=str(e)
            )

        return EmbeddingOutcome(vector=vector)

    async def embed_text(self, text: str) -> List[float]:
        """Generate embedding and return only the vector."""
        outcome = await self.embed(text)
        return outcome.vector

    def fallback_vector(self) -> List[float]:
        """
        Pseudo-random vector of the configured dimension.

        Components are standard normal, so a fallback vector is close to
        orthogonal to any unrelated vector and scores near 0.
        """
        return self._rng.standard_normal(self.dimension).tolist()

    async def _request_embedding(self, text: str) -> List[float]:
        """
        Call the embedding API.

        Raises:
            ProviderUnavailable: On transport errors, timeouts, non-2xx
                responses, malformed bodies or wrong-length vectors
        """
        payload = {
            "model": self.model_name,
            "input": text,
            "encoding_format": "float",
        }

        try:
            response = await self._client.post(
                self.config.embedding_endpoint_path,
                json=payload
            )
            response.raise_for_status()
            body = response.json()
        except httpx.TimeoutException as e:
            raise ProviderUnavailable(f"timed out after {self.config.embedding_timeout}s") from e
        except httpx.HTTPStatusError as e:
            raise ProviderUnavailable(f"HTTP {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise ProviderUnavailable(f"{type(e).__name__}: {e}") from e

        vector = self._parse_embedding(body)

        if len(vector) != self.dimension:
            logger.error(
                f"Embedding model {self.model_name} returned {len(vector)} dims, "
                f"expected {self.dimension}"
            )
            raise ProviderUnavailable(
                f"dimension mismatch: got {len(vector)}, expected {self.dimension}"
            )

        return vector

    @staticmethod
    def _parse_embedding(body) -> List[float]:
        """Extract the embedding vector from a response body."""
        try:
            if isinstance(body, dict) and "data" in body:
                raw = body["data"][0]["embedding"]
            else:
                raw = body["embedding"]
            return [float(x) for x in raw]
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise ProviderUnavailable(f"malformed embedding response: {e}") from e

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()


def get_embedding_service(config: Optional[RAGConfig] = None) -> EmbeddingService:
    """
    Get embedding service instance.

    Args:
        config: RAG configuration (optional, will load from env if not provided)

    Returns:
        EmbeddingService instance
    """
    if config is None:
        from .config import get_rag_config
        config = get_rag_config()

    return EmbeddingService(config)
