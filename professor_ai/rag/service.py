"""
RAG Service

Public entry point of the retrieval subsystem used by the tutoring flow
and the documents API:
- enhance_prompt_with_rag(): retrieve + compose, never fails the caller
- search_documents(): retrieval with similarity scores
- add_document() / create_documents_from_syllabus(): ingestion
- backfill_embeddings(): embed stored documents ahead of retrieval
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional

from ..models.document import DocumentCreate, SyllabusInput
from .config import RAGConfig, get_rag_config
from .document_store import DocumentStore, get_document_store
from .documents import SOURCE_SYSTEM_GENERATED, SOURCE_USER_UPLOAD, Document, DocumentFilter
from .embedding_service import EmbeddingService, get_embedding_service
from .prompt_composer import compose_prompt
from .retriever import DocumentRetriever, RetrievalReport

logger = logging.getLogger(__name__)


@dataclass
class EnhancedPrompt:
    """Prompt to send to the LLM and the documents it cites."""
    enhanced_prompt: str
    documents: List[Document] = field(default_factory=list)
    degraded: bool = False


@dataclass
class BackfillReport:
    """Statistics of an embedding back-fill run."""
    documents: int = 0
    already_embedded: int = 0
    embedded: int = 0
    skipped_fallback: int = 0


class RAGService:
    """Retrieval-augmented prompt construction over the knowledge base."""

    def __init__(
        self,
        config: Optional[RAGConfig] = None,
        embedding_service: Optional[EmbeddingService] = None,
        document_store: Optional[DocumentStore] = None
    ):
        """
        Initialize RAG service.

        Args:
            config: RAG configuration (optional, loads from env if not provided)
            embedding_service: Embedding service instance (optional)
            document_store: Document store instance (optional)
        """
        self.config = config if config is not None else get_rag_config()

        # Initialize components
        if embedding_service is None:
            embedding_service = get_embedding_service(self.config)
        if document_store is None:
            document_store = get_document_store(self.config.corpus_backend)
        self.embedding_service = embedding_service
        self.document_store = document_store
        self.retriever = DocumentRetriever(
            self.config,
            self.embedding_service,
            self.document_store
        )

        logger.info("RAG service initialized")

    async def enhance_prompt_with_rag(
        self,
        user_message: str,
        topic: Optional[str] = None,
        user_id: Optional[str] = None
    ) -> EnhancedPrompt:
        """
        Enhance a prompt with relevant documents from the knowledge base.

        Any retrieval failure degrades to the original message with no
        documents.

        Args:
            user_message: The user's message
            topic: Restrict retrieval to this topic
            user_id: Acting user (own + public documents only)

        Returns:
            EnhancedPrompt
        """
        try:
            report = await self.search_documents(user_message, topic=topic, user_id=user_id)
        except Exception as e:
            logger.error(f"Error enhancing prompt with RAG: {e}", exc_info=True)
            return EnhancedPrompt(enhanced_prompt=user_message, documents=[], degraded=True)

        composed = compose_prompt(
            user_message,
            report.results,
            with_citations=self.config.use_citations
        )

        return EnhancedPrompt(
            enhanced_prompt=composed.prompt,
            documents=composed.documents,
            degraded=report.degraded
        )

    async def search_documents(
        self,
        query: str,
        topic: Optional[str] = None,
        user_id: Optional[str] = None,
        limit: Optional[int] = None,
        threshold: Optional[float] = None
    ) -> RetrievalReport:
        """
        Search for relevant documents.

        Raises:
            InvalidArgument: If limit or threshold are malformed
        """
        retrieval_query = self.retriever.build_query(
            query,
            topic=topic,
            user_id=user_id,
            limit=limit,
            threshold=threshold
        )
        return await self.retriever.search(retrieval_query)

    async def add_document(
        self,
        data: DocumentCreate,
        owner_id: Optional[str] = None,
        source: str = SOURCE_USER_UPLOAD
    ) -> Document:
        """
        Add a document to the knowledge base.

        The embedding is computed on first retrieval unless
        `embed_on_ingest` is enabled.
        """
        now = datetime.now(timezone.utc)
        document = Document(
            id=str(uuid.uuid4()),
            title=data.title,
            content=data.content,
            topic=data.topic,
            owner_id=owner_id,
            is_public=data.is_public,
            source=source,
            tags=list(data.tags),
            syllabus_id=data.syllabus_id,
            metadata=dict(data.metadata),
            created_at=now,
            updated_at=now,
        )

        if self.config.embed_on_ingest:
            outcome = await self.embedding_service.embed(document.content)
            if outcome.ok:
                document.embedding = outcome.vector

        await self.document_store.save(document)
        logger.info(f"Added document {document.id} ({document.title!r}, topic={document.topic!r})")
        return document

    async def create_documents_from_syllabus(
        self,
        syllabus: SyllabusInput,
        user_id: Optional[str] = None
    ) -> List[Document]:
        """
        Create an overview document plus one document per topic with content.

        All documents use the syllabus title as their topic.
        """
        documents = []

        overview = await self.add_document(
            DocumentCreate(
                title=f"{syllabus.title} - Overview",
                content=syllabus.description,
                topic=syllabus.title,
                tags=["overview", *syllabus.tags],
                syllabus_id=syllabus.id,
                metadata={"verified": True},
            ),
            owner_id=user_id,
            source=SOURCE_SYSTEM_GENERATED
        )
        documents.append(overview)

        for topic in syllabus.topics:
            if not topic.content:
                continue
            doc = await self.add_document(
                DocumentCreate(
                    title=f"{syllabus.title} - {topic.title}",
                    content=topic.content,
                    topic=syllabus.title,
                    tags=[topic.title, *syllabus.tags],
                    syllabus_id=syllabus.id,
                    metadata={"verified": True},
                ),
                owner_id=user_id,
                source=SOURCE_SYSTEM_GENERATED
            )
            documents.append(doc)

        logger.info(f"Created {len(documents)} documents from syllabus {syllabus.title!r}")
        return documents

    async def backfill_embeddings(
        self,
        topic: Optional[str] = None,
        force: bool = False,
        limit: Optional[int] = None,
        progress: Optional[Callable[[List[Document]], Iterable[Document]]] = None
    ) -> BackfillReport:
        """
        Embed stored documents ahead of retrieval.

        Only the embedding column is written, so usage statistics recorded
        meanwhile are kept. Fallback vectors are not persisted.

        Args:
            topic: Only documents with this topic
            force: Re-embed documents that already have a vector
            limit: Maximum number of documents to embed
            progress: Wraps the pending documents while iterating (e.g. tqdm)

        Returns:
            BackfillReport
        """
        documents = await self.document_store.find(DocumentFilter(topic=topic))
        pending = [doc for doc in documents if force or not doc.has_embedding]

        report = BackfillReport(
            documents=len(documents),
            already_embedded=len(documents) - len(pending)
        )
        if limit:
            pending = pending[:limit]

        for doc in (progress(pending) if progress else pending):
            outcome = await self.embedding_service.embed(doc.content)
            if outcome.fallback:
                logger.warning(f"Skipping document {doc.id}: {outcome.reason}")
                report.skipped_fallback += 1
                continue
            await self.document_store.update_embedding(doc.id, outcome.vector)
            report.embedded += 1

        logger.info(f"Back-filled embeddings for {report.embedded} documents")
        return report

    async def aclose(self) -> None:
        """Release the embedding HTTP client."""
        await self.embedding_service.aclose()


def get_rag_service(config: Optional[RAGConfig] = None) -> RAGService:
    """
    Factory function to create RAG service instance.

    Args:
        config: Optional RAG configuration

    Returns:
        RAGService instance
    """
    return RAGService(config=config)
