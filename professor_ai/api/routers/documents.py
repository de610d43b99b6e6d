"""
Documents Router

Knowledge-base ingestion, listing and semantic search.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import Optional
import logging
import time

from ..analytics import analytics
from ..dependencies import get_rag_service
from ..middleware.auth import get_current_user
from ..schemas import (
    DocumentListResponse,
    DocumentResponse,
    SearchResultItem,
    SemanticSearchResponse,
    SyllabusDocumentsResponse,
)
from ...models import DocumentCreate, SyllabusInput
from ...rag import Document, DocumentFilter, InvalidArgument, RAGService

logger = logging.getLogger(__name__)

router = APIRouter()


def to_document_response(doc: Document) -> DocumentResponse:
    return DocumentResponse.model_validate(doc)


@router.post(
    "/documents",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED
)
async def add_document(
    request: DocumentCreate,
    user_id: str = Depends(get_current_user),
    rag: RAGService = Depends(get_rag_service),
):
    """
    Add a document to the knowledge base.

    The document's embedding is computed the first time a search or tutoring
    turn considers it.
    """
    document = await rag.add_document(request, owner_id=user_id)
    return to_document_response(document)


@router.get("/documents", response_model=DocumentListResponse)
async def list_documents(
    user_id: str = Depends(get_current_user),
    rag: RAGService = Depends(get_rag_service),
):
    """List the documents owned by the authenticated user, newest first."""
    documents = await rag.document_store.find(DocumentFilter(owner_id=user_id))
    documents.sort(key=lambda d: d.created_at.timestamp() if d.created_at else 0.0, reverse=True)

    return DocumentListResponse(
        documents=[to_document_response(doc) for doc in documents],
        total=len(documents)
    )


@router.get("/documents/search", response_model=SemanticSearchResponse)
async def search_documents(
    query: str = Query(..., min_length=1, max_length=1000, description="Search query"),
    topic: Optional[str] = Query(None, description="Restrict to this topic"),
    limit: Optional[int] = Query(None, description="Maximum number of results"),
    threshold: Optional[float] = Query(None, description="Minimum similarity (0-1, exclusive)"),
    user_id: str = Depends(get_current_user),
    rag: RAGService = Depends(get_rag_service),
):
    """
    Semantic search over the user's own and public documents.

    **Parameters:**
    - `query`: Search text
    - `topic`: Optional exact topic filter
    - `limit`: Maximum results (default from configuration)
    - `threshold`: Results must score strictly above this (default 0.7)

    **Returns:**
    - Results ordered by similarity, highest first
    - `degraded`: true if the embedding service was unavailable and the
      ranking used a fallback vector
    """
    logger.info(f"Document search: {query[:100]}...")
    start_time = time.time()

    try:
        report = await rag.search_documents(
            query,
            topic=topic,
            user_id=user_id,
            limit=limit,
            threshold=threshold
        )
    except InvalidArgument as e:
        analytics.record_retrieval(
            query, int((time.time() - start_time) * 1000), 0,
            degraded=False, success=False, error=f"InvalidArgument: {e}"
        )
        raise
    except Exception as e:
        logger.error(f"Document search error: {e}", exc_info=True)
        analytics.record_retrieval(
            query, int((time.time() - start_time) * 1000), 0,
            degraded=False, success=False, error=f"{type(e).__name__}: {e}"
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Search failed"
        )

    analytics.record_retrieval(
        query,
        int((time.time() - start_time) * 1000),
        len(report.results),
        degraded=report.degraded
    )

    return SemanticSearchResponse(
        success=True,
        query=query,
        results=[
            SearchResultItem(
                document=to_document_response(r.document),
                similarity=r.similarity
            )
            for r in report.results
        ],
        results_count=len(report.results),
        candidates_count=report.candidates_count,
        degraded=report.degraded
    )


@router.post(
    "/documents/syllabus",
    response_model=SyllabusDocumentsResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_syllabus_documents(
    syllabus: SyllabusInput,
    user_id: str = Depends(get_current_user),
    rag: RAGService = Depends(get_rag_service),
):
    """Generate an overview document and one document per syllabus topic."""
    documents = await rag.create_documents_from_syllabus(syllabus, user_id=user_id)

    return SyllabusDocumentsResponse(
        syllabus_title=syllabus.title,
        documents=[to_document_response(doc) for doc in documents],
        total=len(documents)
    )


async def _get_or_404(rag: RAGService, document_id: str) -> Document:
    document = await rag.document_store.get(document_id)
    if document is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Document {document_id} not found"
        )
    return document


@router.get("/documents/{document_id}", response_model=DocumentResponse)
async def get_document(
    document_id: str,
    user_id: str = Depends(get_current_user),
    rag: RAGService = Depends(get_rag_service),
):
    """Get a document the user owns, or a public one."""
    document = await _get_or_404(rag, document_id)

    if not document.is_visible_to(user_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to view this document"
        )

    return to_document_response(document)


@router.delete("/documents/{document_id}")
async def delete_document(
    document_id: str,
    user_id: str = Depends(get_current_user),
    rag: RAGService = Depends(get_rag_service),
):
    """Delete a document the user owns."""
    document = await _get_or_404(rag, document_id)

    if document.owner_id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to delete this document"
        )

    await rag.document_store.delete(document_id)
    logger.info(f"Deleted document {document_id}")

    return {"status": "success", "message": "Document removed"}
