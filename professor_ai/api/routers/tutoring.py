"""
Tutoring Router

Chat endpoint for the Professor AI tutor.
"""

from fastapi import APIRouter, Depends
from typing import Optional
import logging

from ..analytics import analytics
from ..dependencies import get_tutor_agent
from ..middleware.auth import get_optional_user
from ..schemas import ChatRequest, ChatResponse, CitedDocument
from ...agent import TutorAgent
from ...rag.prompt_composer import citation_label

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/tutoring/chat", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    user_id: Optional[str] = Depends(get_optional_user),
    agent: TutorAgent = Depends(get_tutor_agent),
):
    """
    Ask the tutor a question.

    The message is enhanced with the most relevant knowledge-base documents
    (the user's own and public ones when authenticated) before it is sent
    to the LLM. Cited documents are returned in citation order.

    **Authentication (Optional):**
    - Knowledge-base grounding requires a Bearer token; anonymous
      messages are answered by the LLM alone

    **Returns:**
    - Tutor answer
    - Documents cited as [Document 1], [Document 2], ...
    - Flags for degraded retrieval and LLM fallback
    """
    logger.info(f"Tutoring message received: {request.message[:100]}...")
    use_rag = request.use_rag and user_id is not None

    result = await agent.ask(
        request.message,
        user_id=user_id,
        topic=request.topic,
        use_rag=use_rag,
        profile=request.profile
    )

    if use_rag:
        analytics.record_retrieval(
            request.message,
            result.execution_time_ms,
            len(result.documents),
            degraded=result.retrieval_degraded
        )

    return ChatResponse(
        response=result.response,
        documents=[
            CitedDocument(
                label=citation_label(i),
                id=doc.id,
                title=doc.title,
                topic=doc.topic
            )
            for i, doc in enumerate(result.documents, start=1)
        ],
        retrieval_degraded=result.retrieval_degraded,
        llm_available=not result.llm_failed,
        execution_time_ms=result.execution_time_ms
    )
