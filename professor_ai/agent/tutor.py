"""
Tutor Agent

Answers a learner's message:
1. Enhance the message with knowledge-base documents (RAG)
2. Build a personalized system prompt
3. Ask the LLM
4. Fall back to a canned answer if the LLM is unreachable
"""

import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional

from ..rag import Document, RAGService
from .llm_config import LLMClient
from .prompts import LearnerProfile, get_fallback_response, get_system_prompt

logger = logging.getLogger(__name__)


@dataclass
class TutorResponse:
    """Answer plus the documents that grounded it."""
    response: str
    documents: List[Document] = field(default_factory=list)
    retrieval_degraded: bool = False
    llm_failed: bool = False
    execution_time_ms: int = 0


class TutorAgent:
    """LLM tutor grounded in the Professor AI knowledge base."""

    def __init__(self, llm_client: LLMClient, rag_service: RAGService):
        self.llm_client = llm_client
        self.rag_service = rag_service

    async def ask(
        self,
        message: str,
        user_id: Optional[str] = None,
        topic: Optional[str] = None,
        use_rag: bool = True,
        profile: Optional[LearnerProfile] = None
    ) -> TutorResponse:
        """
        Answer a learner's message.

        Args:
            message: The learner's message
            user_id: Authenticated user (restricts retrieval visibility)
            topic: Session topic (retrieval filter and prompt personalization)
            use_rag: Ground the answer in retrieved documents
            profile: Learner profile for the system prompt

        Returns:
            TutorResponse
        """
        start_time = time.time()

        prompt = message
        documents: List[Document] = []
        degraded = False

        if use_rag:
            enhanced = await self.rag_service.enhance_prompt_with_rag(
                message,
                topic=topic,
                user_id=user_id
            )
            prompt = enhanced.enhanced_prompt
            documents = enhanced.documents
            degraded = enhanced.degraded

        messages = [
            {"role": "system", "content": get_system_prompt(topic, profile)},
            {"role": "user", "content": prompt},
        ]

        llm_failed = False
        try:
            answer = await self.llm_client.acomplete_text(messages)
        except Exception as e:
            logger.error(f"Error generating LLM response: {e}", exc_info=True)
            answer = get_fallback_response(message)
            llm_failed = True

        execution_time_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"Tutor answered in {execution_time_ms}ms "
            f"({len(documents)} documents, llm_failed={llm_failed})"
        )

        return TutorResponse(
            response=answer,
            documents=documents,
            retrieval_degraded=degraded,
            llm_failed=llm_failed,
            execution_time_ms=execution_time_ms,
        )
