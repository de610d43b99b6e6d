"""
FastAPI Dependencies

Provides dependency injection for the RAG service and the tutor agent.
"""

from typing import Optional
from fastapi import Depends

from ..agent import LLMClient, TutorAgent, get_llm_client
from ..rag import RAGService, get_rag_config, get_rag_service as create_rag_service

# Cached instances (shared across requests)
_rag_service_instance: Optional[RAGService] = None


def get_rag_service() -> RAGService:
    """
    RAG service dependency.

    Reuses one service (and its HTTP client) across requests.

    Usage:
        @app.get("/endpoint")
        async def endpoint(rag: RAGService = Depends(get_rag_service)):
            report = await rag.search_documents(query)
    """
    global _rag_service_instance
    if _rag_service_instance is None:
        _rag_service_instance = create_rag_service(get_rag_config())
    return _rag_service_instance


def get_llm() -> LLMClient:
    """LLM client dependency"""
    return get_llm_client()


def get_tutor_agent(
    rag_service: RAGService = Depends(get_rag_service),
    llm_client: LLMClient = Depends(get_llm),
) -> TutorAgent:
    """
    Tutor agent dependency.

    Usage:
        @app.post("/chat")
        async def chat(agent: TutorAgent = Depends(get_tutor_agent)):
            result = await agent.ask(message)
    """
    return TutorAgent(llm_client, rag_service)


async def close_services() -> None:
    """Release cached services on shutdown."""
    global _rag_service_instance
    if _rag_service_instance is not None:
        await _rag_service_instance.aclose()
        _rag_service_instance = None
