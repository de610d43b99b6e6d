"""
Agent module for Professor AI.

This module provides the LLM-powered tutor.
"""

from .llm_config import LLMClient, LLMSettings, get_llm_client
from .prompts import LearnerProfile, get_fallback_response, get_system_prompt
from .tutor import TutorAgent, TutorResponse

__all__ = [
    "LLMClient",
    "LLMSettings",
    "get_llm_client",
    "LearnerProfile",
    "get_fallback_response",
    "get_system_prompt",
    "TutorAgent",
    "TutorResponse",
]
