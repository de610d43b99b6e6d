"""
System prompts for the Professor AI tutor.

Personalizes the tutor's teaching style from the learner's academic
background and stated preferences.
"""

from typing import Optional

from pydantic import BaseModel, Field


COMPLEXITY_BY_BACKGROUND = {
    "high_school": "beginner",
    "undergraduate": "intermediate",
    "graduate": "advanced",
    "phd": "advanced",
}


class LearnerProfile(BaseModel):
    """What the tutor knows about the learner."""

    academic_background: Optional[str] = Field(
        None,
        description="high_school, undergraduate, graduate or phd"
    )
    preferred_examples: str = Field(default="practical")
    communication_style: str = Field(default="conversational")
    detail_level: str = Field(default="balanced")


DEFAULT_SYSTEM_PROMPT = """You are Professor AI, a personalized AI tutor.

Your teaching approach:
- Be engaging, friendly, and occasionally use humor to make learning enjoyable
- Break down complex concepts into understandable parts
- Use analogies and examples to illustrate concepts
- Ask questions to check understanding
- Provide encouragement and positive reinforcement

Respond to the student's questions in a helpful, accurate, and educational manner."""


def get_system_prompt(
    topic: Optional[str] = None,
    profile: Optional[LearnerProfile] = None
) -> str:
    """
    Get system prompt for the tutor.

    Args:
        topic: Current topic being discussed
        profile: Learner profile (default prompt when omitted)

    Returns:
        System prompt string
    """
    if profile is None and topic is None:
        return DEFAULT_SYSTEM_PROMPT

    profile = profile or LearnerProfile()
    background = profile.academic_background or "general"
    complexity = COMPLEXITY_BY_BACKGROUND.get(background, "intermediate")

    return f"""You are Professor AI, a personalized AI tutor specializing in {topic or 'various subjects'}.

Your teaching approach:
- Complexity level: {complexity}
- Example style: {profile.preferred_examples}
- Communication style: {profile.communication_style}
- Detail level: {profile.detail_level}

Guidelines:
- Be engaging, friendly, and occasionally use humor to make learning enjoyable
- Adapt explanations to the student's academic background ({background})
- Break down complex concepts into understandable parts
- Use analogies and examples to illustrate concepts
- Ask questions to check understanding
- Provide encouragement and positive reinforcement
- Be concise but thorough in your explanations
- When the question includes numbered documents, cite them as [Document X]

The current topic is: {topic or "to be determined based on the student's questions"}

Respond to the student's questions in a helpful, accurate, and educational manner."""


def get_fallback_response(prompt: str) -> str:
    """Canned answer used when the LLM cannot be reached."""
    prompt_lower = prompt.lower()

    if "machine learning" in prompt_lower:
        body = (
            "Machine learning is a field of artificial intelligence that uses statistical "
            "techniques to give computer systems the ability to \"learn\" from data, "
            "without being explicitly programmed."
        )
    elif "python" in prompt_lower:
        body = (
            "Python is a high-level, interpreted programming language known for its "
            "readability and simplicity. It supports procedural, object-oriented, and "
            "functional programming."
        )
    elif "math" in prompt_lower:
        body = (
            "Mathematics is the study of numbers, quantities, and shapes. It is essential "
            "in natural science, engineering, medicine, finance, and the social sciences."
        )
    else:
        body = (
            "I understand you're asking about this topic. Normally I would give a detailed, "
            "personalized answer based on my knowledge and your course documents."
        )

    return (
        "I apologize, but I'm having trouble connecting to my knowledge base at the moment. "
        "Let me provide a general answer based on what I know.\n\n"
        f"{body}\n\n"
        "If you have more specific questions, please ask and I'll do my best to help."
    )
