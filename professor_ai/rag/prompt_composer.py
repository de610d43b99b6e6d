"""
Prompt Composer

Merges retrieved documents into a single augmented prompt for the tutor LLM.
"""

from dataclasses import dataclass, field
from typing import List, Sequence

from .documents import Document, RetrievalResult


@dataclass
class ComposedPrompt:
    """Augmented prompt and the documents it cites, in label order."""
    prompt: str
    documents: List[Document] = field(default_factory=list)


def citation_label(index: int) -> str:
    """Label for the document at 1-based position `index`."""
    return f"[Document {index}]"


def _citation_section(index: int, doc: Document) -> str:
    return f"{citation_label(index)} {doc.title}\n{doc.content}\n"


def _plain_section(doc: Document) -> str:
    return f"--- Document: {doc.title} ---\n{doc.content}\n"


def compose_prompt(
    original_query: str,
    results: Sequence[RetrievalResult],
    with_citations: bool = True
) -> ComposedPrompt:
    """
    Build the augmented prompt.

    Args:
        original_query: The user's message
        results: Retrieval results, already ordered by similarity
        with_citations: Number documents as [Document k] and ask the model
            to cite them

    Returns:
        ComposedPrompt; the original query and no documents when results
        is empty
    """
    if not results:
        return ComposedPrompt(prompt=original_query, documents=[])

    documents = [r.document for r in results]

    if with_citations:
        sections = [_citation_section(i, doc) for i, doc in enumerate(documents, start=1)]
    else:
        sections = [_plain_section(doc) for doc in documents]
    retrieved_info = "\n".join(sections)

    prompt = f"""
I need information about the following question:
{original_query}

Here is some relevant information that might help:
{retrieved_info}
Based on this information and your knowledge, please provide a comprehensive answer to the question.
"""
    if with_citations:
        prompt += "Include citations to the documents when appropriate using [Document X] notation.\n"

    return ComposedPrompt(prompt=prompt, documents=documents)
