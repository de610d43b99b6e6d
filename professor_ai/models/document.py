"""Pydantic models for knowledge-base ingestion."""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, field_validator


class DocumentCreate(BaseModel):
    """A document uploaded by a user (or generated by the system)."""

    title: str = Field(..., min_length=1, max_length=300, description="Document title")
    content: str = Field(..., min_length=1, description="Text that is embedded and retrieved")
    topic: Optional[str] = Field(None, max_length=200, description="Grouping label used as a filter")
    is_public: bool = Field(default=False, description="Visible to every user when true")
    tags: List[str] = Field(default_factory=list, description="Free-form tags")
    syllabus_id: Optional[str] = Field(None, description="Syllabus the document belongs to")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Free-form metadata")

    @field_validator("title", "topic")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        """Trim surrounding whitespace; blank topics become None."""
        if v is None:
            return None
        v = v.strip()
        return v or None

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v: List[str]) -> List[str]:
        return [tag.strip() for tag in v if tag and tag.strip()]

    class Config:
        json_schema_extra = {
            "example": {
                "title": "Derivatives cheat sheet",
                "content": "The derivative of x^n is n*x^(n-1) ...",
                "topic": "Calculus I",
                "is_public": False,
                "tags": ["derivatives"],
            }
        }


class SyllabusTopic(BaseModel):
    """One topic of a syllabus."""

    title: str = Field(..., min_length=1)
    content: Optional[str] = Field(None, description="Topic material; topics without it get no document")


class SyllabusInput(BaseModel):
    """Syllabus from which knowledge-base documents are generated."""

    id: Optional[str] = Field(None, description="Syllabus identifier")
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, description="Overview text")
    tags: List[str] = Field(default_factory=list)
    topics: List[SyllabusTopic] = Field(default_factory=list)
