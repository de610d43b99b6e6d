"""Pydantic data models for Professor AI."""

from .document import DocumentCreate, SyllabusInput, SyllabusTopic

__all__ = ["DocumentCreate", "SyllabusInput", "SyllabusTopic"]
