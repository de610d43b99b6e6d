"""Database module for Professor AI."""

from .base import Base
from .models import DocumentRecord

__all__ = [
    "Base",
    "DocumentRecord",
]
