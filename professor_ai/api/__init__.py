"""
FastAPI Application Module

Provides REST API for Professor AI.
"""

from .main import app

__all__ = ["app"]
