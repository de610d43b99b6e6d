"""Professor AI - personalized tutoring backed by retrieval-augmented generation."""

__version__ = "0.1.0"
