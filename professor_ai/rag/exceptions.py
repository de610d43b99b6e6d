"""Exceptions raised by the retrieval subsystem."""


class RAGError(Exception):
    """Base class for retrieval errors."""


class ProviderUnavailable(RAGError):
    """The embedding endpoint could not produce a usable vector."""


class DimensionMismatch(RAGError):
    """Two vectors being compared have different lengths."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Vector dimension mismatch: expected {expected}, got {actual}"
        )


class InvalidArgument(RAGError, ValueError):
    """A retrieval parameter is outside its allowed range."""
