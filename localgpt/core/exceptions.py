"""Custom exceptions for the local GPT assistant core.

These exceptions provide clear error categories for proper handling at the
orchestrator and API boundaries.
"""


class LocalGPTError(Exception):
    """Base exception for all assistant errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class DocumentError(LocalGPTError):
    """Errors related to document graph operations."""
    pass


class DocumentNotFoundError(DocumentError):
    """Document was not found in the vault."""

    def __init__(self, path: str):
        super().__init__(
            f"Document not found: {path}",
            {"path": path},
        )


class DocumentReadError(DocumentError):
    """Error while reading or parsing a document."""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(
            message,
            {"path": path} if path else {},
        )


class RetrievalError(LocalGPTError):
    """Errors related to retrieval operations."""
    pass


class VectorStoreError(RetrievalError):
    """Error with vector store operations."""
    pass


class EmbeddingError(RetrievalError):
    """Error generating embeddings."""
    pass


class GenerationError(LocalGPTError):
    """Errors related to content generation."""
    pass


class LLMError(GenerationError):
    """Error communicating with the LLM."""

    def __init__(self, message: str, model: str | None = None):
        super().__init__(
            message,
            {"model": model} if model else {},
        )
