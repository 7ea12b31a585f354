"""Core utilities for the local GPT assistant."""

from .cancellation import CancellationToken, OperationCancelledError
from .errors import ErrorRecord, ErrorReporter, LoggingErrorReporter, guard
from .exceptions import (
    DocumentError,
    DocumentNotFoundError,
    DocumentReadError,
    EmbeddingError,
    GenerationError,
    LLMError,
    LocalGPTError,
    RetrievalError,
    VectorStoreError,
)
from .logging import AuditLogger, get_logger
from .progress import NullProgressReporter, ProgressReporter, ProgressTracker

__all__ = [
    # Cancellation
    "CancellationToken",
    "OperationCancelledError",
    # Error reporting
    "ErrorRecord",
    "ErrorReporter",
    "LoggingErrorReporter",
    "guard",
    # Exceptions
    "DocumentError",
    "DocumentNotFoundError",
    "DocumentReadError",
    "EmbeddingError",
    "GenerationError",
    "LLMError",
    "LocalGPTError",
    "RetrievalError",
    "VectorStoreError",
    # Logging
    "AuditLogger",
    "get_logger",
    # Progress
    "NullProgressReporter",
    "ProgressReporter",
    "ProgressTracker",
]
