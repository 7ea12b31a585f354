"""Retrieval outcome models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .document import LinkedDocument


class RetrievalOutcome(str, Enum):
    """How a context-enhancement run ended.

    CANCELLED is an outcome, not a failure; it is never reported as an error.
    """
    ENHANCED = "enhanced"
    NO_LINKS = "no_links"
    NO_RESULTS = "no_results"
    SKIPPED = "skipped"  # No embedding provider or active document
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass
class RetrievalResult:
    """Context string plus bookkeeping for one enhancement run."""
    context: str
    outcome: RetrievalOutcome
    documents: list[LinkedDocument] = field(default_factory=list)
    chunk_count: int = 0
    retrieval_time_ms: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "context": self.context,
            "outcome": self.outcome.value,
            "documents": [d.to_dict() for d in self.documents],
            "chunk_count": self.chunk_count,
            "retrieval_time_ms": self.retrieval_time_ms,
        }
