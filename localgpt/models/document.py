"""Document-related data models.

Models for linked documents and the chunks prepared for embedding.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class LinkSource(str, Enum):
    """How a document entered the retrieval set."""
    LINK = "link"
    BACKLINK = "backlink"


@dataclass(frozen=True)
class LinkedDocument:
    """A document referenced from a selection, resolved against the vault."""
    path: str
    title: str
    source: LinkSource = LinkSource.LINK

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "title": self.title,
            "source": self.source.value,
        }


@dataclass
class DocumentChunk:
    """A bounded-size segment of a document, prepared for embedding.

    chunk_index is the ordinal within the source document and matches
    source order.
    """
    chunk_id: str
    document_id: str
    content: str
    chunk_index: int
    start_char: int
    end_char: int
    section_title: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "chunk_id": self.chunk_id,
            "document_id": self.document_id,
            "content": self.content,
            "chunk_index": self.chunk_index,
            "start_char": self.start_char,
            "end_char": self.end_char,
            "section_title": self.section_title,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DocumentChunk":
        return cls(
            chunk_id=data["chunk_id"],
            document_id=data["document_id"],
            content=data["content"],
            chunk_index=data["chunk_index"],
            start_char=data["start_char"],
            end_char=data["end_char"],
            section_title=data.get("section_title"),
            metadata=data.get("metadata", {}),
        )


@dataclass
class ChunkingConfig:
    """Configuration for document chunking - tracked for reproducibility."""
    chunk_size: int = 1000
    overlap_ratio: float = 0.1
    heading_split: bool = True
    strategy_version: str = "v1.0"

    def __post_init__(self) -> None:
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if not 0 <= self.overlap_ratio < 1:
            raise ValueError("overlap_ratio must be in [0, 1)")

    @property
    def chunk_overlap(self) -> int:
        """Overlap in characters derived from the configured fraction."""
        return int(self.chunk_size * self.overlap_ratio)

    def to_dict(self) -> dict[str, Any]:
        return {
            "chunk_size": self.chunk_size,
            "overlap_ratio": self.overlap_ratio,
            "heading_split": self.heading_split,
            "strategy_version": self.strategy_version,
        }
