"""Document chunking with deterministic, configurable strategies.

Chunking configuration is tracked for reproducibility - the same document and
configuration always produce the same chunk sequence, identifiers included.
"""

import re

from ..config import Settings, get_settings
from ..core import get_logger
from ..models import ChunkingConfig, DocumentChunk

logger = get_logger(__name__)

HEADING_PATTERN = re.compile(r"^ {0,3}(#{1,6})\s+(.+?)\s*#*\s*$")
FENCE_PATTERN = re.compile(r"^ {0,3}(```|~~~)")
PARAGRAPH_BREAK = re.compile(r"\n[ \t]*\n")

PARAGRAPH_JOINER = "\n\n"


def make_chunk_id(document_id: str, chunk_index: int) -> str:
    """Deterministic chunk identifier."""
    return f"{document_id}::chunk::{chunk_index:03d}"


class DocumentChunker:
    """Deterministic document chunking with configurable parameters.

    Split points are tried in order: headings, paragraphs, then fixed-size
    windows for paragraphs that are still too long.
    """

    def __init__(self, config: ChunkingConfig | None = None, settings: Settings | None = None):
        """Initialize chunker with configuration.

        Args:
            config: Chunking configuration. If None, uses settings defaults.
            settings: Settings to read defaults from. Defaults to get_settings().
        """
        if config is None:
            settings = settings or get_settings()
            config = ChunkingConfig(
                chunk_size=settings.chunk_size,
                overlap_ratio=settings.chunk_overlap_ratio,
                heading_split=settings.heading_split,
            )
        self.config = config

    def chunk_document(
        self,
        document_id: str,
        content: str,
        metadata: dict[str, str] | None = None,
    ) -> list[DocumentChunk]:
        """Split document content into chunks with source attribution.

        Args:
            document_id: ID of the source document (its vault path)
            content: Full document text content
            metadata: Additional metadata to attach to each chunk

        Returns:
            Chunks in source order. Empty documents yield no chunks; a document
            that fits in one chunk yields exactly one chunk holding all of it.
        """
        metadata = metadata or {}

        if not content or not content.strip():
            logger.debug("Empty content provided for chunking", document_id=document_id)
            return []

        if len(content) <= self.config.chunk_size:
            return [
                self._create_chunk(
                    document_id=document_id,
                    content=content,
                    chunk_index=0,
                    start_char=0,
                    end_char=len(content),
                    section_title=self._first_heading(content),
                    metadata=metadata,
                )
            ]

        if self.config.heading_split:
            sections = self._split_by_headings(content)
        else:
            sections = [(None, content, 0)]

        chunks: list[DocumentChunk] = []
        for section_title, section_text, section_start in sections:
            pieces = self._split_to_pieces(section_text, section_start)
            chunks.extend(
                self._create_chunks(
                    document_id=document_id,
                    pieces=pieces,
                    section_title=section_title,
                    first_index=len(chunks),
                    metadata=metadata,
                )
            )

        logger.debug(
            "Document chunked",
            document_id=document_id,
            chunk_count=len(chunks),
            section_count=len(sections),
            config=self.config.to_dict(),
        )

        return chunks

    # ------------------------------------------------------------------
    # Split points
    # ------------------------------------------------------------------

    def _first_heading(self, content: str) -> str | None:
        for title, _, _ in self._split_by_headings(content):
            if title:
                return title
        return None

    def _split_by_headings(self, content: str) -> list[tuple[str | None, str, int]]:
        """Split content at markdown headings outside fenced code.

        Returns (heading title, section text, start offset) triples. Text
        before the first heading becomes an untitled section.
        """
        sections: list[tuple[str | None, str, int]] = []
        current_title: str | None = None
        current_start = 0
        in_fence = False
        position = 0

        for line in content.splitlines(keepends=True):
            if FENCE_PATTERN.match(line):
                in_fence = not in_fence
            elif not in_fence:
                match = HEADING_PATTERN.match(line.rstrip("\r\n"))
                if match and position > current_start:
                    sections.append((current_title, content[current_start:position], current_start))
                    current_start = position
                if match:
                    current_title = match.group(2)
            position += len(line)

        sections.append((current_title, content[current_start:], current_start))
        return [s for s in sections if s[1].strip()]

    def _split_to_pieces(self, text: str, offset: int) -> list[tuple[str, int]]:
        """Split a section into paragraphs, windowing the oversized ones.

        Returns (piece text, absolute start offset) pairs.
        """
        pieces: list[tuple[str, int]] = []
        position = 0

        for part in PARAGRAPH_BREAK.split(text):
            start = text.index(part, position)
            position = start + len(part)

            stripped = part.strip()
            if not stripped:
                continue
            start += part.index(stripped)

            if len(stripped) <= self.config.chunk_size:
                pieces.append((stripped, offset + start))
            else:
                pieces.extend(self._split_to_windows(stripped, offset + start))

        return pieces

    def _split_to_windows(self, text: str, offset: int) -> list[tuple[str, int]]:
        """Fixed-size windows overlapping by the configured amount."""
        size = self.config.chunk_size
        step = max(size - self.config.chunk_overlap, 1)

        windows: list[tuple[str, int]] = []
        for start in range(0, len(text), step):
            windows.append((text[start:start + size], offset + start))
            if start + size >= len(text):
                break
        return windows

    # ------------------------------------------------------------------
    # Chunk assembly
    # ------------------------------------------------------------------

    def _create_chunks(
        self,
        document_id: str,
        pieces: list[tuple[str, int]],
        section_title: str | None,
        first_index: int,
        metadata: dict[str, str],
    ) -> list[DocumentChunk]:
        """Pack pieces into chunks respecting the size limit."""
        chunks: list[DocumentChunk] = []
        current_text = ""
        current_start = 0
        current_end = 0

        for piece, piece_start in pieces:
            piece_end = piece_start + len(piece)

            if not current_text:
                current_text, current_start, current_end = piece, piece_start, piece_end
                continue

            if len(current_text) + len(PARAGRAPH_JOINER) + len(piece) <= self.config.chunk_size:
                current_text += PARAGRAPH_JOINER + piece
                current_end = piece_end
                continue

            chunks.append(
                self._create_chunk(
                    document_id=document_id,
                    content=current_text,
                    chunk_index=first_index + len(chunks),
                    start_char=current_start,
                    end_char=current_end,
                    section_title=section_title,
                    metadata=metadata,
                )
            )

            # Start new chunk with overlap when it still fits
            overlap_text = self._get_overlap_text(current_text)
            if overlap_text and len(overlap_text) + len(PARAGRAPH_JOINER) + len(piece) <= self.config.chunk_size:
                current_text = overlap_text + PARAGRAPH_JOINER + piece
            else:
                current_text = piece
            current_start, current_end = piece_start, piece_end

        if current_text:
            chunks.append(
                self._create_chunk(
                    document_id=document_id,
                    content=current_text,
                    chunk_index=first_index + len(chunks),
                    start_char=current_start,
                    end_char=current_end,
                    section_title=section_title,
                    metadata=metadata,
                )
            )

        return chunks

    def _create_chunk(
        self,
        document_id: str,
        content: str,
        chunk_index: int,
        start_char: int,
        end_char: int,
        section_title: str | None,
        metadata: dict[str, str],
    ) -> DocumentChunk:
        """Create a single chunk with all metadata."""
        return DocumentChunk(
            chunk_id=make_chunk_id(document_id, chunk_index),
            document_id=document_id,
            content=content,
            chunk_index=chunk_index,
            start_char=start_char,
            end_char=end_char,
            section_title=section_title,
            metadata={
                **metadata,
                "chunk_strategy": self.config.strategy_version,
                "chunk_size": str(self.config.chunk_size),
                "chunk_overlap": str(self.config.chunk_overlap),
            },
        )

    def _get_overlap_text(self, text: str) -> str:
        """Get the overlap portion from the end of text."""
        overlap = self.config.chunk_overlap
        if overlap <= 0:
            return ""
        if len(text) <= overlap:
            return text

        # Try to break at word boundary
        overlap_start = len(text) - overlap
        space_idx = text.find(" ", overlap_start)

        if space_idx != -1:
            return text[space_idx + 1:]

        return text[overlap_start:]


def create_chunker(
    config: ChunkingConfig | None = None,
    settings: Settings | None = None,
) -> DocumentChunker:
    """Factory function to create a document chunker."""
    return DocumentChunker(config, settings)
