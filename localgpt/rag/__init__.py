"""Retrieval-augmented context pipeline."""

from .chunking import DocumentChunker, create_chunker, make_chunk_id
from .embedding import EmbeddingProvider, EmbeddingService
from .enhancer import ContextEnhancer
from .links import LinkExtractor, document_title
from .vectorstore import VectorStore, format_context

__all__ = [
    # Chunking
    "DocumentChunker",
    "create_chunker",
    "make_chunk_id",
    # Embedding
    "EmbeddingProvider",
    "EmbeddingService",
    # Orchestration
    "ContextEnhancer",
    # Links
    "LinkExtractor",
    "document_title",
    # Vector store
    "VectorStore",
    "format_context",
]
