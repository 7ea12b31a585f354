"""In-memory FAISS vector store for one retrieval operation.

A store is built fresh for each enhancement run and discarded afterwards; it
is never persisted or shared between concurrent actions.
"""

import asyncio
from typing import Any

import faiss
import numpy as np

from ..config import Settings, get_settings
from ..core import (
    CancellationToken,
    NullProgressReporter,
    ProgressReporter,
    VectorStoreError,
    get_logger,
)
from ..models import DocumentChunk
from .embedding import EmbeddingProvider

logger = get_logger(__name__)

CONTEXT_SEPARATOR = "\n\n"


def format_context(
    results: list[tuple[DocumentChunk, float]],
    max_chars: int,
) -> str:
    """Concatenate ranked chunks, highest first, within a character budget.

    Lowest-ranked chunks are dropped first. When even the best chunk is over
    budget it is clipped rather than dropped.
    """
    parts: list[str] = []
    total = 0

    for chunk, _ in results:
        content = chunk.content.strip()
        if not content:
            continue

        added = len(content) + (len(CONTEXT_SEPARATOR) if parts else 0)
        if total + added > max_chars:
            if not parts:
                parts.append(content[:max_chars])
            break

        parts.append(content)
        total += added

    return CONTEXT_SEPARATOR.join(parts)


class VectorStore:
    """FAISS inner-product index over L2-normalised embeddings (cosine similarity)."""

    def __init__(
        self,
        embedder: EmbeddingProvider,
        batch_size: int | None = None,
        concurrency: int | None = None,
        settings: Settings | None = None,
    ):
        """Initialize an empty vector store.

        Args:
            embedder: Embedding collaborator used for chunks and queries
            batch_size: Texts per embedding call. Defaults to settings value.
            concurrency: Cap on embedding calls in flight. Defaults to settings value.
            settings: Settings to read defaults from. Defaults to get_settings().
        """
        settings = settings or get_settings()
        self.embedder = embedder
        self.batch_size = max(batch_size or settings.embedding_batch_size, 1)
        self.concurrency = max(concurrency or settings.embedding_concurrency, 1)
        self.top_k = settings.retrieval_top_k
        self.max_context_chars = settings.max_context_chars

        self.index: faiss.IndexFlatIP | None = None
        self.chunks: list[DocumentChunk] = []

    async def build(
        self,
        chunks: list[DocumentChunk],
        token: CancellationToken | None = None,
        progress: ProgressReporter | None = None,
    ) -> "VectorStore":
        """Embed every chunk and add it to the index.

        Batches are issued concurrently up to the concurrency cap; progress is
        reported per finished batch. Cancellation aborts the batches in flight
        and leaves the store empty.

        Raises:
            OperationCancelledError: If the token fires before or during embedding
            EmbeddingError: If the embedding collaborator fails
            VectorStoreError: If the returned vectors cannot be indexed
        """
        token = token or CancellationToken()
        progress = progress or NullProgressReporter()

        if not chunks:
            return self

        token.raise_if_cancelled("embedding")

        semaphore = asyncio.Semaphore(self.concurrency)
        batches = [
            chunks[i:i + self.batch_size]
            for i in range(0, len(chunks), self.batch_size)
        ]

        async def embed_batch(batch: list[DocumentChunk]) -> list[list[float]]:
            async with semaphore:
                token.raise_if_cancelled("embedding")
                vectors = await token.guard(
                    self.embedder.embed([c.content for c in batch]),
                    "embedding",
                )
            progress.complete_steps(len(batch))
            return vectors

        tasks = [asyncio.ensure_future(embed_batch(batch)) for batch in batches]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        embeddings = [vector for batch_vectors in results for vector in batch_vectors]
        self._add(chunks, embeddings)

        logger.info(
            "Built vector store",
            chunk_count=len(self.chunks),
            batch_count=len(batches),
        )
        return self

    def _add(self, chunks: list[DocumentChunk], embeddings: list[list[float]]) -> None:
        try:
            vectors = np.array(embeddings, dtype=np.float32)
        except ValueError as e:
            raise VectorStoreError(f"Inconsistent embedding dimensions: {e}")

        if vectors.ndim != 2 or vectors.shape[0] != len(chunks):
            raise VectorStoreError(
                "Embedding count does not match chunk count",
                details={"chunks": len(chunks), "shape": list(vectors.shape)},
            )

        # Normalize for cosine similarity
        faiss.normalize_L2(vectors)

        if self.index is None:
            self.index = faiss.IndexFlatIP(vectors.shape[1])
        elif self.index.d != vectors.shape[1]:
            raise VectorStoreError(
                "Embedding dimension changed",
                details={"expected": self.index.d, "received": vectors.shape[1]},
            )

        self.index.add(vectors)
        self.chunks.extend(chunks)

    async def search(
        self,
        query: str,
        token: CancellationToken | None = None,
        top_k: int | None = None,
    ) -> list[tuple[DocumentChunk, float]]:
        """Rank chunks by cosine similarity to the query.

        Ties break by insertion order, so results are deterministic for the
        same chunks and embeddings.

        Returns:
            List of (chunk, similarity_score) tuples, most similar first
        """
        token = token or CancellationToken()
        top_k = top_k or self.top_k

        if self.index is None or not self.chunks:
            return []

        token.raise_if_cancelled("query")
        query_embedding = await token.guard(self.embedder.embed([query]), "query")

        query_vector = np.array(query_embedding, dtype=np.float32)
        if query_vector.ndim != 2 or query_vector.shape[1] != self.index.d:
            raise VectorStoreError(
                "Query embedding dimension does not match the index",
                details={"expected": self.index.d, "shape": list(query_vector.shape)},
            )
        faiss.normalize_L2(query_vector)

        # Score every chunk, then order stably ourselves
        scores, indices = self.index.search(query_vector, len(self.chunks))
        ranked = sorted(
            ((int(idx), float(score)) for score, idx in zip(scores[0], indices[0]) if idx >= 0),
            key=lambda item: (-item[1], item[0]),
        )

        results = [(self.chunks[idx], score) for idx, score in ranked[:top_k]]

        logger.debug(
            "Vector search completed",
            query_length=len(query),
            results_found=len(results),
            top_k=top_k,
        )
        return results

    async def query(
        self,
        text: str,
        token: CancellationToken | None = None,
        top_k: int | None = None,
        max_chars: int | None = None,
    ) -> str:
        """Ranked context string for the query text.

        An empty store returns "" without calling the embedding collaborator.
        """
        if not self.chunks:
            return ""

        results = await self.search(text, token=token, top_k=top_k)
        return format_context(results, max_chars or self.max_context_chars)

    def get_stats(self) -> dict[str, Any]:
        """Get vector store statistics."""
        return {
            "total_chunks": len(self.chunks),
            "total_documents": len({c.document_id for c in self.chunks}),
            "dimension": self.index.d if self.index is not None else None,
        }
