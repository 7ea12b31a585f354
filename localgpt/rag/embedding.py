"""Embedding generation using Ollama.

Uses local Ollama models for privacy-preserving embeddings.
"""

from typing import Protocol

from langchain_ollama import OllamaEmbeddings

from ..config import Settings, get_settings
from ..core import EmbeddingError, get_logger

logger = get_logger(__name__)


class EmbeddingProvider(Protocol):
    """Embedding collaborator consumed by the vector store.

    Abort is the caller's concern: the in-flight call is cancelled as an
    asyncio task when the action's token fires.
    """

    async def embed(self, texts: list[str]) -> list[list[float]]: ...


class EmbeddingService:
    """Service for generating embeddings using Ollama."""

    def __init__(
        self,
        model: str | None = None,
        base_url: str | None = None,
        settings: Settings | None = None,
    ):
        """Initialize embedding service.

        Args:
            model: Ollama embedding model name. Defaults to settings value.
            base_url: Ollama API base URL. Defaults to settings value.
            settings: Settings to read defaults from. Defaults to get_settings().
        """
        settings = settings or get_settings()
        self.model = model or settings.embedding_model
        self.base_url = base_url or settings.ollama_base_url

        self._embeddings: OllamaEmbeddings | None = None

    @property
    def embeddings(self) -> OllamaEmbeddings:
        """Lazy-load embeddings client."""
        if self._embeddings is None:
            self._embeddings = OllamaEmbeddings(
                model=self.model,
                base_url=self.base_url,
            )
        return self._embeddings

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for a batch of texts.

        Args:
            texts: List of texts to embed

        Returns:
            One embedding vector per text, in input order

        Raises:
            EmbeddingError: If embedding generation fails
        """
        if not texts:
            return []

        try:
            embeddings = await self.embeddings.aembed_documents(texts)
        except Exception as e:
            logger.error(
                "Batch embedding generation failed",
                error=str(e),
                model=self.model,
                text_count=len(texts),
            )
            raise EmbeddingError(f"Failed to generate embeddings: {e}", details={"model": self.model})

        if len(embeddings) != len(texts):
            raise EmbeddingError(
                "Embedding provider returned a mismatched batch",
                details={"expected": len(texts), "received": len(embeddings)},
            )

        logger.debug(
            "Generated batch embeddings",
            text_count=len(texts),
            embedding_dim=len(embeddings[0]) if embeddings else 0,
        )
        return embeddings
