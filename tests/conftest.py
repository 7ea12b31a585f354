"""Centralized fixtures and mocks for testing.

Provides deterministic stand-ins for the external collaborators (Ollama
embeddings and chat, the document graph, reporters) and factory fixtures for
common test data.
"""

import asyncio
import hashlib
import math
import posixpath
from pathlib import Path

import pytest
from langchain_core.messages import AIMessageChunk

from localgpt.config import Settings
from localgpt.core import DocumentNotFoundError, DocumentReadError, EmbeddingError
from localgpt.models import DocumentChunk, InferenceResult, TokenUsage
from localgpt.session import AssistantSession
from localgpt.vault.markdown import find_link_targets, find_tags

# ============================================================================
# Mock Classes for External Services
# ============================================================================


class MockOllamaEmbeddings:
    """Embedding collaborator that returns deterministic embeddings.

    Uses text hashing to produce reproducible embeddings for the same input.
    Records every batch so tests can assert on call counts.
    """

    def __init__(self, dimension: int = 64):
        self._dimension = dimension
        self.calls: list[list[str]] = []

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def _hash_to_embedding(self, text: str) -> list[float]:
        """Convert text to deterministic embedding via hashing."""
        hash_bytes = hashlib.sha256(text.encode()).digest()
        embedding = []
        for i in range(self._dimension):
            byte_val = hash_bytes[i % len(hash_bytes)]
            # Normalize to [-1, 1] range
            embedding.append((byte_val - 128) / 128.0)
        return embedding

    async def embed(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [self._hash_to_embedding(text) for text in texts]


class ScriptedEmbeddings:
    """Embedding collaborator with hand-picked vectors.

    Texts not in the script get the fallback vector.
    """

    def __init__(self, vectors: dict[str, list[float]], fallback: list[float] | None = None):
        self.vectors = vectors
        self.fallback = fallback or [0.0, 0.0, 1.0]
        self.calls: list[list[str]] = []

    @property
    def call_count(self) -> int:
        return len(self.calls)

    async def embed(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [self.vectors.get(text, self.fallback) for text in texts]


class BlockingEmbeddings:
    """Embedding collaborator whose calls never finish until aborted."""

    def __init__(self, abort_error: Exception | None = None):
        self.started = asyncio.Event()
        self.aborted = False
        self.abort_error = abort_error
        self.call_count = 0

    async def embed(self, texts: list[str]) -> list[list[float]]:
        self.call_count += 1
        self.started.set()
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            self.aborted = True
            if self.abort_error is not None:
                raise self.abort_error
            raise
        return []


class FailingEmbeddings:
    """Embedding collaborator that always fails."""

    def __init__(self, message: str = "connection refused"):
        self.message = message
        self.call_count = 0

    async def embed(self, texts: list[str]) -> list[list[float]]:
        self.call_count += 1
        raise EmbeddingError(f"Failed to generate embeddings: {self.message}")


class InMemoryDocumentGraph:
    """Document graph over a dict of path -> text."""

    def __init__(
        self,
        documents: dict[str, str] | None = None,
        binaries: dict[str, bytes] | None = None,
        unreadable: set[str] | None = None,
    ):
        self.documents = dict(documents or {})
        self.binaries = dict(binaries or {})
        self.unreadable = set(unreadable or set())
        self.reads: list[str] = []
        self.index_loads = 0

    def _resolve(self, link_text: str, candidates: list[str]) -> str | None:
        for candidate in (link_text, f"{link_text}.md"):
            if candidate in candidates:
                return candidate
        name = posixpath.basename(link_text)
        for candidate in sorted(candidates):
            base = posixpath.basename(candidate)
            if base == name or posixpath.splitext(base)[0] == name:
                return candidate
        return None

    def resolve_link(self, link_text: str, source_path: str) -> str | None:
        return self._resolve(link_text, list(self.documents))

    def resolve_attachment(self, link_text: str, source_path: str) -> str | None:
        return self._resolve(link_text, list(self.documents) + list(self.binaries))

    def list_documents(self) -> list[str]:
        return sorted(self.documents)

    async def load_index(self) -> None:
        self.index_loads += 1

    async def read_text(self, path: str) -> str:
        self.reads.append(path)
        if path in self.unreadable:
            raise DocumentReadError("Failed to read document: permission denied", path=path)
        if path not in self.documents:
            raise DocumentNotFoundError(path)
        return self.documents[path]

    async def read_bytes(self, path: str) -> bytes:
        if path not in self.binaries:
            raise DocumentNotFoundError(path)
        return self.binaries[path]

    async def get_forward_links(self, path: str) -> list[str]:
        links = []
        for target in find_link_targets(self.documents.get(path, "")):
            resolved = self.resolve_link(target, path)
            if resolved and resolved != path and resolved not in links:
                links.append(resolved)
        return links

    async def get_backlinks(self, path: str) -> list[str]:
        return [
            source for source in sorted(self.documents)
            if path in await self.get_forward_links(source)
        ]

    async def get_tags(self, path: str) -> list[str]:
        return find_tags(self.documents.get(path, ""))


class RecordingErrorReporter:
    """Error reporter that keeps every report for assertions."""

    def __init__(self):
        self.reports: list[tuple[Exception, dict]] = []

    def report(self, error: Exception, context: dict) -> None:
        self.reports.append((error, context))


class RecordingProgress:
    """Progress reporter that records every update in order."""

    def __init__(self):
        self.events: list[tuple[str, int]] = []

    def add_total_steps(self, steps: int) -> None:
        self.events.append(("total", steps))

    def complete_steps(self, steps: int) -> None:
        self.events.append(("complete", steps))

    @property
    def total(self) -> int:
        return sum(n for kind, n in self.events if kind == "total")

    @property
    def completed(self) -> int:
        return sum(n for kind, n in self.events if kind == "complete")


class MockChatOllama:
    """Mock LLM that streams a scripted response in chunks."""

    def __init__(
        self,
        chunks: list[str] | None = None,
        usage_metadata: dict | None = None,
        response_metadata: dict | None = None,
        error: Exception | None = None,
    ):
        self.chunks = chunks if chunks is not None else ["Generated ", "content."]
        self.usage_metadata = usage_metadata
        self.response_metadata = response_metadata or {}
        self.error = error
        self.messages: list = []

    async def astream(self, messages: list):
        self.messages = messages
        if self.error is not None:
            raise self.error
        for text in self.chunks:
            yield AIMessageChunk(content=text)
        yield AIMessageChunk(
            content="",
            usage_metadata=self.usage_metadata,
            response_metadata=self.response_metadata,
        )


class FakeInference:
    """Inference collaborator returning a fixed text."""

    def __init__(
        self,
        text: str = "Generated content.",
        model: str = "llama3.2",
        usage: TokenUsage | None = None,
        block: bool = False,
        error: Exception | None = None,
    ):
        self.text = text
        self.model = model
        self.usage = usage
        self.block = block
        self.error = error
        self.calls: list[dict] = []

    async def execute(
        self,
        prompt,
        system_prompt=None,
        images=None,
        temperature=None,
        token=None,
        on_update=None,
    ) -> InferenceResult:
        self.calls.append(
            {
                "prompt": prompt,
                "system_prompt": system_prompt,
                "images": images,
                "temperature": temperature,
            }
        )
        if self.error is not None:
            raise self.error
        if self.block:
            await token.guard(asyncio.Event().wait(), "inference")
        if on_update is not None:
            on_update(self.text)
        usage = self.usage or TokenUsage(first_token_latency_ms=5)
        return InferenceResult(text=self.text, model=self.model, usage=usage)


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def vault_dir(tmp_path: Path) -> Path:
    """Create an empty temporary vault."""
    vault = tmp_path / "vault"
    vault.mkdir(parents=True, exist_ok=True)
    return vault


@pytest.fixture
def mock_settings(vault_dir: Path) -> Settings:
    """Create test settings pointing at the temporary vault."""
    return Settings(
        vault_dir=vault_dir,
        ollama_base_url="http://localhost:11434",
        embedding_model="nomic-embed-text",
        generation_model="llama3.2",
        chunk_size=200,
        chunk_overlap_ratio=0.1,
        embedding_batch_size=2,
        embedding_concurrency=2,
        retrieval_top_k=10,
        max_context_chars=4000,
        include_backlinks=True,
        show_model_info=False,
        show_performance=False,
        timezone="UTC",
        log_level="WARNING",
    )


@pytest.fixture
def mock_embedding_service() -> MockOllamaEmbeddings:
    """Create a hash-based embedding collaborator."""
    return MockOllamaEmbeddings()


@pytest.fixture
def error_reporter() -> RecordingErrorReporter:
    return RecordingErrorReporter()


@pytest.fixture
def progress() -> RecordingProgress:
    return RecordingProgress()


@pytest.fixture
def mock_llm() -> MockChatOllama:
    """Create a mock streaming LLM."""
    return MockChatOllama(
        chunks=["Hello", " world."],
        usage_metadata={"input_tokens": 12, "output_tokens": 4, "total_tokens": 16},
        response_metadata={
            "eval_count": 4,
            "eval_duration": 200_000_000,
            "prompt_eval_duration": 50_000_000,
            "load_duration": 10_000_000,
        },
    )


# ============================================================================
# Vault Fixtures
# ============================================================================


@pytest.fixture
def sample_graph() -> InMemoryDocumentGraph:
    """A small vault: a note linking to two others, one of which is backlinked."""
    return InMemoryDocumentGraph(
        {
            "Daily.md": "Working on [[Project]] and [[People/Alice]] today.",
            "Project.md": "# Project\n\nThe project ships in March.\n\nBudget is tight.",
            "People/Alice.md": "---\ntags: [person, team]\n---\nAlice leads the #design review.",
            "Retro.md": "Lessons from [[Project]]: plan earlier. #retro",
        }
    )


@pytest.fixture
def write_vault(vault_dir: Path):
    """Factory writing {relative path: content} into the vault."""

    def _write(files: dict[str, str | bytes]) -> Path:
        for relative, content in files.items():
            path = vault_dir / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content, encoding="utf-8")
        return vault_dir

    return _write


# ============================================================================
# Chunk Fixtures
# ============================================================================


@pytest.fixture
def sample_chunks_factory():
    """Factory for creating chunks with custom content."""

    def _create(contents: list[str], document_id: str = "doc.md") -> list[DocumentChunk]:
        return [
            DocumentChunk(
                chunk_id=f"{document_id}::chunk::{i:03d}",
                document_id=document_id,
                content=content,
                chunk_index=i,
                start_char=0,
                end_char=len(content),
            )
            for i, content in enumerate(contents)
        ]

    return _create


@pytest.fixture
def similarity_vector():
    """2-d unit vector whose cosine with [1, 0] equals the given value."""

    def _vector(similarity: float) -> list[float]:
        return [similarity, math.sqrt(1 - similarity**2)]

    return _vector


# ============================================================================
# Collaborator Factories
# ============================================================================


@pytest.fixture
def scripted_embeddings():
    """Factory for embeddings with hand-picked vectors."""

    def _create(vectors: dict[str, list[float]], fallback: list[float] | None = None) -> ScriptedEmbeddings:
        return ScriptedEmbeddings(vectors, fallback)

    return _create


@pytest.fixture
def blocking_embeddings() -> BlockingEmbeddings:
    return BlockingEmbeddings()


@pytest.fixture
def failing_embeddings() -> FailingEmbeddings:
    return FailingEmbeddings()


@pytest.fixture
def graph_factory():
    """Factory for in-memory document graphs."""

    def _create(
        documents: dict[str, str] | None = None,
        binaries: dict[str, bytes] | None = None,
        unreadable: set[str] | None = None,
    ) -> InMemoryDocumentGraph:
        return InMemoryDocumentGraph(documents, binaries, unreadable)

    return _create


@pytest.fixture
def chat_factory():
    """Factory for mock streaming LLMs."""

    def _create(**kwargs) -> MockChatOllama:
        return MockChatOllama(**kwargs)

    return _create


@pytest.fixture
def fake_inference_factory():
    """Factory for fake inference collaborators."""

    def _create(**kwargs) -> FakeInference:
        return FakeInference(**kwargs)

    return _create


# ============================================================================
# Session Fixtures
# ============================================================================


@pytest.fixture
def assistant_session(
    mock_settings, sample_graph, mock_embedding_service, fake_inference_factory, error_reporter
):
    """Session over the sample vault with deterministic collaborators."""
    return AssistantSession(
        settings=mock_settings,
        graph=sample_graph,
        embedder=mock_embedding_service,
        inference=fake_inference_factory(),
        error_reporter=error_reporter,
    )
