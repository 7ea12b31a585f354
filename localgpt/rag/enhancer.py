"""Retrieval orchestrator: selection text in, ranked context string out.

One enhancer run owns its vector store and shares nothing with concurrent
runs. Failures are absorbed here and degrade to an empty context; the calling
action carries on with the unenhanced prompt.
"""

import time

from ..config import Settings, get_settings
from ..core import (
    CancellationToken,
    DocumentReadError,
    ErrorReporter,
    LoggingErrorReporter,
    NullProgressReporter,
    OperationCancelledError,
    ProgressReporter,
    get_logger,
    guard,
)
from ..models import DocumentChunk, LinkedDocument, LinkSource, RetrievalOutcome, RetrievalResult
from ..vault.graph import DocumentGraph
from .chunking import DocumentChunker
from .embedding import EmbeddingProvider
from .links import LinkExtractor
from .vectorstore import VectorStore

logger = get_logger(__name__)


class ContextEnhancer:
    """Drives link extraction, chunking, embedding and the similarity query."""

    def __init__(
        self,
        graph: DocumentGraph,
        embedder: EmbeddingProvider | None,
        error_reporter: ErrorReporter | None = None,
        progress: ProgressReporter | None = None,
        chunker: DocumentChunker | None = None,
        settings: Settings | None = None,
    ):
        """Initialize the orchestrator.

        Args:
            graph: Document graph used to resolve links and read documents
            embedder: Embedding collaborator; None skips retrieval entirely
            error_reporter: Receives absorbed failures. Defaults to logging.
            progress: Receives work totals and completed steps
            chunker: Document chunker. Defaults to one built from settings.
            settings: Settings to read defaults from. Defaults to get_settings().
        """
        self.settings = settings or get_settings()
        self.graph = graph
        self.embedder = embedder
        self.error_reporter = error_reporter or LoggingErrorReporter()
        self.progress = progress or NullProgressReporter()
        self.chunker = chunker or DocumentChunker(settings=self.settings)
        self.links = LinkExtractor(graph, exclude_folders=self.settings.exclude_folders)

    async def enhance(
        self,
        selected_text: str,
        active_document: str | None,
        token: CancellationToken | None = None,
    ) -> str:
        """Context string for the selection, or "" when none is available."""
        result = await self.run(selected_text, active_document, token)
        return result.context

    async def run(
        self,
        selected_text: str,
        active_document: str | None,
        token: CancellationToken | None = None,
    ) -> RetrievalResult:
        """Run the pipeline and return the context with its outcome.

        Every phase checks the token first. Cancellation yields CANCELLED and
        is never reported; other failures are reported and yield FAILED. Both
        carry an empty context.
        """
        token = token or CancellationToken()

        if self.embedder is None or not active_document:
            logger.debug(
                "Context enhancement skipped",
                has_embedder=self.embedder is not None,
                has_active_document=bool(active_document),
            )
            return RetrievalResult(context="", outcome=RetrievalOutcome.SKIPPED)

        if token.cancelled:
            return RetrievalResult(context="", outcome=RetrievalOutcome.CANCELLED)

        await self.graph.load_index()
        documents = self.links.extract(selected_text, active_document)
        if not documents:
            return RetrievalResult(context="", outcome=RetrievalOutcome.NO_LINKS)

        start_time = time.time()
        state: dict = {"documents": documents, "chunk_count": 0}

        try:
            context = await guard(
                lambda: self._retrieve(selected_text, active_document, token, state),
                self.error_reporter,
                {
                    "operation": "context_enhancement",
                    "message": "Error processing related documents. Continuing with original text.",
                    "active_document": active_document,
                },
                default=None,
            )
        except OperationCancelledError as e:
            logger.info("Context enhancement cancelled", phase=e.phase)
            return RetrievalResult(
                context="",
                outcome=RetrievalOutcome.CANCELLED,
                documents=state["documents"],
            )

        retrieval_time_ms = (time.time() - start_time) * 1000

        if context is None:
            outcome = RetrievalOutcome.FAILED
            context = ""
        elif context.strip():
            outcome = RetrievalOutcome.ENHANCED
        else:
            outcome = RetrievalOutcome.NO_RESULTS
            context = ""

        logger.info(
            "Context enhancement finished",
            outcome=outcome.value,
            document_count=len(state["documents"]),
            chunk_count=state["chunk_count"],
            context_length=len(context),
            retrieval_time_ms=round(retrieval_time_ms, 1),
        )

        return RetrievalResult(
            context=context,
            outcome=outcome,
            documents=state["documents"],
            chunk_count=state["chunk_count"],
            retrieval_time_ms=retrieval_time_ms,
        )

    async def _retrieve(
        self,
        selected_text: str,
        active_document: str,
        token: CancellationToken,
        state: dict,
    ) -> str:
        token.raise_if_cancelled("links")
        documents: list[LinkedDocument] = state["documents"]
        if self.settings.include_backlinks:
            documents = await self.links.expand_backlinks(documents, active_document)
            state["documents"] = documents

        self.progress.add_total_steps(len(documents))

        token.raise_if_cancelled("chunking")
        chunks = await self._chunk_documents(documents, token)
        state["chunk_count"] = len(chunks)
        if not chunks:
            return ""

        token.raise_if_cancelled("embedding")
        self.progress.add_total_steps(len(chunks))
        store = VectorStore(self.embedder, settings=self.settings)
        await store.build(chunks, token=token, progress=self.progress)

        token.raise_if_cancelled("query")
        return await store.query(selected_text, token=token)

    async def _chunk_documents(
        self,
        documents: list[LinkedDocument],
        token: CancellationToken,
    ) -> list[DocumentChunk]:
        """Read and chunk each document in order.

        Backlinked notes that cannot be read are skipped; a directly linked
        document that cannot be read fails the run.
        """
        chunks: list[DocumentChunk] = []

        for document in documents:
            token.raise_if_cancelled("chunking")
            try:
                text = await token.guard(self.graph.read_text(document.path), "reading")
            except DocumentReadError as e:
                if document.source is LinkSource.BACKLINK:
                    logger.warning("Skipping unreadable backlink", path=document.path, error=e.message)
                    self.progress.complete_steps(1)
                    continue
                raise

            chunks.extend(
                self.chunker.chunk_document(
                    document_id=document.path,
                    content=text,
                    metadata={"title": document.title, "source": document.source.value},
                )
            )
            self.progress.complete_steps(1)

        return chunks
