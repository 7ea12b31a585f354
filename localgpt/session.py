"""Assistant session: owns collaborators, caches and in-flight actions.

Everything that outlives a single action lives here: the document graph, the
tag cache and the model clients. Per-action state (cancellation token,
progress, vector store) is created fresh for each call.
"""

from collections.abc import Callable

from .config import Settings, get_settings
from .core import (
    CancellationToken,
    ErrorReporter,
    LoggingErrorReporter,
    ProgressTracker,
    get_logger,
)
from .models import Action, ActionResult, ProcessResult, RetrievalResult
from .prompts import PromptProcessor
from .rag import ContextEnhancer, EmbeddingProvider, EmbeddingService
from .services.actions import ActionExecutor
from .services.inference import InferenceProvider, InferenceService
from .vault import DocumentGraph, TagIndex, VaultDocumentGraph

logger = get_logger(__name__)


class AssistantSession:
    """Long-lived owner of the assistant's collaborators."""

    def __init__(
        self,
        settings: Settings | None = None,
        graph: DocumentGraph | None = None,
        embedder: EmbeddingProvider | None = None,
        inference: InferenceProvider | None = None,
        error_reporter: ErrorReporter | None = None,
    ):
        self.settings = settings or get_settings()
        self.graph = graph or VaultDocumentGraph(self.settings.vault_dir)
        self.tag_index = TagIndex(
            self.graph,
            exclude_folders=self.settings.exclude_folders,
            cache_enabled=self.settings.tag_cache_enabled,
        )
        self.embedder = embedder or EmbeddingService(settings=self.settings)
        self.inference = inference or InferenceService(settings=self.settings)
        self.error_reporter = error_reporter or LoggingErrorReporter()
        self.prompts = PromptProcessor.default(self.settings)
        self._tokens: list[CancellationToken] = []

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------

    @property
    def active_count(self) -> int:
        return len(self._tokens)

    def new_token(self) -> CancellationToken:
        """Create and track the token for one user action."""
        token = CancellationToken()
        self._tokens.append(token)
        return token

    def release(self, token: CancellationToken) -> None:
        if token in self._tokens:
            self._tokens.remove(token)

    def abort_all(self) -> int:
        """Cancel every in-flight action; returns how many were cancelled."""
        tokens, self._tokens = self._tokens, []
        for token in tokens:
            token.cancel()
        if tokens:
            logger.info("Aborted in-flight actions", count=len(tokens))
        return len(tokens)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def resolve_prompt(
        self,
        template: str,
        selected_text: str = "",
        context_text: str = "",
        active_document: str | None = None,
        use_vault: bool = True,
    ) -> ProcessResult:
        """Resolve a template, with vault access for tag markers when asked."""
        return await self.prompts.prepare(
            template,
            selected_text,
            context_text,
            graph=self.graph if use_vault else None,
            current_document=active_document,
            exclude_folders=self.settings.exclude_folders,
            tag_index=self.tag_index,
        )

    async def enhance(self, selected_text: str, active_document: str | None) -> RetrievalResult:
        """Retrieve context for a selection under a tracked token."""
        token = self.new_token()
        try:
            return await ContextEnhancer(
                self.graph,
                self.embedder,
                error_reporter=self.error_reporter,
                progress=ProgressTracker(),
                settings=self.settings,
            ).run(selected_text, active_document, token)
        finally:
            self.release(token)

    async def run_action(
        self,
        action: Action,
        selected_text: str,
        active_document: str | None = None,
        on_update: Callable[[str], None] | None = None,
    ) -> ActionResult:
        """Run an action under a tracked token."""
        token = self.new_token()
        try:
            executor = ActionExecutor(
                self.graph,
                self.inference,
                embedder=self.embedder,
                tag_index=self.tag_index,
                error_reporter=self.error_reporter,
                progress=ProgressTracker(),
                settings=self.settings,
            )
            return await executor.run(action, selected_text, active_document, token, on_update)
        finally:
            self.release(token)

    async def tag_stats(self, force_refresh: bool = False) -> dict[str, int]:
        return await self.tag_index.get(force_refresh=force_refresh)

    def refresh_vault(self) -> None:
        """Drop cached file listings, backlinks and tag statistics."""
        refresh = getattr(self.graph, "refresh", None)
        if refresh is not None:
            refresh()
        self.tag_index.invalidate()


# Singleton instance
_session: AssistantSession | None = None


def get_session() -> AssistantSession:
    """Get the singleton session instance."""
    global _session
    if _session is None:
        _session = AssistantSession()
    return _session
