"""End-to-end action flow around the prompt and retrieval core.

Selection in, formatted model output out: images are pulled out of the
selection, linked documents enhance the context, both templates are resolved,
the model streams, and the result is dressed with the optional model-info
header and performance footer.
"""

import asyncio
import base64
import posixpath
import time
from collections.abc import Callable

from ..config import Settings, get_settings
from ..core import (
    CancellationToken,
    DocumentError,
    ErrorReporter,
    LoggingErrorReporter,
    NullProgressReporter,
    OperationCancelledError,
    ProgressReporter,
    get_logger,
)
from ..models import (
    Action,
    ActionResult,
    DisplayOptions,
    ProcessResult,
    RetrievalOutcome,
    TokenUsage,
)
from ..prompts import PromptProcessor, merge_display_options
from ..prompts.processors import current_time
from ..rag import ContextEnhancer, EmbeddingProvider
from ..utils import (
    estimate_token_usage,
    extract_image_links,
    process_generated_text,
    remove_thinking_tags,
)
from ..vault.graph import DocumentGraph
from ..vault.tags import TagIndex
from .inference import InferenceProvider

logger = get_logger(__name__)

CAPABILITY_ICONS = {
    "dialogue": "💬",
    "vision": "👁️",
    "tool_use": "🔧",
    "text_to_image": "🖼️",
    "embedding": "🔍",
}

HEADER_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def capability_icons(capabilities: list[str]) -> str:
    return " ".join(CAPABILITY_ICONS.get(c, "") for c in capabilities)


def format_performance(usage: TokenUsage, total_time_ms: int) -> str:
    """Footer line with token counts and timings."""
    first_token = usage.first_token_latency_ms if usage.first_token_latency_ms is not None else "N/A"
    footer = (
        f"\n\n---\n[Toks: {usage.total_tokens} ↑{usage.input_tokens} ↓{usage.output_tokens} "
        f"{usage.generation_speed or '?'}toks/s | first token: {first_token}ms | total: {total_time_ms}ms"
    )

    # Ollama-reported phases
    phases = [
        f"{label}: {value}ms"
        for label, value in (
            ("prompt", usage.prompt_eval_ms),
            ("generation", usage.eval_ms),
            ("load", usage.load_ms),
        )
        if value
    ]
    if phases:
        footer += " | " + " | ".join(phases)

    return footer + "]:"


def format_output(
    text: str,
    model: str,
    display: DisplayOptions,
    usage: TokenUsage,
    total_time_ms: int,
    capabilities: list[str] | None = None,
    timestamp: str | None = None,
) -> str:
    """Strip thinking tags and add the header and footer the flags ask for."""
    cleaned = remove_thinking_tags(text).strip()

    if display.show_model_info:
        icons = capability_icons(capabilities or ["dialogue"])
        stamp = timestamp or current_time().strftime(HEADER_TIME_FORMAT)
        cleaned = f"[{model or 'AI'} {icons} {stamp}]:\n---\n{cleaned}"

    if display.show_performance:
        cleaned += format_performance(usage, total_time_ms)

    return cleaned


def image_data_url(path: str, data: bytes) -> str:
    extension = posixpath.splitext(path)[1].lower().lstrip(".")
    mime_type = "jpeg" if extension == "jpg" else extension
    return f"data:image/{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


class ActionExecutor:
    """Runs one user action against the selection."""

    def __init__(
        self,
        graph: DocumentGraph,
        inference: InferenceProvider,
        embedder: EmbeddingProvider | None = None,
        tag_index: TagIndex | None = None,
        error_reporter: ErrorReporter | None = None,
        progress: ProgressReporter | None = None,
        settings: Settings | None = None,
    ):
        self.settings = settings or get_settings()
        self.graph = graph
        self.inference = inference
        self.embedder = embedder
        self.tag_index = tag_index
        self.error_reporter = error_reporter or LoggingErrorReporter()
        self.progress = progress or NullProgressReporter()
        self.prompts = PromptProcessor.default(self.settings)

    async def run(
        self,
        action: Action,
        selected_text: str,
        active_document: str | None = None,
        token: CancellationToken | None = None,
        on_update: Callable[[str], None] | None = None,
    ) -> ActionResult:
        """Execute an action.

        Args:
            action: Action holding the user and optional system templates
            selected_text: Selection, or the whole document when nothing is selected
            active_document: Vault path of the document being edited
            token: Cancellation token for this action
            on_update: Receives the accumulated model text while streaming

        Returns:
            The formatted result, or one marked cancelled

        Raises:
            LLMError: If the inference collaborator fails
        """
        token = token or CancellationToken()

        file_names, selected_text = extract_image_links(selected_text)
        images = await self._load_images(file_names, active_document)

        retrieval = await ContextEnhancer(
            self.graph,
            self.embedder,
            error_reporter=self.error_reporter,
            progress=self.progress,
            settings=self.settings,
        ).run(selected_text, active_document, token)

        if token.cancelled:
            return self._cancelled(action, retrieval.outcome)

        user = await self._prepare(action.prompt, selected_text, retrieval.context, active_document)
        system = await self._prepare(action.system, "", "", active_document) if action.system else None

        display = merge_display_options(
            system,
            user,
            default_show_model_info=self.settings.show_model_info,
            default_show_performance=self.settings.show_performance,
        )

        start_time = time.time()
        try:
            response = await self.inference.execute(
                user.prompt,
                system_prompt=system.prompt if system else None,
                images=images or None,
                temperature=action.temperature,
                token=token,
                on_update=on_update,
            )
        except OperationCancelledError:
            return self._cancelled(action, retrieval.outcome)
        total_time_ms = round((time.time() - start_time) * 1000)

        usage = response.usage
        if not usage.is_complete:
            estimate = estimate_token_usage(
                user.prompt,
                response.text,
                system.prompt if system else None,
            )
            usage.input_tokens = estimate.input_tokens
            usage.output_tokens = estimate.output_tokens
            usage.total_tokens = estimate.total_tokens
            usage.estimated = True
        if not usage.generation_speed and usage.output_tokens and total_time_ms > 0:
            usage.generation_speed = round(usage.output_tokens * 1000 / total_time_ms)

        capabilities = ["dialogue", "vision"] if images else ["dialogue"]
        final_text = format_output(
            response.text,
            response.model,
            display,
            usage,
            total_time_ms,
            capabilities=capabilities,
            timestamp=current_time(self.settings.timezone).strftime(HEADER_TIME_FORMAT),
        )
        output = final_text if action.replace else process_generated_text(final_text)

        logger.info(
            "Action completed",
            action=action.name,
            model=response.model,
            image_count=len(images),
            context_outcome=retrieval.outcome.value,
            total_time_ms=total_time_ms,
            total_tokens=usage.total_tokens,
            estimated_tokens=usage.estimated,
        )

        return ActionResult(
            action_name=action.name,
            output=output,
            raw_text=response.text,
            model=response.model,
            display=display,
            usage=usage,
            total_time_ms=total_time_ms,
            replace=action.replace,
            context_outcome=retrieval.outcome,
        )

    async def _prepare(
        self,
        template: str,
        selected_text: str,
        context_text: str,
        active_document: str | None,
    ) -> ProcessResult:
        return await self.prompts.prepare(
            template or "",
            selected_text,
            context_text,
            graph=self.graph,
            current_document=active_document,
            exclude_folders=self.settings.exclude_folders,
            tag_index=self.tag_index,
        )

    async def _load_images(self, file_names: list[str], active_document: str | None) -> list[str]:
        """Base64 data URLs for the linked images that resolve; others are dropped."""
        if not file_names:
            return []

        await self.graph.load_index()

        async def load(name: str) -> str:
            path = self.graph.resolve_attachment(name, active_document or "")
            if path is None:
                logger.warning("Image not found in vault", image=name)
                return ""
            try:
                return image_data_url(path, await self.graph.read_bytes(path))
            except DocumentError as e:
                logger.warning("Failed to read image", image=name, error=e.message)
                return ""

        results = await asyncio.gather(*(load(name) for name in file_names))
        return [url for url in results if url]

    @staticmethod
    def _cancelled(action: Action, outcome: RetrievalOutcome) -> ActionResult:
        logger.info("Action cancelled", action=action.name)
        return ActionResult(
            action_name=action.name,
            output="",
            raw_text="",
            model="",
            display=DisplayOptions(show_model_info=False, show_performance=False),
            replace=action.replace,
            cancelled=True,
            context_outcome=outcome,
        )
