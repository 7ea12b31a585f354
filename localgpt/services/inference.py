"""Streaming inference against a local Ollama model.

The action flow wraps this collaborator; it shares the action's cancellation
token, so aborting an action stops the stream mid-flight.
"""

import time
from collections.abc import Callable
from typing import Any, Protocol

from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage
from langchain_ollama import ChatOllama

from ..config import Settings, get_settings
from ..core import CancellationToken, LLMError, OperationCancelledError, get_logger
from ..models import InferenceResult, TokenUsage

logger = get_logger(__name__)

NANOSECONDS_PER_MS = 1_000_000


class InferenceProvider(Protocol):
    """Inference collaborator consumed by the action flow."""

    model: str

    async def execute(
        self,
        prompt: str,
        system_prompt: str | None = None,
        images: list[str] | None = None,
        temperature: float | None = None,
        token: CancellationToken | None = None,
        on_update: Callable[[str], None] | None = None,
    ) -> InferenceResult: ...


def build_messages(
    prompt: str,
    system_prompt: str | None = None,
    images: list[str] | None = None,
) -> list[BaseMessage]:
    """Chat messages for one request; images are data URLs."""
    messages: list[BaseMessage] = []
    if system_prompt:
        messages.append(SystemMessage(content=system_prompt))

    if images:
        content: list[Any] = [{"type": "text", "text": prompt}]
        content.extend({"type": "image_url", "image_url": url} for url in images)
        messages.append(HumanMessage(content=content))
    else:
        messages.append(HumanMessage(content=prompt))

    return messages


def usage_from_metadata(
    usage_metadata: dict[str, Any] | None,
    response_metadata: dict[str, Any],
    first_token_latency_ms: int | None,
) -> TokenUsage:
    """Build token usage from what Ollama reported on the final chunk.

    Durations arrive in nanoseconds.
    """
    usage = TokenUsage(first_token_latency_ms=first_token_latency_ms)

    if usage_metadata:
        usage.input_tokens = usage_metadata.get("input_tokens")
        usage.output_tokens = usage_metadata.get("output_tokens")
        usage.total_tokens = usage_metadata.get("total_tokens")

    eval_count = response_metadata.get("eval_count")
    eval_duration = response_metadata.get("eval_duration")
    if eval_count and eval_duration:
        usage.generation_speed = round(eval_count / (eval_duration / 1_000_000_000))
    if eval_duration:
        usage.eval_ms = round(eval_duration / NANOSECONDS_PER_MS)
    if response_metadata.get("prompt_eval_duration"):
        usage.prompt_eval_ms = round(response_metadata["prompt_eval_duration"] / NANOSECONDS_PER_MS)
    if response_metadata.get("load_duration"):
        usage.load_ms = round(response_metadata["load_duration"] / NANOSECONDS_PER_MS)

    return usage


class InferenceService:
    """Streams completions from ChatOllama."""

    def __init__(self, model: str | None = None, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.model = model or self.settings.generation_model
        self._llm_cache: dict[tuple[str, float], ChatOllama] = {}

    def model_for(self, has_images: bool) -> str:
        """Vision model when images are attached and one is configured."""
        if has_images and self.settings.vision_model:
            return self.settings.vision_model
        return self.model

    def _get_or_create_llm(self, model: str, temperature: float) -> ChatOllama:
        """Get or create a cached LLM instance."""
        key = (model, temperature)
        if key not in self._llm_cache:
            self._llm_cache[key] = ChatOllama(
                model=model,
                base_url=self.settings.ollama_base_url,
                temperature=temperature,
                num_ctx=self.settings.ollama_num_ctx,
            )
            logger.info(
                "Created LLM instance",
                model=model,
                temperature=temperature,
                num_ctx=self.settings.ollama_num_ctx,
            )
        return self._llm_cache[key]

    async def execute(
        self,
        prompt: str,
        system_prompt: str | None = None,
        images: list[str] | None = None,
        temperature: float | None = None,
        token: CancellationToken | None = None,
        on_update: Callable[[str], None] | None = None,
    ) -> InferenceResult:
        """Stream a completion, passing the accumulated text to on_update.

        Raises:
            OperationCancelledError: If the token fires; partial text is discarded
            LLMError: If the model call fails
        """
        token = token or CancellationToken()
        model = self.model_for(bool(images))
        if temperature is None:
            temperature = self.settings.default_temperature

        try:
            return await token.guard(
                self._stream(model, temperature, prompt, system_prompt, images, on_update),
                "inference",
            )
        except OperationCancelledError:
            logger.info("Inference cancelled", model=model)
            raise
        except LLMError:
            raise
        except Exception as e:
            logger.error("LLM generation failed", model=model, error=str(e))
            raise LLMError(str(e), model)

    async def _stream(
        self,
        model: str,
        temperature: float,
        prompt: str,
        system_prompt: str | None,
        images: list[str] | None,
        on_update: Callable[[str], None] | None,
    ) -> InferenceResult:
        llm = self._get_or_create_llm(model, temperature)
        messages = build_messages(prompt, system_prompt, images)

        start_time = time.time()
        first_token_latency_ms: int | None = None
        text = ""
        usage_metadata: dict[str, Any] | None = None
        response_metadata: dict[str, Any] = {}

        async for chunk in llm.astream(messages):
            if isinstance(chunk.content, str) and chunk.content:
                if first_token_latency_ms is None:
                    first_token_latency_ms = round((time.time() - start_time) * 1000)
                text += chunk.content
                if on_update is not None:
                    on_update(text)
            if chunk.usage_metadata:
                usage_metadata = dict(chunk.usage_metadata)
            if chunk.response_metadata:
                response_metadata.update(chunk.response_metadata)

        logger.info(
            "Inference completed",
            model=model,
            response=text,
            duration_ms=round((time.time() - start_time) * 1000),
            has_usage=usage_metadata is not None,
        )

        return InferenceResult(
            text=text,
            model=model,
            usage=usage_from_metadata(usage_metadata, response_metadata, first_token_latency_ms),
        )
