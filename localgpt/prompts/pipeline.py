"""Prompt processing pipeline.

An ordered chain of variable processors turns a template into the final
prompt. Order matters and is fixed:

1. Control parameters are stripped first so their markers can never appear
   inside inserted selection or context text.
2. Selection and context placement (including conditional blocks).
3. Current time.
4. Tags, the only asynchronous step, last.
"""

from ..config import Settings, get_settings
from ..models import DisplayOptions, ProcessResult, PromptContext
from ..vault.graph import DocumentGraph
from ..vault.tags import TagIndex
from .processors import (
    BasicVariableProcessor,
    ControlParameterProcessor,
    ProcessOutput,
    TagVariableProcessor,
    TimeVariableProcessor,
    VariableProcessor,
)


class PromptProcessor:
    """Runs registered processors over a template, in registration order."""

    def __init__(self, processors: list[VariableProcessor] | None = None):
        self.processors: list[VariableProcessor] = list(processors or [])

    @classmethod
    def default(cls, settings: Settings | None = None) -> "PromptProcessor":
        """Build the standard four-step pipeline."""
        settings = settings or get_settings()
        return cls(
            [
                ControlParameterProcessor(),
                BasicVariableProcessor(),
                TimeVariableProcessor(timezone=settings.timezone),
                TagVariableProcessor(summary_limit=settings.tag_summary_limit),
            ]
        )

    def register_processor(self, processor: VariableProcessor) -> None:
        self.processors.append(processor)

    def needs_async(self, template: str) -> bool:
        """Whether any processor both matches the template and is asynchronous."""
        return any(p.can_process(template) and p.is_async() for p in self.processors)

    def process_sync(self, template: str, context: PromptContext) -> ProcessResult:
        """Run only the synchronous processors."""
        result = ProcessResult(prompt=template)

        for processor in self.processors:
            if processor.is_async() or not processor.can_process(result.prompt):
                continue
            result = self._fold(result, processor.process(result.prompt, context))

        result.prompt = result.prompt.strip()
        return result

    async def process(self, template: str, context: PromptContext) -> ProcessResult:
        """Run the synchronous pass, then each asynchronous processor in order."""
        result = self.process_sync(template, context)

        for processor in self.processors:
            if not processor.is_async() or not processor.can_process(result.prompt):
                continue
            result = self._fold(result, await processor.process(result.prompt, context))

        result.prompt = result.prompt.strip()
        return result

    async def prepare(
        self,
        template: str,
        selected_text: str,
        context_text: str,
        graph: DocumentGraph | None = None,
        current_document: str | None = None,
        exclude_folders: list[str] | None = None,
        tag_index: TagIndex | None = None,
    ) -> ProcessResult:
        """Resolve a template, choosing the cheapest path that is correct.

        The full asynchronous pass is used when a document graph is supplied
        or when an asynchronous processor matches the template; otherwise
        only the synchronous pass runs.
        """
        context = PromptContext(
            selected_text=selected_text,
            context_text=context_text,
            graph=graph,
            current_document=current_document,
            exclude_folders=exclude_folders or [],
            tag_index=tag_index,
        )

        if graph is not None or self.needs_async(template):
            return await self.process(template, context)
        return self.process_sync(template, context)

    @staticmethod
    def _fold(result: ProcessResult, processed: ProcessOutput) -> ProcessResult:
        """Carry a processor's output forward, keeping flags already set."""
        if isinstance(processed, ProcessResult):
            return ProcessResult(
                prompt=processed.prompt,
                show_model_info=(
                    processed.show_model_info
                    if processed.show_model_info is not None
                    else result.show_model_info
                ),
                show_performance=(
                    processed.show_performance
                    if processed.show_performance is not None
                    else result.show_performance
                ),
            )
        return ProcessResult(
            prompt=processed,
            show_model_info=result.show_model_info,
            show_performance=result.show_performance,
        )


def merge_display_options(
    *scopes: ProcessResult | None,
    default_show_model_info: bool,
    default_show_performance: bool,
) -> DisplayOptions:
    """Merge display flags across scopes, highest priority first.

    The first scope with an explicit value wins; the global default applies
    only when no scope sets the flag. Pass scopes as (system, user).
    """
    show_model_info = next(
        (s.show_model_info for s in scopes if s is not None and s.show_model_info is not None),
        default_show_model_info,
    )
    show_performance = next(
        (s.show_performance for s in scopes if s is not None and s.show_performance is not None),
        default_show_performance,
    )
    return DisplayOptions(show_model_info=show_model_info, show_performance=show_performance)


# Singleton instance
_prompt_processor: PromptProcessor | None = None


def get_prompt_processor() -> PromptProcessor:
    """Get the singleton prompt processor instance."""
    global _prompt_processor
    if _prompt_processor is None:
        _prompt_processor = PromptProcessor.default()
    return _prompt_processor


async def prepare_prompt(
    template: str,
    selected_text: str,
    context_text: str,
    graph: DocumentGraph | None = None,
    current_document: str | None = None,
    exclude_folders: list[str] | None = None,
    tag_index: TagIndex | None = None,
) -> ProcessResult:
    """Resolve a template with the default pipeline."""
    return await get_prompt_processor().prepare(
        template or "",
        selected_text,
        context_text,
        graph=graph,
        current_document=current_document,
        exclude_folders=exclude_folders,
        tag_index=tag_index,
    )


def prepare_prompt_sync(template: str, selected_text: str, context_text: str) -> ProcessResult:
    """Resolve a template without any collaborator, outside an event loop.

    Tag markers are left in place since they need the document graph.
    """
    context = PromptContext(selected_text=selected_text, context_text=context_text)
    return get_prompt_processor().process_sync(template or "", context)
