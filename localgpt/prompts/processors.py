"""Variable processors for prompt templates.

Each processor recognises a family of markers and rewrites the template.
Processors never raise on malformed input: anything they do not recognise is
left untouched.
"""

import re
from abc import ABC, abstractmethod
from collections.abc import Awaitable
from datetime import datetime
from zoneinfo import ZoneInfo

from ..core import DocumentError, get_logger
from ..models import ProcessResult, PromptContext
from ..vault.tags import TagIndex
from .keywords import (
    ALL_TAGS_KEYWORD,
    CONTEXT_CONDITION_END,
    CONTEXT_CONDITION_START,
    CONTEXT_KEYWORD,
    CONTEXT_LABEL,
    CURRENT_TAGS_KEYWORD,
    CURRENT_TIME_KEYWORD,
    SELECTION_KEYWORD,
    SHOW_MODEL_INFO_KEYWORD,
    SHOW_PERFORMANCE_KEYWORD,
)

logger = get_logger(__name__)

ProcessOutput = str | ProcessResult

NO_CURRENT_TAGS_TEXT = "The current document has no tags"


def current_time(timezone: str | None = None) -> datetime:
    """Aware current time in the given IANA zone, or the local zone."""
    if timezone:
        return datetime.now(ZoneInfo(timezone))
    return datetime.now().astimezone()


class VariableProcessor(ABC):
    """A single step of the prompt pipeline."""

    @abstractmethod
    def can_process(self, template: str) -> bool:
        """Whether this processor has anything to do for the template."""

    @abstractmethod
    def is_async(self) -> bool:
        """Whether process() returns an awaitable."""

    @abstractmethod
    def process(
        self, template: str, context: PromptContext
    ) -> ProcessOutput | Awaitable[ProcessOutput]:
        """Rewrite the template."""


class ControlParameterProcessor(VariableProcessor):
    """Strips display-control markers and reports their boolean values."""

    _MODEL_INFO_PATTERN = re.compile(re.escape(SHOW_MODEL_INFO_KEYWORD) + r"=(true|false)")
    _PERFORMANCE_PATTERN = re.compile(re.escape(SHOW_PERFORMANCE_KEYWORD) + r"=(true|false)")

    def can_process(self, template: str) -> bool:
        return SHOW_MODEL_INFO_KEYWORD in template or SHOW_PERFORMANCE_KEYWORD in template

    def is_async(self) -> bool:
        return False

    def process(self, template: str, context: PromptContext) -> ProcessResult:
        template, show_model_info = self._extract_flag(template, self._MODEL_INFO_PATTERN)
        template, show_performance = self._extract_flag(template, self._PERFORMANCE_PATTERN)

        return ProcessResult(
            prompt=template,
            show_model_info=show_model_info,
            show_performance=show_performance,
        )

    @staticmethod
    def _extract_flag(template: str, pattern: re.Pattern) -> tuple[str, bool | None]:
        """Return the template without the marker and the first marker's value.

        A marker without a literal =true/=false suffix is left in place.
        """
        match = pattern.search(template)
        if match is None:
            return template, None
        return pattern.sub("", template), match.group(1) == "true"


class BasicVariableProcessor(VariableProcessor):
    """Places the selection and retrieved context into the template."""

    def can_process(self, template: str) -> bool:
        return True

    def is_async(self) -> bool:
        return False

    def process(self, template: str, context: PromptContext) -> str:
        selected_text = context.selected_text or ""
        context_text = context.context_text or ""

        if SELECTION_KEYWORD in template:
            template = template.replace(SELECTION_KEYWORD, selected_text)
        else:
            template = "\n\n".join(part for part in (template, selected_text) if part)

        if CONTEXT_KEYWORD in template:
            template = template.replace(CONTEXT_KEYWORD, context_text)
        elif context_text.strip():
            template = "\n\n".join(
                part for part in (template, CONTEXT_LABEL + context_text) if part
            )

        return self._resolve_conditional_blocks(template, bool(context_text.strip()))

    @staticmethod
    def _resolve_conditional_blocks(template: str, has_context: bool) -> str:
        """Keep or drop every CONTEXT_START ... CONTEXT_END block.

        One boundary character before the start marker and one after the end
        marker are consumed along with the markers. A start marker with no
        end marker after it stays literal.
        """
        search_from = 0
        while True:
            start = template.find(CONTEXT_CONDITION_START, search_from)
            if start == -1:
                break
            inner_start = start + len(CONTEXT_CONDITION_START)
            end = template.find(CONTEXT_CONDITION_END, inner_start)
            if end == -1:
                break

            block = template[inner_start:end] if has_context else ""
            cut_start = max(start - 1, 0)
            cut_end = end + len(CONTEXT_CONDITION_END) + 1

            template = template[:cut_start] + block + template[cut_end:]
            search_from = cut_start + len(block)

        return template


class TimeVariableProcessor(VariableProcessor):
    """Replaces the time marker with the current local time."""

    TIME_FORMAT = "%Y-%m-%d %H:%M:%S %A"

    def __init__(self, timezone: str | None = None):
        self.timezone = timezone

    def can_process(self, template: str) -> bool:
        return CURRENT_TIME_KEYWORD in template

    def is_async(self) -> bool:
        return False

    def process(self, template: str, context: PromptContext) -> str:
        return template.replace(CURRENT_TIME_KEYWORD, self.now().strftime(self.TIME_FORMAT))

    def now(self) -> datetime:
        """Evaluated on every call; the result is never cached."""
        return current_time(self.timezone)


class TagVariableProcessor(VariableProcessor):
    """Replaces tag markers with summaries built from the document graph."""

    def __init__(self, summary_limit: int = 100):
        self.summary_limit = summary_limit

    def can_process(self, template: str) -> bool:
        return ALL_TAGS_KEYWORD in template or CURRENT_TAGS_KEYWORD in template

    def is_async(self) -> bool:
        return True

    async def process(self, template: str, context: PromptContext) -> str:
        if context.graph is None:
            return template

        if ALL_TAGS_KEYWORD in template:
            tag_index = context.tag_index or TagIndex(
                context.graph,
                exclude_folders=context.exclude_folders,
            )
            summary = await tag_index.summary(limit=self.summary_limit)
            template = template.replace(ALL_TAGS_KEYWORD, summary)

        if CURRENT_TAGS_KEYWORD in template:
            current_tags_text = NO_CURRENT_TAGS_TEXT
            if context.current_document:
                try:
                    tags = await context.graph.get_tags(context.current_document)
                except DocumentError as e:
                    logger.warning(
                        "Current document tags unavailable",
                        path=context.current_document,
                        error=e.message,
                    )
                    tags = []
                if tags:
                    current_tags_text = f"Current tags: {', '.join(tags)}"
            template = template.replace(CURRENT_TAGS_KEYWORD, current_tags_text)

        return template
