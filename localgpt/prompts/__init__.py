"""Prompt templating: marker constants, processors and the pipeline."""

from .keywords import (
    ALL_TAGS_KEYWORD,
    CONTEXT_CONDITION_END,
    CONTEXT_CONDITION_START,
    CONTEXT_KEYWORD,
    CURRENT_TAGS_KEYWORD,
    CURRENT_TIME_KEYWORD,
    SELECTION_KEYWORD,
    SHOW_MODEL_INFO_KEYWORD,
    SHOW_PERFORMANCE_KEYWORD,
)
from .pipeline import (
    PromptProcessor,
    get_prompt_processor,
    merge_display_options,
    prepare_prompt,
    prepare_prompt_sync,
)
from .processors import (
    BasicVariableProcessor,
    ControlParameterProcessor,
    TagVariableProcessor,
    TimeVariableProcessor,
    VariableProcessor,
)

__all__ = [
    # Keywords
    "ALL_TAGS_KEYWORD",
    "CONTEXT_CONDITION_END",
    "CONTEXT_CONDITION_START",
    "CONTEXT_KEYWORD",
    "CURRENT_TAGS_KEYWORD",
    "CURRENT_TIME_KEYWORD",
    "SELECTION_KEYWORD",
    "SHOW_MODEL_INFO_KEYWORD",
    "SHOW_PERFORMANCE_KEYWORD",
    # Pipeline
    "PromptProcessor",
    "get_prompt_processor",
    "merge_display_options",
    "prepare_prompt",
    "prepare_prompt_sync",
    # Processors
    "BasicVariableProcessor",
    "ControlParameterProcessor",
    "TagVariableProcessor",
    "TimeVariableProcessor",
    "VariableProcessor",
]
