"""Services wrapping the core: streaming inference and the action flow."""

from .actions import ActionExecutor, format_output, format_performance
from .inference import InferenceProvider, InferenceService, build_messages, usage_from_metadata

__all__ = [
    "ActionExecutor",
    "format_output",
    "format_performance",
    "InferenceProvider",
    "InferenceService",
    "build_messages",
    "usage_from_metadata",
]
