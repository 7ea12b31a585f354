"""Text and token helpers used by the action flow."""

from .text import extract_image_links, process_generated_text, remove_thinking_tags
from .tokens import estimate_token_usage, estimate_tokens

__all__ = [
    "extract_image_links",
    "process_generated_text",
    "remove_thinking_tags",
    "estimate_token_usage",
    "estimate_tokens",
]
