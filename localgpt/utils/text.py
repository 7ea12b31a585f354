"""Text clean-up for model output and selections."""

import re

THINKING_PATTERN = re.compile(r"^<think>[\s\S]*?</think>\s*")
IMAGE_LINK_PATTERN = re.compile(r"(!?\[\[([^\[\]]+?\.(?:png|jpe?g))\]\])", re.IGNORECASE)


def remove_thinking_tags(text: str) -> str:
    """Drop a leading <think>...</think> block emitted by reasoning models."""
    return THINKING_PATTERN.sub("", text, count=1)


def process_generated_text(text: str) -> str:
    """Format model output for insertion below the selection.

    Blank output becomes "", anything else is wrapped in newlines.
    """
    if not text.strip():
        return ""

    clean_text = remove_thinking_tags(text).strip()
    return f"\n{clean_text}\n"


def extract_image_links(text: str) -> tuple[list[str], str]:
    """Pull ![[image.png]] / [[photo.jpg]] links out of a selection.

    Returns:
        (image file names in order of appearance, text with the links removed)
    """
    file_names = [match.group(2) for match in IMAGE_LINK_PATTERN.finditer(text)]
    cleaned_text = IMAGE_LINK_PATTERN.sub("", text)
    return file_names, cleaned_text
