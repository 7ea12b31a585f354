"""Rough token estimates for when the provider reports no usage.

The numbers are heuristic: about four Latin characters or 0.7 CJK characters
per token, code a little denser, scaled up to track Ollama's counts.
"""

import math
import re

from ..models import TokenUsage

CJK_PATTERN = re.compile(r"[\u4e00-\u9fff]")
CODE_BLOCK_PATTERN = re.compile(r"```[\s\S]*?```")
INLINE_CODE_PATTERN = re.compile(r"`[^`]+`")
MARKDOWN_PATTERN = re.compile(r"[*_~`#\[\]()]")

CJK_TOKENS_PER_CHAR = 0.7
TEXT_TOKENS_PER_CHAR = 0.25
CODE_TOKENS_PER_CHAR = 0.285
MARKDOWN_TOKENS_PER_CHAR = 0.1
MODEL_ADJUSTMENT = 1.2

# Added to input estimates for the chat template around the prompt
INPUT_OVERHEAD_TOKENS = 60
MIN_INPUT_TOKENS = 15


def estimate_tokens(text: str, is_input: bool = False) -> int:
    """Estimate the token count of a text.

    Args:
        text: Text to estimate
        is_input: Add prompt-template overhead used for model input

    Returns:
        0 for empty text, otherwise a positive estimate
    """
    if not text:
        return 0

    code_blocks = CODE_BLOCK_PATTERN.findall(text)
    text_without_blocks = CODE_BLOCK_PATTERN.sub("", text)
    inline_code = INLINE_CODE_PATTERN.findall(text_without_blocks)
    plain_text = INLINE_CODE_PATTERN.sub("", text_without_blocks)

    cjk_chars = len(CJK_PATTERN.findall(plain_text))
    other_chars = len(plain_text) - cjk_chars
    code_chars = sum(len(c) for c in code_blocks) + sum(len(c) for c in inline_code)
    markdown_chars = len(MARKDOWN_PATTERN.findall(text))

    tokens = (
        math.ceil(cjk_chars * CJK_TOKENS_PER_CHAR)
        + math.ceil(other_chars * TEXT_TOKENS_PER_CHAR)
        + math.ceil(code_chars * CODE_TOKENS_PER_CHAR)
        + math.ceil(markdown_chars * MARKDOWN_TOKENS_PER_CHAR)
    )
    total = math.ceil(tokens * MODEL_ADJUSTMENT)

    if is_input:
        return max(total + INPUT_OVERHEAD_TOKENS, MIN_INPUT_TOKENS)
    return max(total, 1)


def estimate_token_usage(
    input_text: str,
    output_text: str,
    system_prompt: str | None = None,
) -> TokenUsage:
    """Estimated usage for one exchange, flagged as estimated."""
    system_tokens = estimate_tokens(system_prompt, is_input=True) if system_prompt else 0
    input_tokens = estimate_tokens(input_text, is_input=True) + system_tokens
    output_tokens = estimate_tokens(output_text)

    return TokenUsage(
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        total_tokens=input_tokens + output_tokens,
        estimated=True,
    )
