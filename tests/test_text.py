"""Tests for text and token helpers."""

from localgpt.utils import (
    estimate_token_usage,
    estimate_tokens,
    extract_image_links,
    process_generated_text,
    remove_thinking_tags,
)


class TestThinkingTags:
    """Tests for reasoning-block removal."""

    def test_leading_block_removed(self):
        assert remove_thinking_tags("<think>step 1\nstep 2</think>\n\nAnswer.") == "Answer."

    def test_block_not_at_start_is_kept(self):
        text = "Answer. <think>later</think>"

        assert remove_thinking_tags(text) == text


class TestProcessGeneratedText:
    """Tests for output wrapping."""

    def test_blank_output(self):
        assert process_generated_text("  \n ") == ""

    def test_wrapped_in_newlines(self):
        assert process_generated_text("  Hello there. ") == "\nHello there.\n"

    def test_thinking_removed_before_wrapping(self):
        assert process_generated_text("<think>hmm</think> Done.") == "\nDone.\n"


class TestExtractImageLinks:
    """Tests for image link extraction."""

    def test_images_extracted_and_removed(self):
        names, text = extract_image_links("See ![[cat.png]] and [[dog.JPG]] here.")

        assert names == ["cat.png", "dog.JPG"]
        assert text == "See  and  here."

    def test_non_image_links_kept(self):
        names, text = extract_image_links("[[notes.md]] ![[chart.jpeg]]")

        assert names == ["chart.jpeg"]
        assert text == "[[notes.md]] "

    def test_no_images(self):
        assert extract_image_links("Plain [[Note]]") == ([], "Plain [[Note]]")


class TestTokenEstimates:
    """Tests for heuristic token counts."""

    def test_empty_text_is_zero(self):
        assert estimate_tokens("") == 0
        assert estimate_tokens("", is_input=True) == 0

    def test_latin_text(self):
        assert estimate_tokens("Hello") == 3

    def test_input_overhead(self):
        assert estimate_tokens("Hello", is_input=True) == 63

    def test_cjk_text_counts_more_per_char(self):
        assert estimate_tokens("你好世界") == 4
        assert estimate_tokens("你好世界") > estimate_tokens("abcd")

    def test_longer_text_never_estimates_fewer(self):
        short = "A sentence about the project."
        longer = short + " " + "```python\nprint('hello')\n```" + " with `code` and **bold**."

        assert estimate_tokens(longer) >= estimate_tokens(short) > 0

    def test_usage_is_flagged_estimated(self):
        usage = estimate_token_usage("Hello", "Hello")

        assert usage.estimated is True
        assert usage.input_tokens == 63
        assert usage.output_tokens == 3
        assert usage.total_tokens == 66

    def test_system_prompt_adds_input(self):
        usage = estimate_token_usage("Hello", "Hello", system_prompt="Hello")

        assert usage.input_tokens == 126
