"""Tests for the prompt processing pipeline."""

import pytest

from localgpt.models import PromptContext
from localgpt.prompts import (
    PromptProcessor,
    merge_display_options,
    prepare_prompt,
    prepare_prompt_sync,
)
from localgpt.prompts.processors import BasicVariableProcessor, VariableProcessor
from localgpt.vault import VaultDocumentGraph
from localgpt.vault.tags import TagIndex

INSTRUCTION = "You are an assistant helping a user write more content in a document based on a prompt."


class TestPreparePromptSync:
    """Tests for resolution without collaborators."""

    def test_plain_template_appends_selection(self):
        result = prepare_prompt_sync(INSTRUCTION, "Some example text.", "")

        assert result.prompt == f"{INSTRUCTION}\n\nSome example text."

    def test_selection_marker_at_start(self):
        template = "{{=SELECTION=}}\nYou are an assistant..."
        result = prepare_prompt_sync(template, "Some example text.", "")

        assert result.prompt == "Some example text.\nYou are an assistant..."

    def test_context_appended_after_selection(self):
        result = prepare_prompt_sync("Task", "Sel", "Ctx")

        assert result.prompt == "Task\n\nSel\n\nContext:\nCtx"

    def test_absent_flags_are_none(self):
        result = prepare_prompt_sync("Task", "Sel", "")

        assert result.show_model_info is None
        assert result.show_performance is None

    def test_false_flag_is_exactly_false(self):
        result = prepare_prompt_sync("{{=SHOW_MODEL_INFO=}}=false\nTask", "Sel", "")

        assert result.show_model_info is False
        assert "SHOW_MODEL_INFO" not in result.prompt
        assert "false" not in result.prompt
        assert result.prompt == "Task\n\nSel"

    def test_result_is_trimmed(self):
        result = prepare_prompt_sync("\n\n  Task  \n", "", "")

        assert result.prompt == "Task"

    def test_empty_template(self):
        assert prepare_prompt_sync("", "Only selection", "").prompt == "Only selection"

    def test_tag_markers_left_without_graph(self):
        result = prepare_prompt_sync("{{=ALL_TAGS=}}", "", "")

        assert result.prompt == "{{=ALL_TAGS=}}"


class TestPromptProcessor:
    """Tests for the processor chain."""

    def test_default_order(self, mock_settings):
        processor = PromptProcessor.default(mock_settings)
        names = [type(p).__name__ for p in processor.processors]

        assert names == [
            "ControlParameterProcessor",
            "BasicVariableProcessor",
            "TimeVariableProcessor",
            "TagVariableProcessor",
        ]

    def test_needs_async_only_for_tag_markers(self, mock_settings):
        processor = PromptProcessor.default(mock_settings)

        assert processor.needs_async("{{=CURRENT_TAGS=}}")
        assert not processor.needs_async("{{=SELECTION=}} {{=CURRENT_TIME=}}")

    def test_registered_processor_runs_after_defaults(self):
        class UpperProcessor(VariableProcessor):
            def can_process(self, template):
                return True

            def is_async(self):
                return False

            def process(self, template, context):
                return template.upper()

        processor = PromptProcessor([BasicVariableProcessor()])
        processor.register_processor(UpperProcessor())
        result = processor.process_sync("{{=SELECTION=}}!", PromptContext(selected_text="hi"))

        assert result.prompt == "HI!"

    @pytest.mark.asyncio
    async def test_async_path_resolves_tags(self, mock_settings, sample_graph):
        processor = PromptProcessor.default(mock_settings)
        result = await processor.prepare(
            "Tags: {{=CURRENT_TAGS=}}",
            "Sel",
            "",
            graph=sample_graph,
            current_document="People/Alice.md",
        )

        assert result.prompt == "Tags: Current tags: #person, #team, #design\n\nSel"

    @pytest.mark.asyncio
    async def test_async_and_sync_paths_agree_without_tag_markers(self, mock_settings, sample_graph):
        processor = PromptProcessor.default(mock_settings)
        template = "{{=SHOW_PERFORMANCE=}}=true {{=SELECTION=}} {{=CONTEXT=}}"

        sync_result = processor.process_sync(
            template, PromptContext(selected_text="S", context_text="C")
        )
        async_result = await processor.prepare(template, "S", "C", graph=sample_graph)

        assert async_result == sync_result
        assert async_result.show_performance is True

    @pytest.mark.asyncio
    async def test_all_tags_uses_supplied_tag_index(self, mock_settings, sample_graph):
        tag_index = TagIndex(sample_graph)
        await tag_index.get()
        sample_graph.documents["New.md"] = "#fresh"

        processor = PromptProcessor.default(mock_settings)
        result = await processor.prepare(
            "{{=ALL_TAGS=}}", "", "", graph=sample_graph, tag_index=tag_index
        )

        # Cached statistics are reused until invalidated
        assert "#fresh" not in result.prompt
        assert result.prompt.startswith("Total tags: 4")

    @pytest.mark.asyncio
    async def test_unreadable_vault_files_do_not_fail_resolution(self, mock_settings, write_vault):
        vault = write_vault({"Good.md": "Plans #design", "bad.md": b"\xff\xfe#broken"})
        processor = PromptProcessor.default(mock_settings)

        result = await processor.prepare(
            "{{=ALL_TAGS=}}\n{{=CURRENT_TAGS=}}",
            "Sel",
            "",
            graph=VaultDocumentGraph(vault),
            current_document="Untitled.md",
        )

        assert result.prompt.startswith("Total tags: 1\n")
        assert result.prompt.endswith("The current document has no tags\n\nSel")

    @pytest.mark.asyncio
    async def test_prepare_prompt_module_function(self):
        result = await prepare_prompt(INSTRUCTION, "Some example text.", "")

        assert result.prompt == f"{INSTRUCTION}\n\nSome example text."


class TestMergeDisplayOptions:
    """Tests for flag priority across scopes."""

    def test_system_overrides_user(self):
        system = prepare_prompt_sync("{{=SHOW_MODEL_INFO=}}=false", "", "")
        user = prepare_prompt_sync("{{=SHOW_MODEL_INFO=}}=true", "", "")

        options = merge_display_options(
            system, user, default_show_model_info=True, default_show_performance=False
        )

        assert options.show_model_info is False

    def test_user_overrides_default(self):
        user = prepare_prompt_sync("{{=SHOW_PERFORMANCE=}}=true", "", "")

        options = merge_display_options(
            None, user, default_show_model_info=False, default_show_performance=False
        )

        assert options.show_performance is True
        assert options.show_model_info is False

    def test_default_when_no_scope_sets_flag(self):
        system = prepare_prompt_sync("sys", "", "")
        user = prepare_prompt_sync("usr", "", "")

        options = merge_display_options(
            system, user, default_show_model_info=True, default_show_performance=True
        )

        assert options.show_model_info is True
        assert options.show_performance is True
