"""Tests for the built-in tools, run through the controller."""

import asyncio

import pytest

from conftest import conversation
from smartroute.tools.base.conversation import ConversationContext, WorkspaceType
from smartroute.tools.base.tool_errors import InvalidParametersError
from smartroute.tools.base.tool_interface import ToolExecutionResult, ToolParameters
from smartroute.tools.builtin import builtin_tools
from smartroute.tools.builtin.code_analysis import estimate_complexity
from smartroute.tools.builtin.text_analysis import TextAnalysisHandler, count_sentences
from smartroute.tools.builtin.web_research import SourceCrossCheckValidator


def execute(controller, tool_id, context, **flags):
    values = flags.pop("values", {})
    return asyncio.run(controller.execute_tool(tool_id, ToolParameters(values=values, **flags), context))


def test_builtin_tools_are_fresh_instances():
    first, second = builtin_tools(), builtin_tools()

    assert [t.id for t in first] == [t.id for t in second]
    assert all(a.handler is not b.handler for a, b in zip(first, second))


class TestTextAnalysis:

    def test_direct(self, builtin_controller):
        result = execute(builtin_controller, "text_analysis", conversation(WorkspaceType.GENERAL, "hi"),
                         values={"text": "Hello world. How are you?"})

        assert result.success
        assert result.confidence == 0.95
        assert result.metadata == {"word_count": 5, "sentence_count": 2, "character_count": 25}

    def test_falls_back_to_last_message(self):
        context = conversation(WorkspaceType.GENERAL, "first", "Only this one counts!")

        result = asyncio.run(TextAnalysisHandler().execute(ToolParameters(), context))

        assert result.metadata["word_count"] == 4

    def test_no_text(self):
        with pytest.raises(InvalidParametersError):
            asyncio.run(TextAnalysisHandler().execute(ToolParameters(), ConversationContext()))

    @pytest.mark.parametrize("values", [{"texts": []}, {"texts": "not a list"}, {"text": 42}])
    def test_malformed_text_is_rejected_before_running(self, builtin_controller, values):
        with pytest.raises(InvalidParametersError):
            execute(builtin_controller, "text_analysis", conversation(WorkspaceType.GENERAL, "hi"), values=values)

        assert builtin_controller.performance_tracker.get("text_analysis").total_executions == 0

    def test_parallel_sums_chunks(self, builtin_controller):
        result = execute(builtin_controller, "text_analysis", conversation(WorkspaceType.GENERAL, "go"),
                         values={"texts": ["One two.", "Three four five. Six."]}, allow_parallel=True)

        assert result.success
        assert result.metadata["chunks"] == 2
        assert result.metadata["word_count"] == 6
        assert result.metadata["sentence_count"] == 3
        assert result.output.startswith("[1] Text Analysis Results")

    def test_sentence_counting(self):
        assert count_sentences("Wait... what?! Yes.") == 3
        assert count_sentences("") == 0


class TestCodeAnalysis:

    def test_counts_lines(self, builtin_controller):
        code = "def f():\n    # comment\n    return 1\n"

        result = execute(builtin_controller, "code_analysis", conversation(WorkspaceType.CODE),
                         values={"code": code})

        assert result.metadata == {"total_lines": 4, "code_lines": 3, "comment_lines": 1, "complexity": "low"}
        assert result.confidence == 0.88

    def test_requires_code_workspace_and_code(self, builtin_controller):
        with pytest.raises(InvalidParametersError):
            execute(builtin_controller, "code_analysis", conversation(WorkspaceType.CODE))

    @pytest.mark.parametrize("lines, expected", [(20, "Low"), (21, "Medium"), (50, "Medium"), (51, "High")])
    def test_complexity(self, lines, expected):
        assert estimate_complexity(lines) == expected


class TestWebResearch:

    def test_high_accuracy_runs_cross_check(self, builtin_controller):
        context = conversation(WorkspaceType.RESEARCH, "look this up")

        result = execute(builtin_controller, "web_research", context,
                         values={"query": "asyncio cancellation"}, requires_high_accuracy=True)

        assert result.confidence == pytest.approx(0.9)
        assert result.metadata["search_engines"] == "DuckDuckGo, SearX"
        assert result.metadata["verification"] == {
            "verified": True,
            "corroborating_sources": 5,
            "validator": "source_cross_check",
        }

    def test_direct_has_no_verification(self, builtin_controller):
        result = execute(builtin_controller, "web_research", conversation(WorkspaceType.RESEARCH, "q"),
                         values={"query": "asyncio"})

        assert result.confidence == 0.82
        assert "verification" not in result.metadata

    def test_cross_check_lowers_unsupported_results(self):
        primary = ToolExecutionResult.success_result("thin", confidence=0.8, metadata={"sources_found": 1})

        validation = asyncio.run(SourceCrossCheckValidator().validate(
            primary, ToolParameters(values={"query": "thin"}), ConversationContext()
        ))

        assert validation.confidence == pytest.approx(0.48)
        assert validation.metadata["verification"]["verified"] is False


class TestFileProcessor:

    def test_text_file(self, builtin_controller, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("one\ntwo\nthree\n")

        result = execute(builtin_controller, "file_processor", conversation(),
                         values={"file_path": str(path), "output_format": "summary"})

        assert result.success
        assert result.metadata["mime_type"] == "text/plain"
        assert result.metadata["line_count"] == 3
        assert result.metadata["size_bytes"] == 14
        assert result.metadata["output_format"] == "summary"

    def test_missing_file_is_unsuccessful(self, builtin_controller, tmp_path):
        result = execute(builtin_controller, "file_processor", conversation(),
                         values={"file_path": str(tmp_path / "nope.txt")})

        assert not result.success
        assert result.metadata["processed"] is False
        assert builtin_controller.performance_tracker.get("file_processor").success_rate == 0.0

    def test_directory_is_unsuccessful(self, builtin_controller, tmp_path):
        result = execute(builtin_controller, "file_processor", conversation(),
                         values={"file_path": str(tmp_path)})

        assert not result.success
        assert result.output.startswith("Not a regular file")


class TestCreativeAssistant:

    def test_direct_draft(self, builtin_controller):
        result = execute(builtin_controller, "creative_assistant", conversation(WorkspaceType.CREATIVE, "idea"),
                         values={"prompt": "a poster"})

        assert result.metadata["stage"] == "draft"
        assert result.metadata["suggestions_count"] == 5
        assert result.confidence == 0.87

    def test_cascade_runs_all_stages(self, builtin_controller):
        result = execute(builtin_controller, "creative_assistant", conversation(WorkspaceType.CREATIVE, "idea"),
                         values={"prompt": "a poster", "style": "minimal"}, prefer_cascading=True)

        assert result.success
        assert result.metadata["stages_completed"] == 3
        assert result.metadata["stage"] == "polish"
        assert result.confidence == pytest.approx(0.87)
        assert "Refined directions" in result.output
        assert result.output.endswith('Final brief: develop "a poster" in a minimal style, leading with an innovative approach.')

    def test_unknown_stage(self, builtin_controller):
        with pytest.raises(InvalidParametersError):
            execute(builtin_controller, "creative_assistant", conversation(WorkspaceType.CREATIVE, "idea"),
                    values={"prompt": "x", "stage": "publish"})

        assert builtin_controller.performance_tracker.get("creative_assistant").total_executions == 0
