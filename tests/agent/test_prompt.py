"""Tests for prompt building."""

from smartmem.agent.prompt import build_system_prompt, format_tool_result


class TestBuildSystemPrompt:
    """Tests for build_system_prompt function."""

    def test_lists_tools(self):
        tools_schema = [{"function": {"name": "memory_recall", "description": "Search memory"}}]

        prompt = build_system_prompt(tools_schema)

        assert "- memory_recall: Search memory" in prompt

    def test_no_tools(self):
        assert "No tools available." in build_system_prompt([])

    def test_context_blocks_appended(self):
        prompt = build_system_prompt([], ["<relevant-memories>\n1. x\n</relevant-memories>", "  ", "extra"])

        assert prompt.endswith("</relevant-memories>\n\nextra")
        assert "\n\n  " not in prompt


class TestFormatToolResult:
    """Tests for format_tool_result."""

    def test_success(self):
        assert format_tool_result("memory_store", True, 'Stored: "x"', None) == '[memory_store] Success:\nStored: "x"'

    def test_error_prefers_output(self):
        """Failures that explain themselves show the output."""
        result = format_tool_result("memory_forget", False, "Provide query or memoryId.", "missing_param")
        assert result == "[memory_forget] Error: Provide query or memoryId."

    def test_error_without_output(self):
        assert format_tool_result("memory_recall", False, "", "boom") == "[memory_recall] Error: boom"
