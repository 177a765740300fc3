"""Prompt builder for the agent."""

from typing import Any

SYSTEM_PROMPT_BASE = """You are a helpful assistant with long-term memory about the user.

You have access to the following tools:
{tools_description}

Use memory_recall when you need context that is not in the conversation.
Use memory_store only when the user asks you to remember something.
Use memory_forget when the user asks you to forget something.

If you cannot complete a task with the available tools, explain why."""


def build_system_prompt(
    tools_schema: list[dict[str, Any]],
    context_blocks: list[str] | None = None,
) -> str:
    """Build the system prompt with available tools and recalled context.

    Args:
        tools_schema: List of tool schemas for the LLM.
        context_blocks: Text returned by before-turn handlers, such as the
            relevant-memories block.

    Returns:
        Complete system prompt string.
    """
    if not tools_schema:
        tools_desc = "No tools available."
    else:
        tools_desc = "\n".join(
            f"- {t['function']['name']}: {t['function']['description']}"
            for t in tools_schema
        )

    prompt = SYSTEM_PROMPT_BASE.format(tools_description=tools_desc)

    for block in context_blocks or []:
        if block.strip():
            prompt += "\n\n" + block

    return prompt


def format_tool_result(tool_name: str, success: bool, output: str, error: str | None) -> str:
    """Format a tool result for the conversation."""
    if success:
        return f"[{tool_name}] Success:\n{output}"
    if output:
        return f"[{tool_name}] Error: {output}"
    return f"[{tool_name}] Error: {error}"
