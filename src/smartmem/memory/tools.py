"""Memory tools for explicit recall, storage and deletion."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..tools.base import Tool, ToolResult
from .models import DEFAULT_CATEGORY, DEFAULT_IMPORTANCE, VALID_CATEGORIES
from .safety import to_percent
from .sanitizer import MAX_FACT_LENGTH, MIN_FACT_LENGTH

if TYPE_CHECKING:
    from .manager import MemoryManager

PREVIEW_LENGTH = 100
CANDIDATE_PREVIEW_LENGTH = 80


class RecallTool(Tool):
    """Tool for searching long-term memory."""

    def __init__(self, manager: MemoryManager) -> None:
        self.manager = manager

    @property
    def name(self) -> str:
        return "memory_recall"

    @property
    def description(self) -> str:
        return (
            "Search long-term memory for relevant facts. Use when you need context "
            "about preferences, decisions, people, events, or past discussions."
        )

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "What to search for",
                },
                "limit": {
                    "type": "integer",
                    "description": "Max results (default: 5)",
                },
            },
            "required": ["query"],
        }

    async def execute(self, **kwargs: Any) -> ToolResult:
        """Recall memories for a query.

        Args:
            query: What to search for.
            limit: Maximum number of memories.

        Returns:
            ToolResult listing the ranked memories.
        """
        query = kwargs.get("query", "")
        limit = kwargs.get("limit")

        if not query:
            return ToolResult(success=False, output="", error="'query' is required")

        if limit is not None and limit < 1:
            limit = None

        outcome = await self.manager.recall(query, limit)

        if not outcome.found:
            return ToolResult(
                success=True,
                output="No relevant memories found.",
                metadata={"count": 0},
            )

        lines = [
            f"{i}. [{m.fact.category}] {m.fact.text} (score: {to_percent(m.final_score)}%)"
            for i, m in enumerate(outcome.memories, start=1)
        ]
        return ToolResult(
            success=True,
            output=f"Found {len(outcome.memories)} memories:\n\n" + "\n".join(lines),
            metadata={
                "count": len(outcome.memories),
                "memories": [
                    {
                        "id": m.fact.id,
                        "text": m.fact.text,
                        "category": m.fact.category,
                        "importance": m.fact.importance,
                        "score": m.final_score,
                    }
                    for m in outcome.memories
                ],
            },
        )


class StoreTool(Tool):
    """Tool for saving an explicit fact."""

    def __init__(self, manager: MemoryManager) -> None:
        self.manager = manager

    @property
    def name(self) -> str:
        return "memory_store"

    @property
    def description(self) -> str:
        return "Manually store an important fact in long-term memory."

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "text": {
                    "type": "string",
                    "description": "Fact to remember",
                },
                "importance": {
                    "type": "number",
                    "description": f"Importance 0-1 (default: {DEFAULT_IMPORTANCE})",
                },
                "category": {
                    "type": "string",
                    "enum": list(VALID_CATEGORIES),
                    "description": f"Fact category (default: {DEFAULT_CATEGORY})",
                },
            },
            "required": ["text"],
        }

    async def execute(self, **kwargs: Any) -> ToolResult:
        text = kwargs.get("text", "")
        importance = kwargs.get("importance")
        category = kwargs.get("category")

        outcome = await self.manager.store_fact(
            text,
            DEFAULT_IMPORTANCE if importance is None else importance,
            category or DEFAULT_CATEGORY,
        )

        if outcome.action == "rejected":
            if outcome.reason == "prompt_injection":
                message = "Rejected: content looks like prompt injection."
            else:
                message = (
                    f"Rejected: fact must be between {MIN_FACT_LENGTH} and "
                    f"{MAX_FACT_LENGTH} characters."
                )
            return ToolResult(
                success=True,
                output=message,
                metadata={"error": outcome.reason},
            )

        fact = outcome.fact
        if outcome.action == "duplicate":
            return ToolResult(
                success=True,
                output=f'Similar memory already exists: "{fact.text}"',
                metadata={"action": "duplicate", "existingId": fact.id},
            )

        preview = text[:PREVIEW_LENGTH] + ("..." if len(text) > PREVIEW_LENGTH else "")
        return ToolResult(
            success=True,
            output=f'Stored: "{preview}"',
            metadata={"action": "created", "id": fact.id},
        )


class ForgetTool(Tool):
    """Tool for deleting a memory by id or by search."""

    def __init__(self, manager: MemoryManager) -> None:
        self.manager = manager

    @property
    def name(self) -> str:
        return "memory_forget"

    @property
    def description(self) -> str:
        return "Delete a memory by ID or search query."

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Search to find memory",
                },
                "memoryId": {
                    "type": "string",
                    "description": "Specific memory ID to delete",
                },
            },
            "required": [],
        }

    async def execute(self, **kwargs: Any) -> ToolResult:
        """Forget a memory.

        A memoryId deletes directly. A query deletes only when it matches a
        single memory with high confidence, otherwise candidates are listed.
        """
        outcome = await self.manager.forget(
            fact_id=kwargs.get("memoryId"),
            query=kwargs.get("query"),
        )

        if outcome.action == "missing_param":
            return ToolResult(
                success=False,
                output="Provide query or memoryId.",
                error="missing_param",
                metadata={"error": "missing_param"},
            )

        if outcome.action == "not_found":
            return ToolResult(
                success=True,
                output="No matching memories found.",
                metadata={"found": 0},
            )

        if outcome.action == "deleted":
            if outcome.fact is None:
                output = f"Memory {outcome.fact_id} forgotten."
            else:
                output = f'Forgotten: "{outcome.fact.text}"'
            return ToolResult(
                success=True,
                output=output,
                metadata={"action": "deleted", "id": outcome.fact_id},
            )

        listing = "\n".join(
            f"- [{fact.id[:8]}] {fact.text[:CANDIDATE_PREVIEW_LENGTH]}"
            for fact, _ in outcome.candidates
        )
        return ToolResult(
            success=True,
            output=(
                f"Found {len(outcome.candidates)} candidates:\n{listing}\n\n"
                "Specify memoryId to delete."
            ),
            metadata={
                "action": "candidates",
                "candidates": [
                    {"id": fact.id, "text": fact.text, "score": score}
                    for fact, score in outcome.candidates
                ],
            },
        )
