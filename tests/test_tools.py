"""Tests for tool registry and argument validation."""

import pytest

from smartmem.tools import Tool, ToolResult, ToolRegistry


class ScoreTool(Tool):
    """Tool with typed and enumerated parameters."""

    @property
    def name(self) -> str:
        return "score"

    @property
    def description(self) -> str:
        return "Scores a labelled value"

    @property
    def parameters(self) -> dict:
        return {
            "type": "object",
            "properties": {
                "label": {"type": "string", "enum": ["low", "high"]},
                "value": {"type": "number"},
                "count": {"type": "integer"},
            },
            "required": ["label"],
        }

    async def execute(self, label: str, value: float = 0.0, count: int = 1) -> ToolResult:
        return ToolResult(success=True, output=f"{label}:{value}:{count}", metadata={"label": label})


class BrokenTool(ScoreTool):
    @property
    def name(self) -> str:
        return "broken"

    async def execute(self, **kwargs) -> ToolResult:
        raise RuntimeError("boom")


@pytest.fixture
def registry() -> ToolRegistry:
    registry = ToolRegistry()
    registry.register(ScoreTool())
    return registry


def test_register_duplicate_raises(registry: ToolRegistry) -> None:
    with pytest.raises(ValueError, match="already registered"):
        registry.register(ScoreTool())


def test_get_and_list(registry: ToolRegistry) -> None:
    assert registry.list_tools() == ["score"]
    assert isinstance(registry.get("score"), ScoreTool)
    assert registry.get("unknown") is None


def test_unregister(registry: ToolRegistry) -> None:
    registry.unregister("score")
    registry.unregister("score")
    assert registry.list_tools() == []


def test_get_tools_schema(registry: ToolRegistry) -> None:
    [schema] = registry.get_tools_schema()
    assert schema["type"] == "function"
    assert schema["function"]["name"] == "score"
    assert schema["function"]["parameters"]["required"] == ["label"]


@pytest.mark.asyncio
async def test_dispatch_success(registry: ToolRegistry) -> None:
    result = await registry.dispatch("score", {"label": "high", "value": 0.5, "count": 2})
    assert result.success is True
    assert result.output == "high:0.5:2"
    assert result.metadata == {"label": "high"}


@pytest.mark.asyncio
async def test_dispatch_unknown_tool(registry: ToolRegistry) -> None:
    result = await registry.dispatch("unknown", {})
    assert result.success is False
    assert "Unknown tool" in result.error


@pytest.mark.asyncio
async def test_dispatch_missing_required(registry: ToolRegistry) -> None:
    result = await registry.dispatch("score", {})
    assert result.success is False
    assert "Missing required argument: label" in result.error


@pytest.mark.asyncio
async def test_dispatch_enum_violation(registry: ToolRegistry) -> None:
    result = await registry.dispatch("score", {"label": "medium"})
    assert result.success is False
    assert "must be one of: low, high" in result.error


@pytest.mark.asyncio
async def test_number_accepts_int(registry: ToolRegistry) -> None:
    result = await registry.dispatch("score", {"label": "low", "value": 1})
    assert result.success is True


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "args",
    [
        {"label": "low", "value": "0.5"},
        {"label": "low", "value": True},
        {"label": "low", "count": 1.5},
        {"label": 3},
    ],
)
async def test_dispatch_wrong_type(registry: ToolRegistry, args: dict) -> None:
    result = await registry.dispatch("score", args)
    assert result.success is False
    assert "must be a" in result.error


@pytest.mark.asyncio
async def test_none_optional_argument_skipped(registry: ToolRegistry) -> None:
    """Explicit nulls for optional arguments are not type-checked."""
    tool = registry.get("score")
    valid, error = tool.validate_args({"label": "low", "value": None})
    assert valid is True
    assert error is None


@pytest.mark.asyncio
async def test_dispatch_exception_becomes_error(registry: ToolRegistry) -> None:
    registry.register(BrokenTool())
    result = await registry.dispatch("broken", {"label": "low"})
    assert result.success is False
    assert result.error == "Tool execution failed: boom"
