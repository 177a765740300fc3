"""Base tool interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

_JSON_TYPES: dict[str, tuple[type, ...]] = {
    "string": (str,),
    "integer": (int,),
    "number": (int, float),
    "boolean": (bool,),
}


@dataclass
class ToolResult:
    """Result from tool execution.

    output is the human-readable summary; metadata carries the structured
    details for the caller.
    """

    success: bool
    output: str
    error: str | None = None
    metadata: dict[str, Any] | None = None


class Tool(ABC):
    """Base interface for all tools."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique tool name."""
        ...

    @property
    @abstractmethod
    def description(self) -> str:
        """Tool description for LLM."""
        ...

    @property
    @abstractmethod
    def parameters(self) -> dict[str, Any]:
        """JSON Schema for tool parameters."""
        ...

    @abstractmethod
    async def execute(self, **kwargs: Any) -> ToolResult:
        """Execute the tool with given arguments."""
        ...

    def get_schema(self) -> dict[str, Any]:
        """Get tool schema for LLM function calling."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }

    def validate_args(self, args: dict[str, Any]) -> tuple[bool, str | None]:
        """Validate arguments against schema. Returns (valid, error_message)."""
        required = self.parameters.get("required", [])
        properties = self.parameters.get("properties", {})

        for name in required:
            if name not in args:
                return False, f"Missing required argument: {name}"

        for key, value in args.items():
            if key not in properties or value is None:
                continue
            schema = properties[key]

            expected = _JSON_TYPES.get(schema.get("type", ""))
            if expected is not None:
                # bool is an int subclass, reject it for numeric fields
                if isinstance(value, bool) and bool not in expected:
                    return False, f"Argument '{key}' must be a {schema['type']}"
                if not isinstance(value, expected):
                    return False, f"Argument '{key}' must be a {schema['type']}"

            if "enum" in schema and value not in schema["enum"]:
                return False, f"Argument '{key}' must be one of: {', '.join(map(str, schema['enum']))}"

        return True, None
