"""
Base classes and registry for the ComfyUI agent tools.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional

from ....utils.logger import get_logger

logger = get_logger(__name__)


_JSON_TYPES = {
    "string": str,
    "integer": int,
    "number": (int, float),
    "boolean": bool,
    "object": dict,
    "array": list,
}


class BaseTool(ABC):
    """Base class for all ComfyUI tools."""

    name: str = ""
    description: str = ""

    @abstractmethod
    def get_schema(self) -> Dict[str, Any]:
        """Get the tool's input schema in Anthropic format."""
        pass

    @abstractmethod
    async def execute(self, **kwargs) -> Dict[str, Any]:
        """Execute the tool with given arguments."""
        pass

    def to_claude_tool(self) -> Dict[str, Any]:
        """Convert to Claude tool definition format."""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.get_schema(),
        }

    def validate_arguments(self, arguments: Mapping[str, Any]) -> Optional[str]:
        """
        Check arguments against the input schema.

        Returns an error message, or None when the arguments are acceptable.
        Only the keywords the tool schemas use are checked: required, type,
        enum, minimum and maximum.
        """
        schema = self.get_schema()
        properties = schema.get("properties", {})

        for required in schema.get("required", []):
            if arguments.get(required) is None:
                return f"Missing required argument: {required}"

        for key, value in arguments.items():
            spec = properties.get(key)
            if spec is None or value is None:
                continue

            expected = _JSON_TYPES.get(spec.get("type", ""))
            if expected is not None:
                if isinstance(value, bool) and spec["type"] != "boolean":
                    return f"Argument '{key}' must be of type {spec['type']}"
                if not isinstance(value, expected):
                    return f"Argument '{key}' must be of type {spec['type']}"

            if "enum" in spec and value not in spec["enum"]:
                return f"Argument '{key}' must be one of: {', '.join(map(str, spec['enum']))}"
            if "minimum" in spec and value < spec["minimum"]:
                return f"Argument '{key}' must be >= {spec['minimum']}"
            if "maximum" in spec and value > spec["maximum"]:
                return f"Argument '{key}' must be <= {spec['maximum']}"

        return None


class ToolRegistry:
    """
    Registry of tool instances.

    Provides tool discovery, registration, and execution.
    """

    def __init__(self) -> None:
        self._tools: Dict[str, BaseTool] = {}

    def register_tool(self, tool: BaseTool) -> None:
        """Register a tool instance."""
        self._tools[tool.name] = tool
        logger.debug("Registered tool", tool_name=tool.name)

    def get_tool(self, name: str) -> Optional[BaseTool]:
        """Get a tool by name."""
        return self._tools.get(name)

    def get_all_tools(self) -> List[Dict[str, Any]]:
        """Get all tool definitions in Claude format."""
        return [tool.to_claude_tool() for tool in self._tools.values()]

    async def execute_tool(self, name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
        """Execute a tool by name with given arguments."""
        tool = self._tools.get(name)
        if not tool:
            raise ValueError(f"Unknown tool: {name}")
        return await tool.execute(**arguments)

    def list_tools(self) -> List[str]:
        """List all registered tool names."""
        return list(self._tools.keys())
