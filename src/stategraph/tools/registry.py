# registry.py - Tool Registry
#
# Collects tools, validates names, produces function-calling schemas,
# and routes tool calls to the correct tool.

from typing import Any, Iterable, Optional
from .base import ToolWrapper
from ..core.models import ToolCall


class ToolRegistry:
    """
    Central registry for the tools available to a graph.

    Usage:
        registry = ToolRegistry([get_weather, calculator])

        # Pass schemas to the LLM
        reply = await llm.generate(messages, tools=registry.schemas())

        # Execute a tool call from the LLM
        output = await registry.execute_tool(reply.tool_calls[0])
    """

    def __init__(self, tools: Optional[Iterable[ToolWrapper]] = None):
        self._tools: dict[str, ToolWrapper] = {}
        if tools:
            self.register_many(tools)

    def register(self, tool: ToolWrapper) -> None:
        """Register a tool. Raises if name already taken."""
        if not isinstance(tool, ToolWrapper):
            raise TypeError(
                f"Expected ToolWrapper, got {type(tool).__name__}. "
                f"Did you forget to use the @tool decorator?"
            )
        if tool.name in self._tools:
            raise ValueError(
                f"Tool '{tool.name}' is already registered. "
                f"Each tool must have a unique name."
            )
        self._tools[tool.name] = tool

    def register_many(self, tools: Iterable[ToolWrapper]) -> None:
        """Register multiple tools at once."""
        for t in tools:
            self.register(t)

    def get(self, name: str) -> Optional[ToolWrapper]:
        """Get a tool by name. Returns None if not found."""
        return self._tools.get(name)

    def list_tools(self) -> list[str]:
        """List all registered tool names."""
        return list(self._tools.keys())

    def schemas(self) -> list[dict[str, Any]]:
        """Function-calling schemas for every registered tool."""
        return [t.to_schema() for t in self._tools.values()]

    async def execute_tool(self, tool_call: ToolCall) -> str:
        """
        Route a ToolCall to the correct tool and return the output.

        Args:
            tool_call: ToolCall from an assistant Message

        Returns:
            Tool output as a string, or error message if tool not found.
        """
        tool = self._tools.get(tool_call.name)
        if tool is None:
            return (
                f"[TOOL ERROR] Unknown tool '{tool_call.name}'. "
                f"Available: {', '.join(self._tools.keys())}"
            )
        return await tool.execute(tool_call.args)

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools
