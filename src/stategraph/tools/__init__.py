# __init__.py - Tools package
from .base import tool, ToolWrapper, ToolParam
from .registry import ToolRegistry

__all__ = ["tool", "ToolWrapper", "ToolParam", "ToolRegistry"]
