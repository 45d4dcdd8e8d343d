# base.py - Tool Definition System
#
# Provides:
#   - @tool decorator: wraps plain functions into ToolWrapper
#   - ToolWrapper: uniform internal representation + JSON schema for
#     function calling

import inspect
import types
import typing
from typing import Any, Callable
from dataclasses import dataclass

# Python annotation -> JSON schema type
_JSON_TYPES = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
    list: "array",
    tuple: "array",
    dict: "object",
}


@dataclass
class ToolParam:
    """Describes a single parameter of a tool."""
    name: str
    json_type: str
    required: bool = True
    default: Any = None


class ToolWrapper:
    """
    Uniform internal representation of a tool.
    Created by the @tool decorator.
    """
    def __init__(
        self,
        name: str,
        description: str,
        params: list[ToolParam],
        fn: Callable,
        is_async: bool = False
    ):
        self.name = name
        self.description = description
        self.params = params
        self.fn = fn
        self.is_async = is_async

    async def execute(self, args: dict[str, Any]) -> str:
        """
        Execute the tool and return the output as a string.

        Failures come back as "[TOOL ERROR] ..." text so the model can
        see what went wrong and try again.
        """
        try:
            if self.is_async:
                result = await self.fn(**args)
            else:
                result = self.fn(**args)
            return str(result)
        except Exception as e:
            return f"[TOOL ERROR] {self.name}: {type(e).__name__}: {e}"

    def to_schema(self) -> dict[str, Any]:
        """Function-calling description: {"name", "description", "parameters"}."""
        properties = {p.name: {"type": p.json_type} for p in self.params}
        return {
            "name": self.name,
            "description": self.description,
            "parameters": {
                "type": "object",
                "properties": properties,
                "required": [p.name for p in self.params if p.required],
            },
        }

    def __repr__(self) -> str:
        return f"ToolWrapper({self.name!r})"


def _json_type(annotation: Any) -> str:
    origin = typing.get_origin(annotation)
    if origin in (typing.Union, types.UnionType):
        # Optional[X] -> type of X
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        return _json_type(args[0]) if len(args) == 1 else "string"
    return _JSON_TYPES.get(origin or annotation, "string")


def _extract_params(fn: Callable) -> list[ToolParam]:
    """Extract parameters from a function's signature and type hints."""
    sig = inspect.signature(fn)
    try:
        hints = typing.get_type_hints(fn)
    except (NameError, TypeError):
        hints = getattr(fn, "__annotations__", {})
    params = []

    for param_name, param in sig.parameters.items():
        if param_name == "self" or param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            continue

        has_default = param.default is not inspect.Parameter.empty
        params.append(ToolParam(
            name=param_name,
            json_type=_json_type(hints.get(param_name, str)),
            required=not has_default,
            default=param.default if has_default else None
        ))

    return params


def tool(description: str = ""):
    """
    Decorator that wraps a plain function into a ToolWrapper.

    Description priority:
        1. Explicit description parameter (if provided)
        2. Function's docstring
        3. Raises ValueError (no description = LLM can't understand the tool)

    Usage:
        @tool()
        def get_weather(city: str) -> str:
            \"\"\"Look up the current weather for a city.\"\"\"
            ...

        # Or with explicit description (overrides docstring):
        @tool("Evaluate an arithmetic expression")
        def calculator(expression: str) -> str:
            ...
    """
    MAX_DESCRIPTION_LENGTH = 1024

    def decorator(fn: Callable) -> ToolWrapper:
        resolved = description or inspect.cleandoc(fn.__doc__ or "")
        if not resolved:
            raise ValueError(
                f"Tool '{fn.__name__}' has no description. "
                f"Add a docstring or pass description to @tool()."
            )
        if len(resolved) > MAX_DESCRIPTION_LENGTH:
            resolved = resolved[:MAX_DESCRIPTION_LENGTH] + "..."

        return ToolWrapper(
            name=fn.__name__,
            description=resolved,
            params=_extract_params(fn),
            fn=fn,
            is_async=inspect.iscoroutinefunction(fn)
        )

    return decorator
