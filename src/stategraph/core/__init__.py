# __init__.py - Core package
from .models import (
    START, END, DEFAULT_RECURSION_LIMIT,
    Message, ToolCall,
    RunConfig, AbortSignal, NodeUpdate, RunComplete,
)
from .state import Reducer, Replace, Append, Custom, StateSchema
from .graph import StateGraph, Branch
from .engine import CompiledGraph, RunResult
from .errors import (
    GraphError, GraphConfigError, GraphRuntimeError,
    DuplicateNodeError, UnknownNodeError, UnreachableEndError, InvalidEdgeError,
    RoutingError, RecursionLimitError, NodeExecutionError,
    InvalidUpdateError, ReducerError, GraphAbortedError,
)

__all__ = [
    "START", "END", "DEFAULT_RECURSION_LIMIT",
    "Message", "ToolCall",
    "RunConfig", "AbortSignal", "NodeUpdate", "RunComplete",
    "Reducer", "Replace", "Append", "Custom", "StateSchema",
    "StateGraph", "Branch", "CompiledGraph", "RunResult",
    "GraphError", "GraphConfigError", "GraphRuntimeError",
    "DuplicateNodeError", "UnknownNodeError", "UnreachableEndError", "InvalidEdgeError",
    "RoutingError", "RecursionLimitError", "NodeExecutionError",
    "InvalidUpdateError", "ReducerError", "GraphAbortedError",
]
