# stategraph - Async state-graph execution engine
#
# Build a graph of nodes over a typed state, where:
#   - every field has a merge policy (Replace, Append, Custom)
#   - nodes return partial updates, never mutate state
#   - edges are fixed or chosen by a router over the merged state
#   - every run is bounded by a recursion limit
#   - sessions persist state between runs through a checkpoint store
#
# Quick Start:
#   from stategraph import StateGraph, Replace, Append, START, END
#
#   graph = StateGraph({"score": Replace(0), "history": Append()})
#   graph.add_node("grade", lambda s: {"history": ["graded"]})
#   graph.add_edge(START, "grade")
#   graph.add_edge("grade", END)
#   app = graph.compile()
#
#   state = await app.invoke({"score": 95})

from .core.models import (
    START, END, DEFAULT_RECURSION_LIMIT,
    Message, ToolCall, RunConfig, AbortSignal, NodeUpdate, RunComplete,
)
from .core.state import Reducer, Replace, Append, Custom, StateSchema
from .core.graph import StateGraph
from .core.engine import CompiledGraph, RunResult
from .core.errors import (
    GraphError, GraphConfigError, GraphRuntimeError,
    DuplicateNodeError, UnknownNodeError, UnreachableEndError, InvalidEdgeError,
    RoutingError, RecursionLimitError, NodeExecutionError,
    InvalidUpdateError, ReducerError, GraphAbortedError,
)
from .storage.base import CheckpointStore, InMemoryStore
from .observe.hooks import HookManager
from .tools.base import tool, ToolWrapper
from .tools.registry import ToolRegistry
from .prebuilt import messages_schema, chat_node, ToolNode, tools_condition
from .agent import Agent, AgentResult, create_react_agent

__version__ = "0.1.0"

__all__ = [
    "START", "END", "DEFAULT_RECURSION_LIMIT",
    "Message", "ToolCall", "RunConfig", "AbortSignal", "NodeUpdate", "RunComplete",
    "Reducer", "Replace", "Append", "Custom", "StateSchema",
    "StateGraph", "CompiledGraph", "RunResult",
    "GraphError", "GraphConfigError", "GraphRuntimeError",
    "DuplicateNodeError", "UnknownNodeError", "UnreachableEndError", "InvalidEdgeError",
    "RoutingError", "RecursionLimitError", "NodeExecutionError",
    "InvalidUpdateError", "ReducerError", "GraphAbortedError",
    "CheckpointStore", "InMemoryStore",
    "HookManager",
    "tool", "ToolWrapper", "ToolRegistry",
    "messages_schema", "chat_node", "ToolNode", "tools_condition",
    "Agent", "AgentResult", "create_react_agent",
]
