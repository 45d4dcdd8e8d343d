# models.py - Shared data structures for stategraph
#
# Contains:
#   - START / END          (reserved node names)
#   - ToolCall             (tool name + args requested by an LLM)
#   - Message              (role + content for LLM conversations)
#   - RunConfig            (per-run options: session, recursion limit, abort)
#   - AbortSignal          (caller-side stop request, honoured between steps)
#   - NodeUpdate           (streamed after each node)
#   - RunComplete          (stream sentinel carrying the final state)

from dataclasses import dataclass, field
from typing import Optional, Any, Mapping
from pydantic import BaseModel, Field

START = "__start__"
END = "__end__"

DEFAULT_RECURSION_LIMIT = 25


# ------ LLM INTERFACE STRUCTURES ------
class ToolCall(BaseModel):
    id: str = ""
    name: str
    args: dict[str, Any] = Field(default_factory=dict)


@dataclass
class Message:
    role: str  # "system", "user", "assistant", "tool"
    content: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)
    tool_call_id: Optional[str] = None
    name: Optional[str] = None

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role="user", content=content)

    @classmethod
    def assistant(cls, content: str, tool_calls: Optional[list[ToolCall]] = None) -> "Message":
        return cls(role="assistant", content=content, tool_calls=tool_calls or [])

    @classmethod
    def tool(cls, content: str, tool_call_id: str, name: Optional[str] = None) -> "Message":
        return cls(role="tool", content=content, tool_call_id=tool_call_id, name=name)


# ------ RUN STRUCTURES ------
class AbortSignal:
    """
    Stop request for an in-flight run.

    Checked by the engine before every node, never mid-node.
    An aborted run raises GraphAbortedError and persists nothing.

    Usage:
        signal = AbortSignal()
        task = asyncio.create_task(app.invoke(inp, RunConfig(abort_signal=signal)))
        signal.abort("user pressed stop")
    """

    def __init__(self):
        self.aborted = False
        self.reason = ""

    def abort(self, reason: str = "Run aborted by caller") -> None:
        self.aborted = True
        self.reason = reason

    def reset(self) -> None:
        self.aborted = False
        self.reason = ""


@dataclass
class RunConfig:
    session_id: Optional[str] = None
    recursion_limit: Optional[int] = None  # falls back to the compiled default
    abort_signal: Optional[AbortSignal] = None

    @classmethod
    def coerce(cls, config: "RunConfig | Mapping[str, Any] | None") -> "RunConfig":
        if config is None:
            return cls()
        if isinstance(config, RunConfig):
            return config
        return cls(**config)


@dataclass
class NodeUpdate:
    step: int
    node: str
    update: dict[str, Any]


@dataclass
class RunComplete:
    state: dict[str, Any]
    steps: int
    session_id: Optional[str] = None
    node: str = END
