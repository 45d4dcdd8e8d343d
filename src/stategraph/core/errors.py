# errors.py - Error taxonomy for stategraph
#
# Two families:
#   - GraphConfigError   (raised by StateGraph / compile, before anything runs)
#   - GraphRuntimeError  (raised by CompiledGraph during a single run)
#
# Every run-time error terminates the current run and propagates to the
# caller. Nothing is retried and nothing is persisted for a failed run.

from typing import Any, Iterable, Optional


class GraphError(Exception):
    """Base class for every error raised by stategraph."""


# ---- Compile-time ----

class GraphConfigError(GraphError, ValueError):
    """The graph definition is invalid and cannot be compiled."""


class DuplicateNodeError(GraphConfigError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Node '{name}' is already registered.")


class UnknownNodeError(GraphConfigError):
    def __init__(self, name: str, referenced_by: str = ""):
        self.name = name
        self.referenced_by = referenced_by
        where = f" (referenced by {referenced_by})" if referenced_by else ""
        super().__init__(f"Edge references unknown node '{name}'{where}.")


class UnreachableEndError(GraphConfigError):
    """No path leads from START to END."""


class InvalidEdgeError(GraphConfigError):
    """An edge is structurally invalid (misused START/END, duplicate source, dead end)."""


# ---- Run-time ----

class GraphRuntimeError(GraphError):
    """A single run failed. The graph itself stays usable."""


class RoutingError(GraphRuntimeError):
    def __init__(self, node: str, key: Any, allowed: Iterable[Any]):
        self.node = node
        self.key = key
        self.allowed = list(allowed)
        super().__init__(
            f"Router after node '{node}' returned {key!r}, "
            f"expected one of: {', '.join(repr(k) for k in self.allowed)}"
        )


class RecursionLimitError(GraphRuntimeError):
    """
    The run hit its recursion limit before reaching END.

    This is a safety stop, not a fault: the task did not converge within
    the allowed number of node executions.
    """

    def __init__(self, limit: int, last_node: Optional[str] = None):
        self.limit = limit
        self.last_node = last_node
        super().__init__(
            f"Recursion limit of {limit} node executions reached "
            f"without hitting END (next node: {last_node})."
        )


class NodeExecutionError(GraphRuntimeError):
    """Wraps any exception raised inside a node body. See __cause__."""

    def __init__(self, node: str, step: int, error: BaseException):
        self.node = node
        self.step = step
        self.error = error
        super().__init__(
            f"Node '{node}' failed at step {step}: "
            f"{type(error).__name__}: {error}"
        )


class InvalidUpdateError(GraphRuntimeError):
    """A node or the run input produced an update the schema cannot accept."""


class ReducerError(InvalidUpdateError):
    """A field reducer raised while merging a value. See __cause__."""

    def __init__(self, field: str, source: str, error: BaseException):
        self.field = field
        self.source = source
        self.error = error
        super().__init__(
            f"{source}: reducer for field '{field}' failed: "
            f"{type(error).__name__}: {error}"
        )


class GraphAbortedError(GraphRuntimeError):
    def __init__(self, reason: str, steps: int):
        self.reason = reason
        self.steps = steps
        super().__init__(f"Run aborted after {steps} steps: {reason}")
