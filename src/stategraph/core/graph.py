# graph.py - Graph builder and validator
#
# Accumulates:
#   - nodes            (name -> callable)
#   - edges            (source -> destination)
#   - branches         (source -> router + destination map)
# and freezes them into a CompiledGraph after structural validation.

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Mapping, Sequence, Union

from .engine import CompiledGraph, check_recursion_limit
from .errors import (
    DuplicateNodeError,
    InvalidEdgeError,
    UnknownNodeError,
    UnreachableEndError,
)
from .models import START, END, DEFAULT_RECURSION_LIMIT
from .state import Reducer, StateSchema

logger = logging.getLogger(__name__)

NodeFn = Callable[[Mapping[str, Any]], Any]
Router = Callable[[Mapping[str, Any]], Any]


@dataclass(frozen=True)
class Branch:
    """Conditional edge: `router(state)` picks a key, `destinations[key]` is the next node."""
    source: str
    router: Router
    destinations: Mapping[Any, str]


class StateGraph:
    """
    Declarative graph description.

    Usage:
        graph = StateGraph({"score": Replace(0), "grade": Replace("")})
        graph.add_node("grade", grade_node)
        graph.add_node("excellent", excellent_node)
        graph.add_node("fail", fail_node)
        graph.add_edge(START, "grade")
        graph.add_conditional_edges("grade", router, {"a": "excellent", "b": "fail"})
        graph.add_edge("excellent", END)
        graph.add_edge("fail", END)
        app = graph.compile()
    """

    def __init__(self, schema: Union[StateSchema, Mapping[str, Reducer]]):
        self.schema = StateSchema.coerce(schema)
        self.nodes: dict[str, NodeFn] = {}
        self.edges: dict[str, str] = {}
        self.branches: dict[str, Branch] = {}

    # ---- Registration ----

    def add_node(self, name: str, fn: NodeFn) -> "StateGraph":
        if name in (START, END):
            raise InvalidEdgeError(f"'{name}' is a reserved name and cannot be a node.")
        if not isinstance(name, str) or not name:
            raise InvalidEdgeError(f"Node name must be a non-empty string, got {name!r}.")
        if name in self.nodes:
            raise DuplicateNodeError(name)
        if not callable(fn):
            raise TypeError(f"Node '{name}' must be callable, got {type(fn).__name__}.")
        self.nodes[name] = fn
        return self

    def add_edge(self, source: str, dest: str) -> "StateGraph":
        if source == END:
            raise InvalidEdgeError("END cannot be the source of an edge.")
        if dest == START:
            raise InvalidEdgeError("START cannot be the destination of an edge.")
        self._check_free_source(source)
        self.edges[source] = dest
        return self

    def add_conditional_edges(
        self,
        source: str,
        router: Router,
        destinations: Union[Mapping[Any, str], Sequence[str]],
    ) -> "StateGraph":
        """
        Register a data-dependent transition out of `source`.

        Args:
            source: Node after which the router runs
            router: Callable receiving the post-merge state, returning a key
            destinations: Either {key: node_name} or a list of node names
                (each name is then its own key). Values may be END.
        """
        if source == START:
            raise InvalidEdgeError("START must have a single unconditional edge.")
        if source == END:
            raise InvalidEdgeError("END cannot be the source of an edge.")
        if not callable(router):
            raise TypeError(f"Router for '{source}' must be callable.")

        if isinstance(destinations, Mapping):
            mapping = dict(destinations)
        else:
            mapping = {dest: dest for dest in destinations}
        if not mapping:
            raise InvalidEdgeError(f"Conditional edges from '{source}' need at least one destination.")
        if START in mapping.values():
            raise InvalidEdgeError("START cannot be the destination of an edge.")

        self._check_free_source(source)
        self.branches[source] = Branch(source, router, MappingProxyType(mapping))
        return self

    def _check_free_source(self, source: str) -> None:
        if source in self.edges or source in self.branches:
            if source == START:
                raise InvalidEdgeError("START already has an outgoing edge.")
            raise InvalidEdgeError(
                f"Node '{source}' already has an outgoing edge. "
                f"Use add_conditional_edges to branch."
            )

    # ---- Validation ----

    def _successors(self, name: str) -> list[str]:
        if name in self.edges:
            return [self.edges[name]]
        if name in self.branches:
            return list(self.branches[name].destinations.values())
        return []

    def _reachable(self) -> set[str]:
        """Every name reachable from START (END included when reachable)."""
        seen: set[str] = set()
        to_visit = [START]
        while to_visit:
            current = to_visit.pop()
            if current in seen:
                continue
            seen.add(current)
            if current != END:
                to_visit.extend(self._successors(current))
        return seen

    def validate(self) -> None:
        """
        Check structural invariants. Raises on the first violation:
            1. every edge endpoint is a registered node   (UnknownNodeError)
            2. START has an edge and END is reachable     (UnreachableEndError)
            3. no reachable node is a dead end            (InvalidEdgeError)
        """
        for source, dest in self.edges.items():
            if source != START and source not in self.nodes:
                raise UnknownNodeError(source, f"edge {source} -> {dest}")
            if dest != END and dest not in self.nodes:
                raise UnknownNodeError(dest, f"edge {source} -> {dest}")

        for source, branch in self.branches.items():
            if source not in self.nodes:
                raise UnknownNodeError(source, "conditional edges")
            for key, dest in branch.destinations.items():
                if dest != END and dest not in self.nodes:
                    raise UnknownNodeError(dest, f"conditional edge {source} -[{key!r}]-> {dest}")

        if START not in self.edges:
            raise UnreachableEndError("Graph has no edge from START, so END can never be reached.")

        reachable = self._reachable()
        if END not in reachable:
            raise UnreachableEndError("No path leads from START to END.")

        for name in self.nodes:
            if name not in reachable:
                logger.warning("Node '%s' is not reachable from START", name)
            elif not self._successors(name):
                raise InvalidEdgeError(f"Node '{name}' has no outgoing edge (add an edge to END?).")

    def compile(
        self,
        store=None,  # Optional CheckpointStore
        recursion_limit: int = DEFAULT_RECURSION_LIMIT,
        hooks=None,  # Optional HookManager
    ) -> CompiledGraph:
        """
        Validate the graph and freeze it into a CompiledGraph.

        Args:
            store: CheckpointStore used when a run carries a session_id
            recursion_limit: Max node executions per run (default 25)
            hooks: HookManager shared by every run of the compiled graph

        Returns:
            CompiledGraph, reusable for any number of runs

        Raises:
            GraphConfigError subclasses on invalid structure
            ValueError: If recursion_limit is not a positive int
        """
        check_recursion_limit(recursion_limit)
        self.validate()
        logger.info(
            "Compiled graph: %d nodes, %d edges, %d branches, recursion_limit=%d",
            len(self.nodes), len(self.edges), len(self.branches), recursion_limit,
        )
        return CompiledGraph(
            schema=self.schema,
            nodes=dict(self.nodes),
            edges=dict(self.edges),
            branches=dict(self.branches),
            store=store,
            recursion_limit=recursion_limit,
            hooks=hooks,
        )
