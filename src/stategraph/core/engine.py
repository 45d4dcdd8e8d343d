# engine.py - Execution Engine
#
# Runs a compiled graph for one input. Each step:
#   1. Check abort signal + recursion limit
#   2. Call the current node with a read-only view of the state
#   3. Merge the returned partial update through the schema reducers
#   4. Resolve the next node (fixed edge, or router over the merged state)
#   5. Emit hooks + record trace
#   6. Stop at END, persist the final state if the run has a session

import inspect
import json
import logging
import time
from dataclasses import dataclass, asdict
from pathlib import Path
from types import MappingProxyType
from typing import Any, AsyncIterator, Mapping, Optional, Union

from .errors import (
    GraphAbortedError,
    GraphRuntimeError,
    NodeExecutionError,
    RecursionLimitError,
    RoutingError,
)
from .models import START, END, NodeUpdate, RunComplete, RunConfig
from .state import StateSchema
from ..observe.hooks import HookManager
from ..observe.trace import StepTrace, RunTrace

logger = logging.getLogger(__name__)

ConfigLike = Union[RunConfig, Mapping[str, Any], None]


def check_recursion_limit(limit: Any) -> None:
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise ValueError(f"recursion_limit must be a positive integer, got {limit!r}")


@dataclass
class RunResult:
    """Final result of one graph run."""
    state: dict[str, Any]
    steps: int
    session_id: Optional[str]
    trace: RunTrace

    def export_trace(self, path: str) -> str:
        """
        Export the run (trace + final state) as a JSON file.

        Values that are not JSON serializable are written via str().

        Args:
            path: File path to write the JSON (e.g., "./output/run.json")

        Returns:
            The absolute path of the created file.
        """
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "session_id": self.session_id,
            "total_steps": self.steps,
            "state": self.state,
            "trace": asdict(self.trace),
        }
        output_path.write_text(
            json.dumps(data, indent=2, ensure_ascii=False, default=str),
            encoding="utf-8"
        )
        return str(output_path.resolve())


class CompiledGraph:
    """
    A validated, immutable graph ready to run.

    Created by StateGraph.compile(). Every call to invoke()/run()/stream()
    is an independent execution, unless the config carries a session_id
    and a store is configured: the run then starts from that session's
    last persisted state and persists its final state on success.

    Node execution within one run is strictly sequential. Runs for
    different sessions may proceed concurrently; the engine keeps no
    mutable state across runs.
    """

    def __init__(
        self,
        schema: StateSchema,
        nodes: dict,
        edges: dict[str, str],
        branches: dict,
        store=None,  # Optional CheckpointStore
        recursion_limit: int = 25,
        hooks: Optional[HookManager] = None,
    ):
        self.schema = schema
        self.nodes = MappingProxyType(nodes)
        self.edges = MappingProxyType(edges)
        self.branches = MappingProxyType(branches)
        self.store = store
        self.recursion_limit = recursion_limit
        self.hooks = hooks or HookManager()

    @property
    def entry(self) -> str:
        """The node START points to."""
        return self.edges[START]

    def on(self, event: str):
        """
        Decorator to register event hooks.

        Usage:
            @app.on("node_end")
            async def log_step(data):
                print(f"Step {data['step']}: {data['node']}")
        """
        return self.hooks.on(event)

    async def get_state(self, session_id: str) -> Optional[dict[str, Any]]:
        """Return the persisted state of a session, or None if it has none yet."""
        if self.store is None:
            raise ValueError("This graph was compiled without a checkpoint store.")
        return await self.store.get(session_id)

    # ---- Entry points ----

    async def invoke(self, input: Optional[Mapping[str, Any]] = None, config: ConfigLike = None) -> dict[str, Any]:
        """
        Run the graph to END and return the final state.

        Args:
            input: Partial state merged into the starting state (None = no seed)
            config: RunConfig or dict with session_id / recursion_limit / abort_signal

        Returns:
            A plain dict snapshot of the final state

        Raises:
            InvalidUpdateError: Input or a node update names an undeclared field
            ReducerError: A field reducer failed to merge a value
            RoutingError: A router returned a key outside its destination map
            RecursionLimitError: The run did not reach END within the limit
            NodeExecutionError: A node body raised
            GraphAbortedError: The run's AbortSignal was triggered
        """
        result = await self.run(input, config)
        return result.state

    async def run(self, input: Optional[Mapping[str, Any]] = None, config: ConfigLike = None) -> RunResult:
        """Like invoke(), but also returns step count, session id and the trace."""
        cfg = RunConfig.coerce(config)
        trace = RunTrace(session_id=cfg.session_id)
        final: Optional[RunComplete] = None
        async for event in self._steps(input, cfg, trace):
            if isinstance(event, RunComplete):
                final = event
        return RunResult(
            state=final.state,
            steps=final.steps,
            session_id=final.session_id,
            trace=trace,
        )

    async def stream(
        self,
        input: Optional[Mapping[str, Any]] = None,
        config: ConfigLike = None,
    ) -> AsyncIterator[Union[NodeUpdate, RunComplete]]:
        """
        Run the graph, yielding a NodeUpdate after every node and a final
        RunComplete sentinel. Closing the stream early persists nothing.

        Usage:
            async for event in app.stream({"topic": "graphs"}):
                if isinstance(event, NodeUpdate):
                    print(event.node, event.update)
        """
        cfg = RunConfig.coerce(config)
        trace = RunTrace(session_id=cfg.session_id)
        async for event in self._steps(input, cfg, trace):
            yield event

    # ---- Core loop ----

    async def _steps(self, input, cfg: RunConfig, trace: RunTrace):
        limit = cfg.recursion_limit if cfg.recursion_limit is not None else self.recursion_limit
        check_recursion_limit(limit)

        session_id = cfg.session_id
        persist = session_id is not None and self.store is not None
        if session_id is not None and self.store is None:
            logger.debug("session_id %r given but no store configured, running stateless", session_id)

        signal = cfg.abort_signal
        step = 0
        current = self.edges[START]

        try:
            state = await self._load_state(session_id) if persist else self.schema.initial()
            if input is not None:
                seed = self.schema.validate_update(input, "Run input")
                state = self.schema.merge(state, seed, "Run input")

            await self.hooks.emit("run_start", {
                "session_id": session_id,
                "entry": current,
                "recursion_limit": limit,
            })

            while current != END:
                # --- 1. Stop conditions, checked between nodes only ---
                if signal is not None and signal.aborted:
                    raise GraphAbortedError(signal.reason, step)
                if step >= limit:
                    raise RecursionLimitError(limit, current)

                step += 1
                step_start = time.time()
                await self.hooks.emit("node_start", {
                    "session_id": session_id,
                    "step": step,
                    "node": current,
                })

                # --- 2-3. Execute + merge ---
                update = await self._call_node(current, state, step)
                state = self.schema.merge(state, update, f"Node '{current}'")
                yield NodeUpdate(step=step, node=current, update=update)

                # --- 4. Route ---
                next_node, route_key = await self._resolve_next(current, state, step)

                # --- 5. Observe ---
                duration = (time.time() - step_start) * 1000
                trace.add_step(StepTrace(
                    step_number=step,
                    node=current,
                    updated_fields=list(update.keys()),
                    next_node=next_node,
                    route_key=route_key,
                    duration_ms=duration,
                ))
                logger.debug("step %d: %s -> %s (%.1fms)", step, current, next_node, duration)
                await self.hooks.emit("node_end", {
                    "session_id": session_id,
                    "step": step,
                    "node": current,
                    "update": update,
                    "next": next_node,
                    "route_key": route_key,
                    "duration_ms": duration,
                })
                current = next_node

        except GraphRuntimeError as e:
            trace.finalize()
            logger.info("Run failed after %d steps: %s", step, e)
            await self.hooks.emit("error", {
                "session_id": session_id,
                "step": step,
                "node": current,
                "error": e,
            })
            raise

        # --- 6. Persist + finish ---
        if persist:
            await self.store.put(session_id, state)

        trace.finalize()
        await self.hooks.emit("complete", {
            "session_id": session_id,
            "steps": step,
            "summary": trace.summary(),
        })
        yield RunComplete(state=dict(state), steps=step, session_id=session_id)

    async def _load_state(self, session_id: str) -> dict[str, Any]:
        state = self.schema.initial()
        saved = await self.store.get(session_id)
        if saved:
            # Fields added to the schema since the checkpoint keep their initial value
            state.update({k: v for k, v in saved.items() if k in self.schema})
        return state

    async def _call_node(self, name: str, state: dict[str, Any], step: int) -> dict[str, Any]:
        fn = self.nodes[name]
        try:
            result = fn(MappingProxyType(state))
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            raise NodeExecutionError(name, step, e) from e
        return self.schema.validate_update(result, f"Node '{name}'")

    async def _resolve_next(self, name: str, state: dict[str, Any], step: int) -> tuple[str, Optional[str]]:
        if name in self.edges:
            return self.edges[name], None

        branch = self.branches[name]
        try:
            key = branch.router(MappingProxyType(state))
            if inspect.isawaitable(key):
                key = await key
        except Exception as e:
            # Router failures count as a failure of the node they follow
            raise NodeExecutionError(name, step, e) from e

        try:
            dest = branch.destinations[key]
        except (KeyError, TypeError):
            raise RoutingError(name, key, branch.destinations.keys()) from None
        return dest, key
