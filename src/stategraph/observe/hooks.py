# hooks.py - Event Hook System
#
# Lets developers plug into graph run lifecycle events.
# Events: run_start, node_start, node_end, error, complete
#
# Usage:
#   app = graph.compile()
#
#   @app.on("node_end")
#   async def log_step(data):
#       print(f"Step {data['step']}: {data['node']} -> {data['next']}")

import asyncio
import logging
from typing import Any, Callable, Coroutine

logger = logging.getLogger(__name__)

# Type alias for hook callbacks
HookCallback = Callable[[dict[str, Any]], Coroutine[Any, Any, None]]


class HookManager:
    """
    Event system for graph run lifecycle hooks.

    Supported events:
        - run_start:   Before the first node, after the seed merge
        - node_start:  Before a node executes
        - node_end:    After the node's update is merged and the next node resolved
        - error:       When a run fails (any GraphRuntimeError)
        - complete:    When a run reaches END
    """

    VALID_EVENTS = {"run_start", "node_start", "node_end", "error", "complete"}

    def __init__(self):
        self._hooks: dict[str, list[HookCallback]] = {
            event: [] for event in self.VALID_EVENTS
        }

    def on(self, event: str) -> Callable:
        """
        Decorator to register an event hook.

        Usage:
            @hooks.on("node_end")
            async def my_handler(data):
                print(data)
        """
        self._check_event(event)

        def decorator(fn: HookCallback) -> HookCallback:
            self._hooks[event].append(fn)
            return fn

        return decorator

    def register(self, event: str, callback: HookCallback) -> None:
        """Register a hook callback programmatically."""
        self._check_event(event)
        self._hooks[event].append(callback)

    def _check_event(self, event: str) -> None:
        if event not in self.VALID_EVENTS:
            raise ValueError(
                f"Unknown event '{event}'. "
                f"Valid events: {', '.join(sorted(self.VALID_EVENTS))}"
            )

    async def emit(self, event: str, data: dict[str, Any]) -> None:
        """
        Emit an event, calling all registered hooks.
        Hooks are called concurrently. Errors in hooks are logged
        and do NOT affect the run.
        """
        callbacks = self._hooks.get(event)
        if not callbacks:
            return

        results = await asyncio.gather(
            *(cb(data) for cb in callbacks),
            return_exceptions=True
        )

        for result in results:
            if isinstance(result, Exception):
                logger.warning(
                    "Hook error on '%s': %s: %s",
                    event, type(result).__name__, result,
                )
