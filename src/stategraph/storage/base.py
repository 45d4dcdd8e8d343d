# base.py - Checkpoint Store Protocol & InMemoryStore
#
# Provides:
#   - CheckpointStore: Protocol that any persistence backend must implement
#   - InMemoryStore: Built-in dict-based store (dev/prototyping/tests)

import copy
from typing import Any, Protocol, runtime_checkable, Optional


@runtime_checkable
class CheckpointStore(Protocol):
    """
    Protocol for session checkpoint backends.

    Any object implementing these 4 async methods can be passed to
    StateGraph.compile(store=...). The engine calls get() before a run
    that carries a session_id and put() once the run reaches END.

    Session ids partition history completely: two different ids never
    observe each other's state. get/put must be atomic per session id;
    last writer wins.

    Built-in:
        InMemoryStore - dict-based, dies with process

    Developer-provided (examples):
        PostgresStore, RedisStore, SQLiteStore
    """

    async def get(self, session_id: str) -> Optional[dict[str, Any]]:
        """Return the last persisted state, or None if the session is unknown."""
        ...

    async def put(self, session_id: str, state: dict[str, Any]) -> None:
        """Persist state for the session. Overwrites if it exists."""
        ...

    async def delete(self, session_id: str) -> None:
        """Forget a session."""
        ...

    async def list_sessions(self) -> list[str]:
        """List all stored session ids."""
        ...


class InMemoryStore:
    """
    Dict-based checkpoint store. Zero config, dies with process.

    States are deep-copied on the way in and out, so a caller holding a
    returned state can never alter what another run will load.

    NOT suitable for production (state lost on process restart).
    """

    def __init__(self):
        self._sessions: dict[str, dict[str, Any]] = {}

    async def get(self, session_id: str) -> Optional[dict[str, Any]]:
        state = self._sessions.get(session_id)
        return copy.deepcopy(state) if state is not None else None

    async def put(self, session_id: str, state: dict[str, Any]) -> None:
        self._sessions[session_id] = copy.deepcopy(dict(state))

    async def delete(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    async def list_sessions(self) -> list[str]:
        return list(self._sessions.keys())
