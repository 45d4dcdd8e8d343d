# agent.py - ReAct Agent Entry Point
#
# A prebuilt graph for the most common use: a chat model that may call
# tools in a loop, with per-session memory.
#
#   START -> agent --(tools_condition)--> tools -> agent
#                  \--> END
#
#   from stategraph import Agent, tool
#
#   @tool()
#   def get_weather(city: str) -> str:
#       """Look up the current weather for a city."""
#       ...
#
#   agent = Agent(
#       llm=OpenAIAdapter(LLMConfig.from_env("DEEPSEEK", model="deepseek-chat")),
#       tools=[get_weather],
#       instructions="You are a helpful assistant.",
#   )
#
#   result = await agent.run("What's the weather in Paris?")

import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .core.engine import CompiledGraph
from .core.graph import StateGraph
from .core.models import START, END, DEFAULT_RECURSION_LIMIT, Message, RunConfig, AbortSignal
from .observe.hooks import HookManager
from .observe.trace import RunTrace
from .prebuilt import messages_schema, chat_node, ToolNode, tools_condition, ToolsLike, _as_registry
from .storage.base import InMemoryStore


def create_react_agent(
    llm,
    tools: ToolsLike = None,
    system_prompt: str = "",
    store=None,
    recursion_limit: int = DEFAULT_RECURSION_LIMIT,
    hooks: Optional[HookManager] = None,
) -> CompiledGraph:
    """
    Build and compile the agent/tools loop.

    Each model turn and each tool round counts as one node execution, so
    `recursion_limit` bounds the number of LLM calls + tool rounds per run.
    """
    registry = _as_registry(tools)

    graph = StateGraph(messages_schema())
    graph.add_node("agent", chat_node(llm, system_prompt, registry))
    graph.add_node("tools", ToolNode(registry))
    graph.add_edge(START, "agent")
    graph.add_conditional_edges("agent", tools_condition, {"tools": "tools", "end": END})
    graph.add_edge("tools", "agent")
    return graph.compile(store=store, recursion_limit=recursion_limit, hooks=hooks)


@dataclass
class AgentResult:
    """Final result returned to the developer after the agent answers."""
    answer: str
    messages: list[Message]
    steps: int
    session_id: str
    trace: RunTrace


class Agent:
    """
    The ReAct agent - developer entry point.

    Supports multi-turn conversations: call run() multiple times and the
    agent keeps the history of the current session in its store.

    Args:
        llm: Any LLM provider with an async generate(messages, tools) method
        tools: ToolWrappers (from @tool) or a ToolRegistry
        instructions: System prompt (Jinja2 template over the state)
        instructions_file: Path to a file containing the system prompt
        recursion_limit: Max node executions per run (default: 25)
        store: CheckpointStore backend for memory (default: InMemoryStore)
    """

    def __init__(
        self,
        llm,
        tools: ToolsLike = None,
        instructions: str = "",
        instructions_file: Optional[str] = None,
        recursion_limit: int = DEFAULT_RECURSION_LIMIT,
        store=None,
    ):
        # File takes priority over string
        if instructions_file:
            path = Path(instructions_file)
            if not path.exists():
                raise FileNotFoundError(f"Instructions file not found: {instructions_file}")
            instructions = path.read_text(encoding="utf-8")

        self.llm = llm
        self.store = store or InMemoryStore()
        self.hooks = HookManager()
        self.graph = create_react_agent(
            llm,
            tools=tools,
            system_prompt=instructions,
            store=self.store,
            recursion_limit=recursion_limit,
            hooks=self.hooks,
        )
        self._session_id: Optional[str] = None
        # Signal the next run() adopts; abort() before that run starts still lands
        self._pending_abort = AbortSignal()
        self._active_aborts: set[AbortSignal] = set()

    # ---- Session Management ----

    @property
    def session_id(self) -> Optional[str]:
        """Get the current session ID, or None if no session is active."""
        return self._session_id

    def on(self, event: str):
        """
        Decorator to register event hooks.

        Usage:
            @agent.on("node_end")
            async def log_step(data):
                print(f"Step {data['step']}: {data['node']}")
        """
        return self.hooks.on(event)

    def new_session(self) -> None:
        """
        Start a fresh session on the next run().

        Previous sessions remain in the store and can be resumed by
        passing their id to run().
        """
        self._session_id = None
        self._pending_abort = AbortSignal()

    def abort(self, reason: str = "User aborted execution") -> None:
        """
        Abort every run of this agent in flight, before its next step.
        With no run in flight, the next run() stops before its first node.
        Nothing from an aborted run is saved to the session.
        """
        if not self._active_aborts:
            self._pending_abort.abort(reason)
        for signal in self._active_aborts:
            signal.abort(reason)

    async def get_history(self, session_id: Optional[str] = None) -> list[Message]:
        """Messages stored for a session (current session by default)."""
        sid = session_id or self._session_id
        if sid is None:
            return []
        state = await self.graph.get_state(sid)
        return list(state["messages"]) if state else []

    async def list_sessions(self) -> list[str]:
        """List all session IDs in the store."""
        return await self.store.list_sessions()

    async def run(self, request: str, session_id: Optional[str] = None) -> AgentResult:
        """
        Run the agent with a user request.

        First call creates a new session. Subsequent calls continue the
        same session with its full history. Pass session_id to switch to
        (or resume) a specific session.

        Args:
            request: The user's message
            session_id: Optional session to run in

        Returns:
            AgentResult with the final answer, full history and trace

        Raises:
            TypeError: If request is not a string.
            ValueError: If request is empty or whitespace-only.
            GraphRuntimeError: RecursionLimitError when the model keeps
                calling tools, NodeExecutionError when the LLM call fails,
                GraphAbortedError after abort().
        """
        if not isinstance(request, str):
            raise TypeError(
                f"Request must be a string, got {type(request).__name__}."
            )
        if not request.strip():
            raise ValueError(
                "Request cannot be empty or whitespace-only."
            )

        if session_id is not None:
            self._session_id = session_id
        elif self._session_id is None:
            self._session_id = str(uuid.uuid4())[:8]

        sid = self._session_id

        # Each run owns its signal
        signal, self._pending_abort = self._pending_abort, AbortSignal()
        self._active_aborts.add(signal)
        try:
            result = await self.graph.run(
                {"messages": [Message.user(request.strip())]},
                RunConfig(session_id=sid, abort_signal=signal),
            )
        finally:
            self._active_aborts.discard(signal)

        messages = result.state["messages"]
        return AgentResult(
            answer=messages[-1].content if messages else "",
            messages=messages,
            steps=result.steps,
            session_id=sid,
            trace=result.trace,
        )
