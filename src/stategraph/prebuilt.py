# prebuilt.py - Ready-made nodes and routers for chat graphs
#
# Provides:
#   - messages_schema(): state with an append-only "messages" history
#   - chat_node():       node that calls an LLM over the history
#   - ToolNode:          node that runs the tool calls of the last reply
#   - tools_condition(): router, "tools" while the model asks for tools, else "end"
#
# The LLM client is passed in explicitly; build it once and share it.

from typing import Any, Iterable, Mapping, Optional, Union

from jinja2 import Template

from .core.models import Message
from .core.state import Append, Reducer, StateSchema
from .tools.base import ToolWrapper
from .tools.registry import ToolRegistry

ToolsLike = Union[ToolRegistry, Iterable[ToolWrapper], None]


def messages_schema(**extra_fields: Reducer) -> StateSchema:
    """Schema with `messages: Append()` plus any extra fields."""
    return StateSchema({"messages": Append(), **extra_fields})


def _as_registry(tools: ToolsLike) -> Optional[ToolRegistry]:
    if tools is None:
        return None
    if isinstance(tools, ToolRegistry):
        return tools
    return ToolRegistry(tools)


def chat_node(llm, system_prompt: str = "", tools: ToolsLike = None, messages_key: str = "messages"):
    """
    Build a node that sends the conversation to `llm` and appends its reply.

    Args:
        llm: Any LLMProvider
        system_prompt: Jinja2 template rendered against the current state,
            e.g. "You are helping {{ user_name }}." Empty = no system message.
        tools: Tools the model may call (registry or list of ToolWrapper)
        messages_key: State field holding the history

    Returns:
        An async node returning {messages_key: [assistant_message]}
    """
    template = Template(system_prompt) if system_prompt else None
    registry = _as_registry(tools)
    schemas = registry.schemas() if registry else None

    async def chat(state: Mapping[str, Any]) -> dict[str, Any]:
        history = list(state.get(messages_key) or [])
        if template is not None:
            history.insert(0, Message.system(template.render(dict(state))))
        reply = await llm.generate(history, tools=schemas)
        return {messages_key: [reply]}

    return chat


class ToolNode:
    """
    Node that executes every tool call in the last assistant message and
    appends one `tool` message per call, in call order.

    Tool failures are returned as "[TOOL ERROR] ..." messages rather than
    failing the run, so the model can recover.
    """

    def __init__(self, tools: ToolsLike, messages_key: str = "messages"):
        self.registry = _as_registry(tools) or ToolRegistry()
        self.messages_key = messages_key

    async def __call__(self, state: Mapping[str, Any]) -> dict[str, Any]:
        history = state.get(self.messages_key) or []
        last = history[-1] if history else None
        calls = getattr(last, "tool_calls", None)
        if not calls:
            raise ValueError("ToolNode expects the last message to carry tool calls.")

        results = []
        for call in calls:
            output = await self.registry.execute_tool(call)
            results.append(Message.tool(output, tool_call_id=call.id, name=call.name))
        return {self.messages_key: results}


def tools_condition(state: Mapping[str, Any], messages_key: str = "messages") -> str:
    """Route to "tools" when the last message requests tool calls, else "end"."""
    history = state.get(messages_key) or []
    if history and getattr(history[-1], "tool_calls", None):
        return "tools"
    return "end"
