import asyncio

import pytest

from stategraph import (
    Agent, Message, ToolCall, tool, InMemoryStore,
    StateGraph, START, END, Replace,
    chat_node, ToolNode, tools_condition, messages_schema, create_react_agent,
    RecursionLimitError, NodeExecutionError, GraphAbortedError, NodeUpdate,
)


class ScriptedLLM:
    """Fake provider replaying canned replies and recording every request."""

    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []

    async def generate(self, messages, tools=None):
        self.calls.append({"messages": list(messages), "tools": tools})
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class LoopingLLM:
    """Always asks for the same tool."""

    async def generate(self, messages, tools=None):
        return Message.assistant("", [ToolCall(id="x", name="calculator", args={"expression": "1+1"})])


@tool()
def calculator(expression: str) -> str:
    """Evaluate an arithmetic expression."""
    left, right = expression.split("+")
    return f"{expression} = {int(left) + int(right)}"


@tool()
def get_weather(city: str) -> str:
    """Look up the weather for a city."""
    return f"{city}: sunny, 22C"


def ask_tools(*calls):
    return Message.assistant("", [ToolCall(id=f"call_{i}", name=n, args=a) for i, (n, a) in enumerate(calls)])


# ---- Prebuilt pieces ----

def test_tools_condition():
    assert tools_condition({"messages": []}) == "end"
    assert tools_condition({"messages": [Message.assistant("done")]}) == "end"
    assert tools_condition({"messages": [ask_tools(("calculator", {}))]}) == "tools"


def test_tool_node_runs_every_call_in_order():
    node = ToolNode([calculator, get_weather])
    state = {"messages": [ask_tools(("calculator", {"expression": "2+3"}), ("get_weather", {"city": "Rome"}))]}
    update = asyncio.run(node(state))
    results = update["messages"]
    assert [m.role for m in results] == ["tool", "tool"]
    assert [m.tool_call_id for m in results] == ["call_0", "call_1"]
    assert results[0].content == "2+3 = 5"
    assert results[1].content == "Rome: sunny, 22C"
    assert results[1].name == "get_weather"


def test_tool_node_requires_tool_calls():
    with pytest.raises(ValueError):
        asyncio.run(ToolNode([calculator])({"messages": [Message.user("hi")]}))


def test_chat_node_renders_system_prompt_from_state():
    llm = ScriptedLLM([Message.assistant("Hello Ada")])
    node = chat_node(llm, system_prompt="You are talking to {{ user_name }}.", tools=[get_weather])

    update = asyncio.run(node({"messages": [Message.user("hi")], "user_name": "Ada"}))

    assert update == {"messages": [Message.assistant("Hello Ada")]}
    sent = llm.calls[0]["messages"]
    assert sent[0] == Message.system("You are talking to Ada.")
    assert sent[1] == Message.user("hi")
    assert [t["name"] for t in llm.calls[0]["tools"]] == ["get_weather"]


def test_chat_node_in_a_custom_graph():
    llm = ScriptedLLM([Message.assistant("A catchy title")])
    graph = StateGraph(messages_schema(topic=Replace("")))
    graph.add_node("write", chat_node(llm, system_prompt="Write a title about {{ topic }}."))
    graph.add_edge(START, "write")
    graph.add_edge("write", END)

    state = asyncio.run(graph.compile().invoke({"topic": "graphs", "messages": [Message.user("go")]}))
    assert state["messages"][-1].content == "A catchy title"
    assert llm.calls[0]["tools"] is None
    assert llm.calls[0]["messages"][0].content == "Write a title about graphs."


# ---- ReAct loop ----

def test_react_graph_loops_until_answer():
    llm = ScriptedLLM([
        ask_tools(("calculator", {"expression": "15+27"})),
        Message.assistant("The answer is 42."),
    ])
    app = create_react_agent(llm, tools=[calculator])

    async def main():
        return [e async for e in app.stream({"messages": [Message.user("15+27?")]})]

    events = asyncio.run(main())
    nodes = [e.node for e in events if isinstance(e, NodeUpdate)]
    assert nodes == ["agent", "tools", "agent"]

    final = events[-1].state["messages"]
    assert [m.role for m in final] == ["user", "assistant", "tool", "assistant"]
    assert final[2].content == "15+27 = 42"
    # second model call sees the tool result
    assert llm.calls[1]["messages"][-1].role == "tool"


def test_react_graph_without_tools_answers_directly():
    llm = ScriptedLLM([Message.assistant("hi there")])
    app = create_react_agent(llm)
    result = asyncio.run(app.run({"messages": [Message.user("hello")]}))
    assert result.steps == 1
    assert result.state["messages"][-1].content == "hi there"


# ---- Agent ----

def test_agent_remembers_within_a_session():
    llm = ScriptedLLM([Message.assistant("Hi Ada"), Message.assistant("You are Ada")])
    agent = Agent(llm=llm, instructions="Be friendly.")

    async def main():
        first = await agent.run("My name is Ada")
        second = await agent.run("What is my name?")
        return first, second

    first, second = asyncio.run(main())
    assert first.session_id == second.session_id == agent.session_id
    assert second.answer == "You are Ada"
    assert [m.content for m in second.messages] == [
        "My name is Ada", "Hi Ada", "What is my name?", "You are Ada",
    ]
    # system prompt is rendered per call, never stored in history
    assert llm.calls[1]["messages"][0].role == "system"
    assert all(m.role != "system" for m in second.messages)


def test_agent_sessions_are_isolated():
    llm = ScriptedLLM([Message.assistant("one"), Message.assistant("two")])
    store = InMemoryStore()
    agent = Agent(llm=llm, store=store)

    async def main():
        await agent.run("first", session_id="thread-1")
        agent.new_session()
        result = await agent.run("second")
        return result, await agent.get_history("thread-1"), await agent.list_sessions()

    result, history_1, sessions = asyncio.run(main())
    assert result.session_id != "thread-1"
    assert [m.content for m in result.messages] == ["second", "two"]
    assert [m.content for m in history_1] == ["first", "one"]
    assert set(sessions) == {"thread-1", result.session_id}


def test_agent_tool_loop_is_bounded():
    agent = Agent(llm=LoopingLLM(), tools=[calculator], recursion_limit=6)
    with pytest.raises(RecursionLimitError):
        asyncio.run(agent.run("loop forever"))
    assert asyncio.run(agent.get_history()) == []


def test_agent_surfaces_llm_failures():
    agent = Agent(llm=ScriptedLLM([RuntimeError("503 from provider")]))
    with pytest.raises(NodeExecutionError) as info:
        asyncio.run(agent.run("hi"))
    assert info.value.node == "agent"


def test_agent_validates_request():
    agent = Agent(llm=ScriptedLLM([]))
    with pytest.raises(TypeError):
        asyncio.run(agent.run(42))
    with pytest.raises(ValueError):
        asyncio.run(agent.run("   "))


def test_agent_instructions_file(tmp_path):
    path = tmp_path / "instructions.md"
    path.write_text("You are a pirate.", encoding="utf-8")
    llm = ScriptedLLM([Message.assistant("Arr")])
    agent = Agent(llm=llm, instructions_file=str(path))
    asyncio.run(agent.run("hello"))
    assert llm.calls[0]["messages"][0].content == "You are a pirate."

    with pytest.raises(FileNotFoundError):
        Agent(llm=llm, instructions_file=str(tmp_path / "missing.md"))


def test_agent_hooks():
    llm = ScriptedLLM([ask_tools(("get_weather", {"city": "Oslo"})), Message.assistant("Sunny")])
    agent = Agent(llm=llm, tools=[get_weather])
    visited = []

    @agent.on("node_end")
    async def log_step(data):
        visited.append(data["node"])

    result = asyncio.run(agent.run("Weather in Oslo?"))
    assert visited == ["agent", "tools", "agent"]
    assert result.steps == 3
    assert result.trace.path() == visited


def test_chat_node_state_field_named_self():
    llm = ScriptedLLM([Message.assistant("ok")])
    node = chat_node(llm, system_prompt="Acting as {{ self }}.")
    asyncio.run(node({"messages": [Message.user("hi")], "self": "the critic"}))
    assert llm.calls[0]["messages"][0].content == "Acting as the critic."


def test_abort_before_the_run_starts_is_honoured():
    llm = ScriptedLLM([Message.assistant("late answer")])
    agent = Agent(llm=llm)

    async def main():
        task = asyncio.create_task(agent.run("hello"))
        agent.abort("user pressed stop")
        with pytest.raises(GraphAbortedError) as info:
            await task
        return info.value

    err = asyncio.run(main())
    assert err.reason == "user pressed stop"
    assert err.steps == 0
    assert llm.calls == []
    assert asyncio.run(agent.get_history()) == []

    # the abort is spent; the next run goes through
    assert asyncio.run(agent.run("hello again")).answer == "late answer"


class GatedLLM:
    """Asks for a tool, but only once the test opens the gate."""

    def __init__(self):
        self.called = asyncio.Event()
        self.gate = asyncio.Event()

    async def generate(self, messages, tools=None):
        self.called.set()
        await self.gate.wait()
        return ask_tools(("get_weather", {"city": "Oslo"}))


def test_abort_stops_a_run_in_flight():
    async def main():
        llm = GatedLLM()
        agent = Agent(llm=llm, tools=[get_weather])
        task = asyncio.create_task(agent.run("Weather?", session_id="s"))
        await llm.called.wait()
        agent.abort("enough")
        llm.gate.set()
        with pytest.raises(GraphAbortedError) as info:
            await task
        return agent, info.value

    agent, err = asyncio.run(main())
    assert err.steps == 1
    assert asyncio.run(agent.get_history("s")) == []
