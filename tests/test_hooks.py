import asyncio
import logging

import pytest

from stategraph import StateGraph, START, END, Append, HookManager, RoutingError


def build(hooks=None, route_to="done"):
    graph = StateGraph({"history": Append()})
    graph.add_node("a", lambda s: {"history": ["a"]})
    graph.add_node("b", lambda s: {"history": ["b"]})
    graph.add_edge(START, "a")
    graph.add_edge("a", "b")
    graph.add_conditional_edges("b", lambda s: route_to, {"done": END})
    return graph.compile(hooks=hooks)


def test_lifecycle_events_in_order():
    app = build()
    events = []

    for name in ("run_start", "node_start", "node_end", "complete"):
        def make(event):
            async def handler(data):
                events.append((event, data.get("node")))
            return handler
        app.on(name)(make(name))

    asyncio.run(app.invoke())
    assert events == [
        ("run_start", None),
        ("node_start", "a"),
        ("node_end", "a"),
        ("node_start", "b"),
        ("node_end", "b"),
        ("complete", None),
    ]


def test_node_end_payload():
    app = build()
    payloads = []

    @app.on("node_end")
    async def capture(data):
        payloads.append(data)

    asyncio.run(app.invoke())
    assert payloads[0]["next"] == "b"
    assert payloads[0]["route_key"] is None
    assert payloads[1]["next"] == END
    assert payloads[1]["route_key"] == "done"
    assert payloads[1]["update"] == {"history": ["b"]}


def test_error_event_on_failed_run():
    hooks = HookManager()
    errors = []

    @hooks.on("error")
    async def capture(data):
        errors.append(data["error"])

    app = build(hooks=hooks, route_to="elsewhere")
    with pytest.raises(RoutingError):
        asyncio.run(app.invoke())
    assert len(errors) == 1
    assert isinstance(errors[0], RoutingError)


def test_failing_hook_does_not_break_run(caplog):
    app = build()

    @app.on("node_start")
    async def broken(data):
        raise RuntimeError("hook exploded")

    with caplog.at_level(logging.WARNING, logger="stategraph.observe.hooks"):
        state = asyncio.run(app.invoke())

    assert state["history"] == ["a", "b"]
    assert any("hook exploded" in r.getMessage() for r in caplog.records)


def test_unknown_event_rejected():
    hooks = HookManager()
    with pytest.raises(ValueError):
        hooks.on("step_done")
    with pytest.raises(ValueError):
        hooks.register("nope", lambda data: None)
