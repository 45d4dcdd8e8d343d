"""
Integration test against a live OpenAI-compatible provider.

Skipped unless LIVE_LLM_MODEL and LIVE_LLM_API_KEY are set, e.g.:

    LIVE_LLM_MODEL=deepseek-chat LIVE_LLM_API_KEY=sk-... \
    LIVE_LLM_BASE_URL=https://api.deepseek.com/v1 pytest -m live
"""

import asyncio
import os

import pytest

from stategraph import Agent, tool
from stategraph.llm import OpenAIAdapter, LLMConfig

pytestmark = [
    pytest.mark.live,
    pytest.mark.skipif(
        not (os.environ.get("LIVE_LLM_MODEL") and os.environ.get("LIVE_LLM_API_KEY")),
        reason="LIVE_LLM_MODEL / LIVE_LLM_API_KEY not set",
    ),
]


@tool()
def lookup_info(topic: str) -> str:
    """Look up information about a programming topic. Returns a brief explanation."""
    data = {
        "python": "Python is a high-level, interpreted programming language known for its readability.",
        "asyncio": "asyncio is Python's built-in library for writing concurrent code using async/await syntax.",
        "rust": "Rust is a systems programming language focused on safety, speed, and concurrency.",
    }
    key = topic.lower().strip()
    for name, text in data.items():
        if name in key:
            return text
    return f"No information found for: {topic}"


@tool()
def multiply(a: int, b: int) -> int:
    """Multiply two integers."""
    return a * b


def make_agent():
    llm = OpenAIAdapter(LLMConfig.from_env("LIVE_LLM", timeout=120.0))
    return Agent(
        llm=llm,
        tools=[lookup_info, multiply],
        instructions="You are a concise assistant. Use the tools whenever they can answer.",
        recursion_limit=10,
    )


def test_live_tool_round_trip():
    agent = make_agent()
    steps = []

    @agent.on("node_end")
    async def record(data):
        steps.append(data["node"])

    result = asyncio.run(agent.run("What is 37 multiplied by 91? Use the multiply tool."))

    assert "tools" in steps
    assert "3367" in result.answer.replace(",", "")


def test_live_multi_turn_memory():
    agent = make_agent()

    async def main():
        await agent.run("My favourite language is Rust. Just acknowledge.")
        return await agent.run("Which language did I say is my favourite?")

    result = asyncio.run(main())
    assert "rust" in result.answer.lower()
    assert len(result.messages) >= 4
