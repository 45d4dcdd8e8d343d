# adapters.py - LLM Provider Adapters
#
# Concrete implementations of LLMProvider for:
#   - OpenAI-compatible chat completions (OpenAI, DeepSeek, Together, Groq, vLLM)
#   - Anthropic messages API (Claude)
#
# Uses httpx for async HTTP calls. No SDK dependencies.
# Pass a long-lived httpx.AsyncClient to reuse one connection pool across
# every node that talks to the provider; otherwise a client is opened per call.

import json
import logging
from typing import Any, Optional

import httpx

from ..core.models import Message, ToolCall
from .base import LLMConfig, LLMProviderError

logger = logging.getLogger(__name__)


class _HTTPAdapter:
    provider = "LLM"

    def __init__(self, config: LLMConfig, client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self.client = client

    async def _post(self, url: str, headers: dict[str, str], payload: dict[str, Any]) -> dict[str, Any]:
        if self.client is not None:
            response = await self.client.post(url, headers=headers, json=payload, timeout=self.config.timeout)
        else:
            async with httpx.AsyncClient(timeout=self.config.timeout) as client:
                response = await client.post(url, headers=headers, json=payload)

        if response.status_code != 200:
            raise LLMProviderError(self.provider, response.status_code, response.text)
        try:
            return response.json()
        except ValueError as e:
            raise LLMProviderError(self.provider, response.status_code, f"invalid JSON body: {e}") from e


class OpenAIAdapter(_HTTPAdapter):
    """
    LLM adapter for OpenAI-compatible APIs.
    Works with: OpenAI, DeepSeek, Together AI, Groq, OpenRouter, local vLLM, etc.

    Usage:
        llm = OpenAIAdapter(LLMConfig(
            model="deepseek-chat",
            api_key="sk-...",
            base_url="https://api.deepseek.com/v1",
        ))
        reply = await llm.generate([Message.user("Hi")])
    """
    provider = "OpenAI"

    def __init__(self, config: LLMConfig, client: Optional[httpx.AsyncClient] = None):
        super().__init__(config, client)
        self.base_url = (config.base_url or "https://api.openai.com/v1").rstrip("/")

    async def generate(
        self,
        messages: list[Message],
        tools: Optional[list[dict[str, Any]]] = None,
    ) -> Message:
        payload: dict[str, Any] = {
            "model": self.config.model,
            "messages": [self._to_wire(msg) for msg in messages],
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens,
            **self.config.extra,
        }
        if tools:
            payload["tools"] = [{"type": "function", "function": t} for t in tools]

        data = await self._post(
            f"{self.base_url}/chat/completions",
            headers={
                "Authorization": f"Bearer {self.config.api_key}",
                "Content-Type": "application/json",
            },
            payload=payload,
        )
        try:
            return self._from_wire(data["choices"][0]["message"])
        except (KeyError, IndexError, TypeError) as e:
            raise LLMProviderError(self.provider, 200, f"unexpected response shape: {e}") from e

    @staticmethod
    def _to_wire(msg: Message) -> dict[str, Any]:
        if msg.role == "tool":
            return {"role": "tool", "tool_call_id": msg.tool_call_id, "content": msg.content}

        wire: dict[str, Any] = {"role": msg.role, "content": msg.content}
        if msg.tool_calls:
            wire["tool_calls"] = [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {"name": call.name, "arguments": json.dumps(call.args)},
                }
                for call in msg.tool_calls
            ]
        return wire

    @staticmethod
    def _from_wire(raw: dict[str, Any]) -> Message:
        calls = []
        for item in raw.get("tool_calls") or []:
            fn = item["function"]
            arguments = fn.get("arguments") or "{}"
            try:
                args = json.loads(arguments) if isinstance(arguments, str) else dict(arguments)
            except json.JSONDecodeError:
                # Model produced broken JSON; keep it so the tool reports the problem
                logger.warning("Unparseable tool arguments for %s: %r", fn.get("name"), arguments)
                args = {"__raw__": arguments}
            calls.append(ToolCall(id=item.get("id", ""), name=fn["name"], args=args))
        return Message.assistant(raw.get("content") or "", calls)


class AnthropicAdapter(_HTTPAdapter):
    """
    LLM adapter for Anthropic's Claude API.
    Differences from OpenAI: the system prompt is a separate field, tool
    calls are `tool_use` content blocks and tool results go back as
    `tool_result` blocks inside a user message.

    Usage:
        llm = AnthropicAdapter(LLMConfig(
            model="claude-sonnet-4-20250514",
            api_key="sk-ant-...",
        ))
        reply = await llm.generate(messages)
    """
    provider = "Anthropic"

    def __init__(self, config: LLMConfig, client: Optional[httpx.AsyncClient] = None):
        super().__init__(config, client)
        self.base_url = (config.base_url or "https://api.anthropic.com/v1").rstrip("/")

    async def generate(
        self,
        messages: list[Message],
        tools: Optional[list[dict[str, Any]]] = None,
    ) -> Message:
        system_content, anthropic_messages = self._to_wire(messages)

        payload: dict[str, Any] = {
            "model": self.config.model,
            "messages": anthropic_messages,
            "max_tokens": self.config.max_tokens,
            "temperature": self.config.temperature,
            **self.config.extra,
        }
        if system_content:
            payload["system"] = system_content
        if tools:
            payload["tools"] = [
                {"name": t["name"], "description": t["description"], "input_schema": t["parameters"]}
                for t in tools
            ]

        data = await self._post(
            f"{self.base_url}/messages",
            headers={
                "x-api-key": self.config.api_key,
                "anthropic-version": "2023-06-01",
                "Content-Type": "application/json",
            },
            payload=payload,
        )

        text_parts = []
        calls = []
        for block in data.get("content", []):
            if block.get("type") == "text":
                text_parts.append(block.get("text", ""))
            elif block.get("type") == "tool_use":
                calls.append(ToolCall(id=block["id"], name=block["name"], args=block.get("input") or {}))
        return Message.assistant("".join(text_parts), calls)

    @staticmethod
    def _to_wire(messages: list[Message]) -> tuple[str, list[dict[str, Any]]]:
        system_content = ""
        wire: list[dict[str, Any]] = []

        for msg in messages:
            if msg.role == "system":
                system_content = msg.content
            elif msg.role == "tool":
                block = {"type": "tool_result", "tool_use_id": msg.tool_call_id, "content": msg.content}
                # Consecutive tool results share one user turn
                if wire and wire[-1]["role"] == "user" and isinstance(wire[-1]["content"], list) \
                        and wire[-1]["content"] and wire[-1]["content"][0].get("type") == "tool_result":
                    wire[-1]["content"].append(block)
                else:
                    wire.append({"role": "user", "content": [block]})
            elif msg.role == "assistant" and msg.tool_calls:
                blocks: list[dict[str, Any]] = []
                if msg.content:
                    blocks.append({"type": "text", "text": msg.content})
                blocks.extend(
                    {"type": "tool_use", "id": call.id, "name": call.name, "input": call.args}
                    for call in msg.tool_calls
                )
                wire.append({"role": "assistant", "content": blocks})
            else:
                wire.append({"role": msg.role, "content": msg.content})

        return system_content, wire
