# base.py - LLM Provider Interface
#
# Defines the protocol (interface) that any LLM provider must implement.
# Graph nodes only ever see this protocol: OpenAI, DeepSeek, Anthropic,
# Together, a local vLLM or a test fake all plug in the same way.

import os
from typing import Any, Optional, Protocol, runtime_checkable
from dataclasses import dataclass, field
from ..core.models import Message


class LLMProviderError(RuntimeError):
    """The provider returned an error response or an unreadable payload."""

    def __init__(self, provider: str, status_code: Optional[int], detail: str):
        self.provider = provider
        self.status_code = status_code
        self.detail = detail
        status = f" {status_code}" if status_code is not None else ""
        super().__init__(f"{provider} API error{status}: {detail}")


@runtime_checkable
class LLMProvider(Protocol):
    """
    Protocol that any LLM adapter must implement.

    The entire contract is ONE method:
        messages (+ optional tool schemas) in -> assistant Message out

    Usage:
        class MyProvider:
            async def generate(self, messages, tools=None) -> Message:
                return Message.assistant("hello")

        node = chat_node(MyProvider())
    """
    async def generate(
        self,
        messages: list[Message],
        tools: Optional[list[dict[str, Any]]] = None,
    ) -> Message:
        """
        Send messages to the LLM and return its reply.

        Args:
            messages: Conversation so far
            tools: JSON-schema tool descriptions (see ToolWrapper.to_schema)

        Returns:
            An assistant Message; tool_calls is non-empty when the model
            asks for tools to be run
        """
        ...


@dataclass
class LLMConfig:
    """Configuration for LLM adapters."""
    model: str
    api_key: str = ""
    base_url: str = ""
    temperature: float = 0.2
    max_tokens: int = 4096
    timeout: float = 60.0
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_env(cls, prefix: str = "OPENAI", model: str = "", **overrides) -> "LLMConfig":
        """
        Build a config from environment variables.

        Reads <PREFIX>_API_KEY, <PREFIX>_BASE_URL and <PREFIX>_MODEL.
        An explicit `model` argument wins over <PREFIX>_MODEL.

        Usage:
            config = LLMConfig.from_env("DEEPSEEK", base_url="https://api.deepseek.com/v1")
        """
        prefix = prefix.upper().rstrip("_")
        resolved_model = model or os.environ.get(f"{prefix}_MODEL", "")
        if not resolved_model:
            raise ValueError(f"No model given and {prefix}_MODEL is not set.")
        values = {
            "model": resolved_model,
            "api_key": os.environ.get(f"{prefix}_API_KEY", ""),
            "base_url": os.environ.get(f"{prefix}_BASE_URL", ""),
        }
        values.update(overrides)
        return cls(**values)
