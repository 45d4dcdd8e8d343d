# __init__.py - LLM package
from .base import LLMProvider, LLMConfig, LLMProviderError
from .adapters import OpenAIAdapter, AnthropicAdapter

__all__ = ["LLMProvider", "LLMConfig", "LLMProviderError", "OpenAIAdapter", "AnthropicAdapter"]
