"""LLM provider adapters."""

from listpro.adapters.llm.base import LLMMessage, LLMProvider, LLMResponse, VisionMessage
from listpro.adapters.llm.openai import OpenAIProvider
from listpro.adapters.llm.stub import StubLLMProvider

__all__ = [
    "LLMMessage",
    "LLMProvider",
    "LLMResponse",
    "VisionMessage",
    "OpenAIProvider",
    "StubLLMProvider",
]
