"""Model provider interface shared by fusion, content generation and frame analysis.

Text-only calls go through ``complete``; frame descriptions go through
``complete_with_vision``, which only providers reporting ``supports_vision``
implement.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Literal

Role = Literal["system", "user", "assistant"]


@dataclass
class LLMResponse:
    content: str
    model: str
    usage: dict[str, int] = field(default_factory=dict)
    finish_reason: str | None = None

    @property
    def truncated(self) -> bool:
        """The model stopped at the token limit, so JSON output may be cut off."""
        return self.finish_reason == "length"


@dataclass(frozen=True)
class LLMMessage:
    role: Role
    content: str


@dataclass(frozen=True)
class VisionMessage:
    """Prompt text plus zero or more images (HTTP URLs or ``data:`` URIs)."""

    role: Role
    text: str
    images: tuple[str, ...] = ()


class LLMProvider(ABC):
    """A chat-style model backend.

    Implementations:
    - OpenAIProvider: chat completions API, text and image input
    - StubLLMProvider: deterministic listing data for tests and offline runs
    """

    @property
    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    async def complete(
        self,
        messages: list[LLMMessage],
        temperature: float = 0.7,
        max_tokens: int = 4096,
        json_mode: bool = False,
    ) -> LLMResponse:
        """Generate a completion.

        Args:
            messages: Conversation so far, system prompt first
            temperature: Sampling temperature (0-2)
            max_tokens: Upper bound on generated tokens
            json_mode: Ask the model for a single JSON object

        Raises:
            httpx.HTTPError: On transport or HTTP status failures
            ValueError: When the provider is not configured
        """
        ...

    async def complete_with_vision(
        self,
        messages: list[VisionMessage],
        temperature: float = 0.7,
        max_tokens: int = 4096,
        json_mode: bool = False,
    ) -> LLMResponse:
        raise NotImplementedError(f"{self.name} does not accept image input")

    @property
    def supports_vision(self) -> bool:
        return False

    async def health_check(self) -> bool:
        return True
