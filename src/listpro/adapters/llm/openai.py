"""OpenAI chat completions provider (text and image input)."""

from typing import Any

import httpx

from listpro.adapters.llm.base import LLMMessage, LLMProvider, LLMResponse, VisionMessage
from listpro.config import settings
from listpro.logging import get_logger

logger = get_logger(__name__)


def _vision_payload(message: VisionMessage) -> dict[str, Any]:
    if not message.images:
        return {"role": message.role, "content": message.text}

    parts: list[dict[str, Any]] = [{"type": "text", "text": message.text}]
    for image in message.images:
        parts.append({"type": "image_url", "image_url": {"url": image}})
    return {"role": message.role, "content": parts}


def _parse_usage(data: dict[str, Any]) -> dict[str, int]:
    usage = data.get("usage") or {}
    return {
        key: int(usage.get(key, 0))
        for key in ("prompt_tokens", "completion_tokens", "total_tokens")
    }


def _first_choice(data: Any) -> dict[str, Any]:
    """Return the first choice of a chat reply, rejecting malformed bodies.

    Raises:
        ValueError: If there is no choice or its message content is not text
    """
    choices = data.get("choices") if isinstance(data, dict) else None
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        raise ValueError("OpenAI reply has no choices")

    message = choices[0].get("message")
    if not isinstance(message, dict):
        raise ValueError("OpenAI reply choice has no message")
    content = message.get("content")
    if content is not None and not isinstance(content, str):
        raise ValueError(f"OpenAI reply content is {type(content).__name__}, expected text")
    return {**choices[0], "message": {**message, "content": content}}


class OpenAIProvider(LLMProvider):
    """Talks to ``{base_url}/chat/completions`` with a bearer key.

    The same class serves the text model used by fusion and content
    generation and the vision model used per frame; only ``model`` differs.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.api_key = api_key or settings.openai_api_key
        self.model = model or settings.openai_model
        self.base_url = (base_url or settings.openai_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.external_call_timeout_seconds

        if not self.api_key:
            logger.warning("openai_api_key_missing", model=self.model)

    @property
    def name(self) -> str:
        return f"openai:{self.model}"

    @property
    def supports_vision(self) -> bool:
        return True

    @property
    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    async def complete(
        self,
        messages: list[LLMMessage],
        temperature: float = 0.7,
        max_tokens: int = 4096,
        json_mode: bool = False,
    ) -> LLMResponse:
        payload = [{"role": m.role, "content": m.content} for m in messages]
        return await self._chat(payload, temperature, max_tokens, json_mode)

    async def complete_with_vision(
        self,
        messages: list[VisionMessage],
        temperature: float = 0.7,
        max_tokens: int = 4096,
        json_mode: bool = False,
    ) -> LLMResponse:
        payload = [_vision_payload(m) for m in messages]
        return await self._chat(payload, temperature, max_tokens, json_mode)

    async def _chat(
        self,
        messages: list[dict[str, Any]],
        temperature: float,
        max_tokens: int,
        json_mode: bool,
    ) -> LLMResponse:
        if not self.api_key:
            raise ValueError("OpenAI API key not configured")

        body: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if json_mode:
            body["response_format"] = {"type": "json_object"}

        logger.debug("openai_request", model=self.model, messages=len(messages))

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                f"{self.base_url}/chat/completions", headers=self._headers, json=body
            )
            response.raise_for_status()
            data = response.json()

        choice = _first_choice(data)
        result = LLMResponse(
            content=choice["message"]["content"] or "",
            model=data.get("model", self.model),
            usage=_parse_usage(data),
            finish_reason=choice.get("finish_reason"),
        )

        log = logger.warning if result.truncated else logger.info
        log(
            "openai_response",
            model=result.model,
            tokens_used=result.usage["total_tokens"],
            finish_reason=result.finish_reason,
        )
        return result

    async def health_check(self) -> bool:
        """True when the key is set and the models endpoint answers 200."""
        if not self.api_key:
            return False

        try:
            async with httpx.AsyncClient(timeout=10.0) as client:
                response = await client.get(f"{self.base_url}/models", headers=self._headers)
        except httpx.HTTPError as e:
            logger.error("openai_health_check_failed", error=str(e))
            return False
        return response.status_code == 200
