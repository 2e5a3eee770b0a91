"""OpenAI Whisper transcription provider."""

from pathlib import Path
from typing import Any

import httpx

from listpro.adapters.transcription.base import TranscriptionProvider
from listpro.config import settings
from listpro.logging import get_logger

logger = get_logger(__name__)


class WhisperTranscriptionProvider(TranscriptionProvider):
    """Speech-to-text via the OpenAI ``/audio/transcriptions`` endpoint."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        timeout: float = 200.0,
    ) -> None:
        self.api_key = api_key or settings.openai_api_key
        self.model = model or settings.whisper_model
        self.base_url = base_url or settings.openai_base_url
        self.timeout = timeout

        if not self.api_key:
            logger.warning("OpenAI API key not configured for transcription")

    @property
    def name(self) -> str:
        return f"whisper:{self.model}"

    async def transcribe(
        self,
        audio_ref: str,
        language: str | None = None,
        response_format: str = "verbose_json",
    ) -> dict[str, Any]:
        """Upload the audio file and return the verbose JSON payload."""
        if not self.api_key:
            raise ValueError("OpenAI API key not configured")

        audio_path = Path(audio_ref)
        data: dict[str, str] = {
            "model": self.model,
            "response_format": response_format,
        }
        if language:
            data["language"] = language

        logger.info(
            "whisper_transcription_started",
            audio=audio_path.name,
            model=self.model,
            language=language,
        )

        with audio_path.open("rb") as audio_file:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/audio/transcriptions",
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    data=data,
                    files={"file": (audio_path.name, audio_file, "audio/mpeg")},
                )
                response.raise_for_status()
                payload = response.json()

        logger.info(
            "whisper_transcription_completed",
            segment_count=len(payload.get("segments") or []),
            language=payload.get("language"),
        )
        return payload

    async def health_check(self) -> bool:
        """Check if the OpenAI API is accessible."""
        if not self.api_key:
            return False

        try:
            async with httpx.AsyncClient(timeout=10.0) as client:
                response = await client.get(
                    f"{self.base_url}/models",
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
                return response.status_code == 200
        except httpx.HTTPError as e:
            logger.error("whisper_health_check_failed", error=str(e))
            return False
