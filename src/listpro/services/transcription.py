"""Transcription service: one speech-to-text call per run, normalized."""

import asyncio
from typing import Any

import httpx

from listpro.adapters.transcription.base import TranscriptionProvider
from listpro.adapters.transcription.stub import StubTranscriptionProvider
from listpro.adapters.transcription.whisper import WhisperTranscriptionProvider
from listpro.config import settings
from listpro.domain.models import (
    DEFAULT_SEGMENT_CONFIDENCE,
    MediaSample,
    Segment,
    Transcript,
    clamp_confidence,
)
from listpro.errors import TranscriptionError
from listpro.logging import get_logger
from listpro.utils.async_utils import retry_async

logger = get_logger(__name__)


def normalize_transcript(payload: Any) -> Transcript:
    """Map a raw transcription payload onto a ``Transcript``.

    Raises:
        TranscriptionError: If the payload is not an object, has no text, or
            carries a segment or duration that is not numeric
    """
    if not isinstance(payload, dict):
        raise TranscriptionError(f"malformed transcription payload: {type(payload).__name__}")

    text = payload.get("text")
    if not isinstance(text, str):
        raise TranscriptionError("transcription payload is missing the text field")

    segments = []
    for position, raw in enumerate(payload.get("segments") or []):
        if not isinstance(raw, dict):
            continue
        confidence = raw.get("confidence")
        try:
            segment = Segment(
                start=float(raw.get("start") or 0.0),
                end=float(raw.get("end") or 0.0),
                text=str(raw.get("text") or "").strip(),
                confidence=clamp_confidence(
                    DEFAULT_SEGMENT_CONFIDENCE if confidence is None else confidence
                ),
            )
        except (TypeError, ValueError) as e:
            raise TranscriptionError(f"malformed transcription segment {position}: {e}") from e
        segments.append(segment)

    duration = payload.get("duration")
    try:
        duration = float(duration) if duration is not None else None
    except (TypeError, ValueError) as e:
        raise TranscriptionError(f"malformed transcription duration: {duration!r}") from e

    return Transcript(
        text=text.strip(),
        segments=tuple(segments),
        language=payload.get("language"),
        duration=duration,
    )


class TranscriptionService:
    """Calls the transcription provider and normalizes its response.

    Any failure here is fatal to the run: fusion cannot proceed without a
    transcript.
    """

    def __init__(
        self,
        provider: TranscriptionProvider | None = None,
        timeout_seconds: float | None = None,
        max_attempts: int | None = None,
        backoff_seconds: float | None = None,
        language: str | None = None,
    ) -> None:
        self.provider = provider or self._get_default_provider()
        self.timeout_seconds = (
            settings.external_call_timeout_seconds if timeout_seconds is None else timeout_seconds
        )
        self.max_attempts = (
            settings.transcription_max_attempts if max_attempts is None else max_attempts
        )
        self.backoff_seconds = (
            settings.retry_backoff_seconds if backoff_seconds is None else backoff_seconds
        )
        self.language = language or settings.transcription_language
        logger.info("transcription_service_initialized", provider=self.provider.name)

    def _get_default_provider(self) -> TranscriptionProvider:
        provider_name = settings.transcription_provider.lower()

        if provider_name == "stub":
            return StubTranscriptionProvider()
        if provider_name == "openai" and settings.openai_api_key:
            return WhisperTranscriptionProvider()

        logger.warning("No transcription API key configured, using stub provider")
        return StubTranscriptionProvider()

    async def transcribe(self, sample: MediaSample) -> Transcript:
        """Transcribe the sample's audio track.

        Raises:
            TranscriptionError: On non-success responses, transport errors,
                timeouts or malformed payloads
        """
        logger.info("transcription_started", audio_ref=sample.audio_ref)

        try:
            payload = await retry_async(
                lambda: self._call_provider(sample.audio_ref),
                attempts=self.max_attempts,
                backoff_seconds=self.backoff_seconds,
                retry_on=(TranscriptionError,),
                operation_name="transcription",
            )
        except TranscriptionError as e:
            logger.error("transcription_failed", error=e.message)
            raise

        transcript = normalize_transcript(payload)

        logger.info(
            "transcription_completed",
            segment_count=len(transcript.segments),
            language=transcript.language,
            confidence=transcript.confidence,
        )
        return transcript

    async def _call_provider(self, audio_ref: str) -> Any:
        try:
            return await asyncio.wait_for(
                self.provider.transcribe(audio_ref, language=self.language),
                timeout=self.timeout_seconds,
            )
        except TimeoutError as e:
            raise TranscriptionError(
                f"transcription timed out after {self.timeout_seconds}s"
            ) from e
        except httpx.HTTPStatusError as e:
            raise TranscriptionError(
                f"transcription service returned {e.response.status_code}"
            ) from e
        except Exception as e:
            raise TranscriptionError(f"transcription request failed: {e}") from e
