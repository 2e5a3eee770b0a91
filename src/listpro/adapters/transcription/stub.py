"""Stub transcription provider for testing."""

from typing import Any

from listpro.adapters.transcription.base import TranscriptionProvider
from listpro.logging import get_logger

logger = get_logger(__name__)

STUB_SEGMENTS = [
    {
        "start": 0.0,
        "end": 4.5,
        "text": "This is my Fossil Defender messenger bag.",
        "confidence": 0.92,
    },
    {
        "start": 4.5,
        "end": 10.0,
        "text": "It's genuine leather, fits a fifteen inch laptop, some scuffs on the corners.",
        "confidence": 0.88,
    },
    {
        "start": 10.0,
        "end": 14.0,
        "text": "I switched to a backpack so it needs a new home.",
        "confidence": 0.9,
    },
]


class StubTranscriptionProvider(TranscriptionProvider):
    """Stub provider that returns a canned transcript without external calls."""

    def __init__(self, payload: dict[str, Any] | None = None) -> None:
        self.payload = payload
        self.calls: list[str] = []

    @property
    def name(self) -> str:
        return "stub"

    async def transcribe(
        self,
        audio_ref: str,
        language: str | None = None,
        response_format: str = "verbose_json",
    ) -> dict[str, Any]:
        """Return the configured payload, or the canned messenger-bag transcript."""
        self.calls.append(audio_ref)
        logger.info("stub_transcription", audio_ref=audio_ref, language=language)

        if self.payload is not None:
            return self.payload

        return {
            "text": " ".join(s["text"] for s in STUB_SEGMENTS),
            "segments": [dict(s) for s in STUB_SEGMENTS],
            "language": language or "en",
            "duration": 14.0,
        }
