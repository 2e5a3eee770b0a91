"""Base interface for speech transcription providers."""

from abc import ABC, abstractmethod
from typing import Any


class TranscriptionProvider(ABC):
    """Abstract base class for transcription providers.

    Providers return the service payload as-is:
    ``{text, segments: [{start, end, text, confidence}], language, duration}``.
    Normalization into a ``Transcript`` happens in the transcription service.

    Implementations:
    - WhisperTranscriptionProvider: OpenAI Whisper API
    - StubTranscriptionProvider: Returns a canned transcript for testing
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name identifier."""
        ...

    @abstractmethod
    async def transcribe(
        self,
        audio_ref: str,
        language: str | None = None,
        response_format: str = "verbose_json",
    ) -> dict[str, Any]:
        """Transcribe an audio file.

        Args:
            audio_ref: Local path to the audio file
            language: Optional ISO 639-1 language hint
            response_format: Service response format hint

        Returns:
            Raw transcription payload

        Raises:
            httpx.HTTPError: On transport errors or non-success responses
        """
        ...

    async def health_check(self) -> bool:
        """Check if the provider is available and healthy."""
        return True
