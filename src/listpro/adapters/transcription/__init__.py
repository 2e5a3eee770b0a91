"""Speech transcription adapters."""

from listpro.adapters.transcription.base import TranscriptionProvider
from listpro.adapters.transcription.stub import StubTranscriptionProvider
from listpro.adapters.transcription.whisper import WhisperTranscriptionProvider

__all__ = [
    "TranscriptionProvider",
    "StubTranscriptionProvider",
    "WhisperTranscriptionProvider",
]
