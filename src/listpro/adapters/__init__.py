"""Adapters for external services."""

from listpro.adapters.llm.base import LLMProvider
from listpro.adapters.store.base import ListingStore
from listpro.adapters.transcription.base import TranscriptionProvider

__all__ = [
    "LLMProvider",
    "ListingStore",
    "TranscriptionProvider",
]
