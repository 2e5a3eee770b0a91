"""Pytest configuration and fixtures."""

import os
from collections.abc import Generator
from typing import Any

import pytest
from fastapi.testclient import TestClient

# Set test environment before importing app modules
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["LLM_PROVIDER"] = "stub"
os.environ["TRANSCRIPTION_PROVIDER"] = "stub"
os.environ["STORE_PROVIDER"] = "memory"
os.environ["RETRY_BACKOFF_SECONDS"] = "0"

from listpro.adapters.llm.base import LLMMessage, LLMResponse, VisionMessage  # noqa: E402
from listpro.adapters.llm.stub import StubLLMProvider  # noqa: E402
from listpro.adapters.store.memory import InMemoryListingStore  # noqa: E402
from listpro.adapters.transcription.stub import StubTranscriptionProvider  # noqa: E402
from listpro.domain.models import Frame, MediaSample  # noqa: E402
from listpro.services.media_sampler import MediaSampler  # noqa: E402


class RecordingLLMProvider(StubLLMProvider):
    """Stub LLM that records calls and can be told to fail on demand."""

    def __init__(
        self,
        fusion_content: str | None = None,
        fail_platforms: tuple[str, ...] = (),
        fail_frames: tuple[int, ...] = (),
    ) -> None:
        self.fusion_content = fusion_content
        self.fail_platforms = fail_platforms
        self.fail_frames = fail_frames
        self.fusion_calls = 0
        self.content_calls: list[str] = []
        self.vision_calls = 0

    async def complete(
        self,
        messages: list[LLMMessage],
        temperature: float = 0.7,
        max_tokens: int = 4096,
        json_mode: bool = False,
    ) -> LLMResponse:
        prompt = messages[-1].content
        if json_mode:
            self.fusion_calls += 1
            if self.fusion_content is not None:
                return LLMResponse(content=self.fusion_content, model="recording")
        else:
            self.content_calls.append(prompt)
            for platform in self.fail_platforms:
                if f"listing for {platform.upper()}" in prompt:
                    raise ValueError(f"{platform} generation rejected")
        return await super().complete(messages, temperature, max_tokens, json_mode)

    async def complete_with_vision(
        self,
        messages: list[VisionMessage],
        temperature: float = 0.7,
        max_tokens: int = 4096,
        json_mode: bool = False,
    ) -> LLMResponse:
        self.vision_calls += 1
        image_url = messages[0].images[0]
        if any(image_url == f"data:image/jpeg;base64,frame-{i}" for i in self.fail_frames):
            raise ValueError("vision model rejected the image")
        return await super().complete_with_vision(messages, temperature, max_tokens, json_mode)


class FakeMediaSampler(MediaSampler):
    """Returns a fixed sample without touching moviepy."""

    def __init__(self, frame_count: int = 5, duration: float = 14.0) -> None:
        super().__init__()
        self.frame_count = frame_count
        self.duration = duration
        self.cleaned: list[str] = []

    async def sample(self, video_ref: str, frame_count: int | None = None) -> MediaSample:
        return make_sample(frame_count or self.frame_count, self.duration)

    def cleanup(self, sample: MediaSample) -> None:
        self.cleaned.append(sample.video_id)


def make_frames(count: int = 5, duration: float = 14.0) -> tuple[Frame, ...]:
    from listpro.services.media_sampler import compute_frame_timestamps

    return tuple(
        Frame(index=i, timestamp=t, image_ref=f"data:image/jpeg;base64,frame-{i}")
        for i, t in enumerate(compute_frame_timestamps(duration, count))
    )


def make_sample(count: int = 5, duration: float = 14.0) -> MediaSample:
    return MediaSample(
        video_id="test-video",
        audio_ref="/tmp/listpro-test/audio.mp3",
        frames=make_frames(count, duration),
        duration=duration,
    )


@pytest.fixture
def stub_llm() -> RecordingLLMProvider:
    """Get a recording stub LLM provider."""
    return RecordingLLMProvider()


@pytest.fixture
def stub_transcription() -> StubTranscriptionProvider:
    """Get a stub transcription provider."""
    return StubTranscriptionProvider()


@pytest.fixture
def memory_store() -> InMemoryListingStore:
    """Get an empty in-memory listing store."""
    return InMemoryListingStore()


@pytest.fixture
def sample() -> MediaSample:
    """A five-frame sample of a 14 second clip."""
    return make_sample()


@pytest.fixture
def fusion_payload() -> dict[str, Any]:
    """A deep copy of the canned fusion response."""
    import copy

    from listpro.adapters.llm.stub import STUB_FUSION_RESPONSE

    return copy.deepcopy(STUB_FUSION_RESPONSE)


@pytest.fixture(scope="session")
def test_client() -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI app."""
    from listpro.main import app

    with TestClient(app) as client:
        yield client


@pytest.fixture
def frames() -> tuple[Frame, ...]:
    """Five frames of a 14 second clip."""
    return make_frames()


@pytest.fixture
def fake_sampler() -> FakeMediaSampler:
    """A media sampler that never opens a real video."""
    return FakeMediaSampler()


@pytest.fixture
def llm_factory() -> type[RecordingLLMProvider]:
    """Build recording LLMs with configured failures."""
    return RecordingLLMProvider
