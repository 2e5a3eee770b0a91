"""End-to-end tests for the listing pipeline with stub collaborators."""

import asyncio
import json
from typing import Any

import httpx
import pytest

from listpro.adapters.transcription.base import TranscriptionProvider
from listpro.domain.enums import PipelineStage
from listpro.errors import (
    FrameAnalysisThresholdError,
    FusionParseError,
    MediaExtractionError,
    PipelineError,
    TranscriptionError,
)
from listpro.services.content_generator import ContentGenerator
from listpro.services.frame_analysis import FrameAnalysisService
from listpro.services.fusion import FusionService
from listpro.services.listing_assembler import ListingAssembler
from listpro.services.pipeline import ListingPipeline
from listpro.services.transcription import TranscriptionService


class ErrorTranscriptionProvider(TranscriptionProvider):
    """Answers every request with an HTTP 500."""

    @property
    def name(self) -> str:
        return "error"

    async def transcribe(
        self,
        audio_ref: str,
        language: str | None = None,
        response_format: str = "verbose_json",
    ) -> dict[str, Any]:
        request = httpx.Request("POST", "https://api.example.com/audio/transcriptions")
        response = httpx.Response(500, request=request)
        raise httpx.HTTPStatusError("internal error", request=request, response=response)


def build_pipeline(
    llm,
    sampler,
    store,
    transcription_provider,
) -> ListingPipeline:
    return ListingPipeline(
        sampler=sampler,
        transcription=TranscriptionService(provider=transcription_provider),
        frame_analysis=FrameAnalysisService(llm_provider=llm),
        fusion=FusionService(llm_provider=llm),
        content_generator=ContentGenerator(llm_provider=llm),
        assembler=ListingAssembler(store=store),
    )


class TestListingPipeline:
    """Tests for ListingPipeline.process_video."""

    @pytest.mark.asyncio
    async def test_happy_path(
        self, stub_llm, fake_sampler, memory_store, stub_transcription
    ) -> None:
        pipeline = build_pipeline(stub_llm, fake_sampler, memory_store, stub_transcription)

        result = await pipeline.process_video("bag.mp4", "user-1", ["ebay", "poshmark"])

        assert result.success is True
        assert result.confidence == pytest.approx((0.9 + 0.85 + 0.9) / 3)
        assert sorted(result.platform_content.contents) == ["ebay", "poshmark"]
        assert result.frame_failures == {}
        assert result.listing_id in memory_store.listings
        assert memory_store.listings[result.listing_id].title == (
            "Fossil Defender Leather Messenger Bag"
        )
        assert stub_llm.vision_calls == 5
        assert stub_llm.fusion_calls == 1
        assert fake_sampler.cleaned == ["test-video"]

    @pytest.mark.asyncio
    async def test_result_to_dict(
        self, stub_llm, fake_sampler, memory_store, stub_transcription
    ) -> None:
        pipeline = build_pipeline(stub_llm, fake_sampler, memory_store, stub_transcription)

        result = await pipeline.process_video("bag.mp4", "user-1", ["ebay"])
        data = json.loads(json.dumps(result.to_dict()))

        assert data["success"] is True
        assert data["listingId"] == str(result.listing_id)
        assert data["platformContent"]["ebay"]["platform"] == "ebay"
        assert data["analysis"]["itemDetails"]["brand"] == "Fossil"
        assert data["confidence"] == pytest.approx(result.confidence)

    @pytest.mark.asyncio
    async def test_transcription_failure_stops_the_run(
        self, stub_llm, fake_sampler, memory_store
    ) -> None:
        pipeline = build_pipeline(
            stub_llm, fake_sampler, memory_store, ErrorTranscriptionProvider()
        )

        with pytest.raises(TranscriptionError) as exc_info:
            await pipeline.process_video("bag.mp4", "user-1")

        assert exc_info.value.stage == PipelineStage.TRANSCRIPTION
        assert stub_llm.fusion_calls == 0
        assert stub_llm.content_calls == []
        assert memory_store.listings == {}
        assert fake_sampler.cleaned == ["test-video"]

    @pytest.mark.asyncio
    async def test_transcription_failure_cancels_frame_analysis(
        self, stub_llm, fake_sampler, memory_store
    ) -> None:
        cancelled = asyncio.Event()

        async def slow_vision(*args, **kwargs):
            try:
                await asyncio.sleep(30)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        stub_llm.complete_with_vision = slow_vision
        pipeline = build_pipeline(
            stub_llm, fake_sampler, memory_store, ErrorTranscriptionProvider()
        )

        with pytest.raises(TranscriptionError):
            await asyncio.wait_for(pipeline.process_video("bag.mp4", "user-1"), timeout=5)

        assert cancelled.is_set()

    @pytest.mark.asyncio
    async def test_incomplete_fusion_is_never_persisted(
        self, llm_factory, fake_sampler, memory_store, stub_transcription, fusion_payload
    ) -> None:
        del fusion_payload["pricingSignals"]
        llm = llm_factory(fusion_content=json.dumps(fusion_payload))
        pipeline = build_pipeline(llm, fake_sampler, memory_store, stub_transcription)

        with pytest.raises(FusionParseError):
            await pipeline.process_video("bag.mp4", "user-1")

        assert llm.content_calls == []
        assert memory_store.listings == {}

    @pytest.mark.asyncio
    async def test_platform_failure_is_recorded(
        self, llm_factory, fake_sampler, memory_store, stub_transcription
    ) -> None:
        llm = llm_factory(fail_platforms=("instagram",))
        pipeline = build_pipeline(llm, fake_sampler, memory_store, stub_transcription)

        result = await pipeline.process_video("bag.mp4", "user-1", ["instagram", "ebay"])

        assert result.success is True
        assert list(result.platform_content.contents) == ["ebay"]
        assert list(result.platform_failures) == ["instagram"]
        stored = memory_store.listings[result.listing_id]
        assert "error" in stored.ai_metadata["platformContent"]["instagram"]
        assert stored.ai_metadata["platformContent"]["ebay"]["title"]

    @pytest.mark.asyncio
    async def test_partial_frame_failure_still_completes(
        self, llm_factory, fake_sampler, memory_store, stub_transcription
    ) -> None:
        llm = llm_factory(fail_frames=(0, 4))
        pipeline = build_pipeline(llm, fake_sampler, memory_store, stub_transcription)

        result = await pipeline.process_video("bag.mp4", "user-1", ["ebay"])

        assert result.success is True
        assert sorted(result.frame_failures) == [0, 4]
        frames = result.analysis.visual_analysis.frames
        assert [f.frame_index for f in frames] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_all_frames_failing_is_fatal(
        self, llm_factory, fake_sampler, memory_store, stub_transcription
    ) -> None:
        llm = llm_factory(fail_frames=(0, 1, 2, 3, 4))
        pipeline = build_pipeline(llm, fake_sampler, memory_store, stub_transcription)

        with pytest.raises(FrameAnalysisThresholdError):
            await pipeline.process_video("bag.mp4", "user-1")

        assert llm.fusion_calls == 0

    @pytest.mark.asyncio
    async def test_media_failure_is_tagged(
        self, stub_llm, memory_store, stub_transcription, tmp_path
    ) -> None:
        from listpro.services.media_sampler import MediaSampler

        pipeline = build_pipeline(stub_llm, MediaSampler(), memory_store, stub_transcription)

        with pytest.raises(PipelineError) as exc_info:
            await pipeline.process_video(str(tmp_path / "missing.mp4"), "user-1")

        assert isinstance(exc_info.value, MediaExtractionError)
        assert exc_info.value.to_dict()["stage"] == "media_sampling"
        assert stub_transcription.calls == []
