"""Tests for the frame analysis service."""

import pytest

from listpro.adapters.llm.stub import STUB_FRAME_DESCRIPTION
from listpro.domain.models import FrameAnalysis
from listpro.errors import FrameAnalysisThresholdError, VisionAnalysisError
from listpro.services.frame_analysis import (
    FrameAnalysisService,
    classify_scene,
    consolidate_objects,
    extract_dominant_colors,
    extract_mentions,
)


def _analysis(index: int, description: str) -> FrameAnalysis:
    return FrameAnalysis(
        frame_index=index,
        timestamp=float(index),
        description=description,
        detected_items=extract_mentions(description),
    )


class TestAggregation:
    """Tests for the per-run aggregation helpers."""

    def test_extract_mentions_from_labeled_lines(self) -> None:
        mentions = extract_mentions(STUB_FRAME_DESCRIPTION)

        assert {"fossil", "defender", "brown", "leather", "medium"} <= mentions
        assert {"brass buckles", "padded laptop sleeve"} <= mentions

    def test_extract_mentions_skips_unknown_values(self) -> None:
        mentions = extract_mentions("Brand: unknown\n**Color:** Black, Grey\nSize: N/A")

        assert mentions == frozenset({"black", "grey"})

    def test_consolidate_counts_frames(self) -> None:
        frames = [
            _analysis(0, "Brand: Fossil\nColor: brown"),
            _analysis(1, "Brand: Fossil"),
        ]

        assert consolidate_objects(frames) == {"fossil": 2, "brown": 1}

    def test_dominant_colors(self) -> None:
        frames = [
            _analysis(0, "A brown bag with black straps on a grey table"),
            _analysis(1, "Brown leather, black buckle"),
            _analysis(2, "Brown bag"),
        ]

        assert extract_dominant_colors(frames) == ("brown", "black", "gray")

    def test_classify_scene(self) -> None:
        indoor = classify_scene([_analysis(0, STUB_FRAME_DESCRIPTION)])
        assert (indoor.setting, indoor.lighting, indoor.background) == (
            "indoor",
            "natural",
            "neutral",
        )

        outdoor = classify_scene([_analysis(0, "Bag outside in a dim, cluttered garden")])
        assert (outdoor.setting, outdoor.lighting, outdoor.background) == (
            "outdoor",
            "low",
            "busy",
        )


class TestFrameAnalysisService:
    """Tests for FrameAnalysisService.analyze."""

    @pytest.mark.asyncio
    async def test_all_frames_succeed(self, stub_llm, frames) -> None:
        service = FrameAnalysisService(llm_provider=stub_llm)

        visual = await service.analyze(frames)

        assert [f.frame_index for f in visual.frames] == [0, 1, 2, 3, 4]
        assert [f.timestamp for f in visual.frames] == [f.timestamp for f in frames]
        assert all(f.confidence == 0.85 for f in visual.frames)
        assert visual.mean_confidence == pytest.approx(0.85)
        assert visual.object_counts["fossil"] == 5
        assert visual.dominant_colors[0] == "brown"
        assert visual.failed_frames == {}
        assert stub_llm.vision_calls == 5

    @pytest.mark.asyncio
    async def test_failed_frames_are_skipped(self, llm_factory, frames) -> None:
        service = FrameAnalysisService(llm_provider=llm_factory(fail_frames=(1, 3)))

        visual = await service.analyze(frames)

        assert [f.frame_index for f in visual.frames] == [0, 2, 4]
        assert sorted(visual.failed_frames) == [1, 3]
        assert "rejected" in visual.failed_frames[1]

    @pytest.mark.asyncio
    async def test_threshold_unmet(self, llm_factory, frames) -> None:
        service = FrameAnalysisService(
            llm_provider=llm_factory(fail_frames=(0, 1, 2, 3)),
            min_successful_frames=2,
        )

        with pytest.raises(FrameAnalysisThresholdError) as exc_info:
            await service.analyze(frames)

        assert sorted(exc_info.value.failed_frames) == [0, 1, 2, 3]

    @pytest.mark.asyncio
    async def test_all_frames_fail(self, llm_factory, frames) -> None:
        service = FrameAnalysisService(llm_provider=llm_factory(fail_frames=(0, 1, 2, 3, 4)))

        with pytest.raises(FrameAnalysisThresholdError):
            await service.analyze(frames)

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self, stub_llm, frames) -> None:
        import asyncio

        active = 0
        peak = 0
        original = stub_llm.complete_with_vision

        async def tracked(*args, **kwargs):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            try:
                return await original(*args, **kwargs)
            finally:
                active -= 1

        stub_llm.complete_with_vision = tracked
        service = FrameAnalysisService(llm_provider=stub_llm, concurrency=2)

        visual = await service.analyze(frames)

        assert len(visual.frames) == 5
        assert peak == 2

    @pytest.mark.asyncio
    async def test_analyze_frame_error_carries_index(self, llm_factory, frames) -> None:
        service = FrameAnalysisService(llm_provider=llm_factory(fail_frames=(2,)))

        with pytest.raises(VisionAnalysisError) as exc_info:
            await service.analyze_frame(frames[2])

        assert exc_info.value.frame_index == 2

    @pytest.mark.asyncio
    async def test_unexpected_provider_error_skips_frame(self, stub_llm, frames) -> None:
        original = stub_llm.complete_with_vision

        async def flaky(messages, *args, **kwargs):
            if messages[0].images[0] == frames[3].image_ref:
                raise RuntimeError("upstream blew up")
            return await original(messages, *args, **kwargs)

        stub_llm.complete_with_vision = flaky

        visual = await FrameAnalysisService(llm_provider=stub_llm).analyze(frames)

        assert [f.frame_index for f in visual.frames] == [0, 1, 2, 4]
        assert visual.failed_frames == {3: "upstream blew up"}

    @pytest.mark.asyncio
    async def test_slow_frame_times_out(self, stub_llm, frames) -> None:
        import asyncio

        original = stub_llm.complete_with_vision

        async def slow_second_frame(messages, *args, **kwargs):
            if messages[0].images[0] == frames[1].image_ref:
                await asyncio.sleep(1)
            return await original(messages, *args, **kwargs)

        stub_llm.complete_with_vision = slow_second_frame
        service = FrameAnalysisService(llm_provider=stub_llm, timeout_seconds=0.01)

        visual = await service.analyze(frames)

        assert sorted(visual.failed_frames) == [1]
        assert "timed out" in visual.failed_frames[1]
        assert len(visual.frames) == 4
