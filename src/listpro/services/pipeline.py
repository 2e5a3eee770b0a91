"""Video-to-listing pipeline service."""

import asyncio
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID, uuid4

from listpro.domain.models import (
    CombinedAnalysis,
    Listing,
    MediaSample,
    Transcript,
    VisualAnalysis,
)
from listpro.logging import get_logger, run_context
from listpro.services.content_generator import ContentGenerationResult, ContentGenerator
from listpro.services.frame_analysis import FrameAnalysisService
from listpro.services.fusion import FusionService
from listpro.services.listing_assembler import ListingAssembler
from listpro.services.media_sampler import MediaSampler
from listpro.services.transcription import TranscriptionService

logger = get_logger(__name__)


@dataclass
class PipelineResult:
    """Result from running the listing pipeline."""

    success: bool
    listing_id: UUID | None = None
    analysis: CombinedAnalysis | None = None
    platform_content: ContentGenerationResult = field(default_factory=ContentGenerationResult)
    frame_failures: dict[int, str] = field(default_factory=dict)
    listing: Listing | None = None

    @property
    def confidence(self) -> float | None:
        return self.analysis.confidence if self.analysis else None

    @property
    def platform_failures(self) -> dict[str, str]:
        return {p: f.reason for p, f in self.platform_content.failures.items()}

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "listingId": str(self.listing_id) if self.listing_id else None,
            "analysis": self.analysis.to_dict() if self.analysis else None,
            "platformContent": self.platform_content.to_dict(),
            "platformFailures": self.platform_failures,
            "frameFailures": {str(k): v for k, v in self.frame_failures.items()},
            "confidence": self.confidence,
        }


class ListingPipeline:
    """Orchestrates the end-to-end video-to-listing pipeline.

    This service coordinates the stages to:
    1. Sample audio and frames from the video
    2. Transcribe the audio and analyze the frames, concurrently
    3. Fuse both into one item analysis
    4. Generate per-platform listing copy
    5. Persist the listing

    Any ``PipelineError`` raised by a stage aborts the run and propagates to
    the caller; per-frame and per-platform failures are carried in the result.
    """

    def __init__(
        self,
        sampler: MediaSampler | None = None,
        transcription: TranscriptionService | None = None,
        frame_analysis: FrameAnalysisService | None = None,
        fusion: FusionService | None = None,
        content_generator: ContentGenerator | None = None,
        assembler: ListingAssembler | None = None,
    ) -> None:
        self.sampler = sampler or MediaSampler()
        self.transcription = transcription or TranscriptionService()
        self.frame_analysis = frame_analysis or FrameAnalysisService()
        self.fusion = fusion or FusionService()
        self.content_generator = content_generator or ContentGenerator()
        self.assembler = assembler or ListingAssembler()

        logger.info(
            "listing_pipeline_initialized",
            transcription=self.transcription.provider.name,
            vision=self.frame_analysis.llm.name,
            llm=self.fusion.llm.name,
            store=self.assembler.store.name,
        )

    @classmethod
    def from_settings(cls) -> "ListingPipeline":
        """Build a pipeline with every collaborator chosen from configuration."""
        return cls()

    async def process_video(
        self,
        video_ref: str,
        owner_id: str,
        target_platforms: list[str] | None = None,
    ) -> PipelineResult:
        """Turn one product video into a stored listing.

        Args:
            video_ref: Local path or URL of the video
            owner_id: Owner of the resulting listing
            target_platforms: Marketplaces to write copy for (defaults to settings)

        Raises:
            PipelineError: The first fatal stage failure, tagged with its stage
        """
        run_id = uuid4().hex
        with run_context(run_id=run_id, owner_id=owner_id):
            logger.info("pipeline_started", video_ref=video_ref, platforms=target_platforms)

            sample = await self.sampler.sample(video_ref)
            try:
                transcript, visual = await self._transcribe_and_analyze(sample)
            finally:
                self.sampler.cleanup(sample)

            analysis = await self.fusion.fuse(transcript, visual)
            content = await self.content_generator.generate(analysis, target_platforms)
            listing = await self.assembler.persist(analysis, content, owner_id)

            result = PipelineResult(
                success=True,
                listing_id=listing.id,
                analysis=analysis,
                platform_content=content,
                frame_failures=dict(visual.failed_frames),
                listing=listing,
            )
            logger.info(
                "pipeline_completed",
                listing_id=str(listing.id),
                confidence=result.confidence,
                platforms=sorted(content.contents),
                failed_platforms=sorted(content.failures),
            )
            return result

    async def _transcribe_and_analyze(
        self, sample: MediaSample
    ) -> tuple[Transcript, VisualAnalysis]:
        """Run transcription and frame analysis side by side.

        The first stage to fail cancels the other, and its error is re-raised.
        """
        transcribe = asyncio.create_task(self.transcription.transcribe(sample))
        analyze = asyncio.create_task(self.frame_analysis.analyze(sample.frames))
        tasks = (transcribe, analyze)

        try:
            done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        except asyncio.CancelledError:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        for task in done:
            error = task.exception()
            if error is not None:
                logger.error("pipeline_stage_failed", stage=str(getattr(error, "stage", "")))
                raise error

        return transcribe.result(), analyze.result()
