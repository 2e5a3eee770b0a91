"""Application services."""

from listpro.services.content_generator import ContentGenerationResult, ContentGenerator
from listpro.services.frame_analysis import FrameAnalysisService
from listpro.services.fusion import FusionService
from listpro.services.listing_assembler import ListingAssembler
from listpro.services.media_sampler import MediaSampler
from listpro.services.pipeline import ListingPipeline, PipelineResult
from listpro.services.transcription import TranscriptionService

__all__ = [
    "ContentGenerationResult",
    "ContentGenerator",
    "FrameAnalysisService",
    "FusionService",
    "ListingAssembler",
    "ListingPipeline",
    "MediaSampler",
    "PipelineResult",
    "TranscriptionService",
]
