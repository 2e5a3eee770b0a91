"""Domain models and business logic."""

from listpro.domain.enums import ItemCondition, PipelineStage, Platform, ProcessingStatus
from listpro.domain.models import (
    CombinedAnalysis,
    Frame,
    FrameAnalysis,
    Listing,
    MediaSample,
    PlatformContent,
    PlatformFailure,
    SceneContext,
    Segment,
    Transcript,
    VisualAnalysis,
)

__all__ = [
    "CombinedAnalysis",
    "Frame",
    "FrameAnalysis",
    "ItemCondition",
    "Listing",
    "MediaSample",
    "PipelineStage",
    "Platform",
    "PlatformContent",
    "PlatformFailure",
    "ProcessingStatus",
    "SceneContext",
    "Segment",
    "Transcript",
    "VisualAnalysis",
]
