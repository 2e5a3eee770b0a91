"""Pipeline error taxonomy.

Fatal errors abort a run and are raised to the caller. ``VisionAnalysisError``
and ``ContentGenerationError`` are per-item failures that the owning stage
records and carries on past.
"""

from typing import Any

from listpro.domain.enums import PipelineStage


class PipelineError(Exception):
    """Base class for listing pipeline failures."""

    stage: PipelineStage = PipelineStage.PIPELINE

    def __init__(
        self,
        message: str,
        *,
        frame_index: int | None = None,
        platform: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.frame_index = frame_index
        self.platform = platform

    def to_dict(self) -> dict[str, Any]:
        """Serialize the error for API and task payloads."""
        return {
            "stage": str(self.stage),
            "error_type": type(self).__name__,
            "error": self.message,
            "frame_index": self.frame_index,
            "platform": self.platform,
        }


class MediaExtractionError(PipelineError):
    """The video could not be opened or sampled."""

    stage = PipelineStage.MEDIA_SAMPLING


class TranscriptionError(PipelineError):
    """The transcription service failed or returned a malformed payload."""

    stage = PipelineStage.TRANSCRIPTION


class VisionAnalysisError(PipelineError):
    """A single frame could not be analyzed."""

    stage = PipelineStage.FRAME_ANALYSIS


class FrameAnalysisThresholdError(PipelineError):
    """Too few frames were analyzed successfully."""

    stage = PipelineStage.FRAME_ANALYSIS

    def __init__(self, message: str, failed_frames: dict[int, str] | None = None) -> None:
        super().__init__(message)
        self.failed_frames = failed_frames or {}


class FusionParseError(PipelineError):
    """The fusion model output was not the required structured shape."""

    stage = PipelineStage.FUSION


class ContentGenerationError(PipelineError):
    """Content for a single platform could not be generated."""

    stage = PipelineStage.CONTENT_GENERATION


class PersistenceError(PipelineError):
    """The listing store rejected the record."""

    stage = PipelineStage.PERSISTENCE
