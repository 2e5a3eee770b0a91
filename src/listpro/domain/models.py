"""Domain models - pure Python classes independent of the database."""

from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from listpro.domain.enums import ProcessingStatus
from listpro.domain.schemas import (
    EmotionalContext,
    ItemDetails,
    OptimizationRecommendations,
    PricingSignals,
)

DEFAULT_SEGMENT_CONFIDENCE = 0.8
DEFAULT_FRAME_CONFIDENCE = 0.85
# Visual score used when no frame was analyzed
EMPTY_VISUAL_CONFIDENCE = 0.8
FUSION_MODEL_CONFIDENCE = 0.9


def clamp_confidence(value: float) -> float:
    """Clamp a confidence value into [0, 1]."""
    return max(0.0, min(1.0, float(value)))


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class Frame:
    """A still frame sampled from the source video."""

    index: int
    timestamp: float  # seconds from clip start
    image_ref: str  # data URI or URL the vision model can read


@dataclass(frozen=True)
class MediaSample:
    """Audio and frames extracted from one video for one pipeline run."""

    video_id: str
    audio_ref: str
    frames: tuple[Frame, ...]
    duration: float


@dataclass(frozen=True)
class Segment:
    """A time-aligned piece of the transcript."""

    start: float
    end: float
    text: str
    confidence: float = DEFAULT_SEGMENT_CONFIDENCE


@dataclass(frozen=True)
class Transcript:
    """Normalized speech-to-text output."""

    text: str
    segments: tuple[Segment, ...] = ()
    language: str | None = None
    duration: float | None = None

    @property
    def confidence(self) -> float:
        """Mean segment confidence, or the default when there are no segments."""
        if not self.segments:
            return DEFAULT_SEGMENT_CONFIDENCE
        return clamp_confidence(sum(s.confidence for s in self.segments) / len(self.segments))


@dataclass(frozen=True)
class FrameAnalysis:
    """Vision model output for a single frame."""

    frame_index: int
    timestamp: float
    description: str
    detected_items: frozenset[str] = frozenset()
    confidence: float = DEFAULT_FRAME_CONFIDENCE


@dataclass(frozen=True)
class SceneContext:
    """Coarse classification of where the item was filmed."""

    setting: str = "indoor"
    lighting: str = "natural"
    background: str = "neutral"


@dataclass(frozen=True)
class VisualAnalysis:
    """Aggregate of every successful frame analysis in a run."""

    frames: tuple[FrameAnalysis, ...]
    object_counts: dict[str, int] = field(default_factory=dict)
    dominant_colors: tuple[str, ...] = ()
    scene_context: SceneContext = field(default_factory=SceneContext)
    failed_frames: dict[int, str] = field(default_factory=dict)

    @property
    def mean_confidence(self) -> float:
        if not self.frames:
            return EMPTY_VISUAL_CONFIDENCE
        return clamp_confidence(sum(f.confidence for f in self.frames) / len(self.frames))

    @property
    def descriptions(self) -> list[str]:
        return [f.description for f in self.frames]


@dataclass(frozen=True)
class CombinedAnalysis:
    """Fused item analysis; the sole input to content generation and persistence."""

    item_details: ItemDetails
    emotional_context: EmotionalContext
    selling_points: tuple[str, ...]
    pricing_signals: PricingSignals
    optimization_recommendations: OptimizationRecommendations
    confidence: float
    transcript: Transcript
    visual_analysis: VisualAnalysis
    processed_at: datetime = field(default_factory=utcnow)

    @staticmethod
    def combine_confidence(transcript: Transcript, visual: VisualAnalysis) -> float:
        """Mean of transcript, frame and fusion-model confidence."""
        terms = (transcript.confidence, visual.mean_confidence, FUSION_MODEL_CONFIDENCE)
        return clamp_confidence(sum(terms) / len(terms))

    def sections(self) -> dict[str, Any]:
        """The structured sections as camelCase JSON-safe dicts."""
        return {
            "itemDetails": self.item_details.model_dump(by_alias=True, exclude_none=True),
            "emotionalContext": self.emotional_context.model_dump(
                by_alias=True, exclude_none=True
            ),
            "sellingPoints": list(self.selling_points),
            "pricingSignals": self.pricing_signals.model_dump(by_alias=True, exclude_none=True),
            "optimizationRecommendations": self.optimization_recommendations.model_dump(
                by_alias=True, exclude_none=True
            ),
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.sections(),
            "confidence": self.confidence,
            "processedAt": self.processed_at.isoformat(),
            "transcript": transcript_to_dict(self.transcript),
            "visualAnalysis": visual_analysis_to_dict(self.visual_analysis),
        }


@dataclass(frozen=True)
class PlatformContent:
    """Generated listing copy for one marketplace."""

    platform: str
    title: str
    description: str
    hashtags: tuple[str, ...] = ()
    raw_content: str = ""
    optimization_score: float = 0.7
    generated_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "platform": self.platform,
            "title": self.title,
            "description": self.description,
            "hashtags": list(self.hashtags),
            "content": self.raw_content,
            "optimizationScore": self.optimization_score,
            "generatedAt": self.generated_at.isoformat(),
        }


@dataclass(frozen=True)
class PlatformFailure:
    """A platform whose content could not be generated."""

    platform: str
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {"platform": self.platform, "error": self.reason}


@dataclass
class Listing:
    """A listing record as stored in the listing store."""

    owner_id: str
    title: str
    description: str
    price: float
    category: str
    condition: str
    brand: str | None = None
    size: str | None = None
    suggested_price: float | None = None
    confidence: float | None = None
    status: ProcessingStatus = ProcessingStatus.PENDING
    ai_metadata: dict[str, Any] = field(default_factory=dict)
    id: UUID | None = None
    created_at: datetime | None = None


def transcript_to_dict(transcript: Transcript) -> dict[str, Any]:
    return {
        "fullText": transcript.text,
        "segments": [asdict(s) for s in transcript.segments],
        "language": transcript.language,
        "duration": transcript.duration,
        "confidence": transcript.confidence,
    }


def visual_analysis_to_dict(visual: VisualAnalysis) -> dict[str, Any]:
    return {
        "frames": [
            {
                "frameIndex": f.frame_index,
                "timestamp": f.timestamp,
                "description": f.description,
                "detectedItems": sorted(f.detected_items),
                "confidence": f.confidence,
            }
            for f in visual.frames
        ],
        "detectedObjects": dict(visual.object_counts),
        "dominantColors": list(visual.dominant_colors),
        "sceneContext": asdict(visual.scene_context),
        "failedFrames": {str(k): v for k, v in visual.failed_frames.items()},
        "confidence": visual.mean_confidence,
    }
