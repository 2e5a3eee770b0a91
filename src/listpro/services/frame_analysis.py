"""Frame analysis: one vision call per sampled frame, aggregated.

Frames are analyzed concurrently behind a semaphore. A failed frame is
recorded and skipped; the stage only fails when fewer than
``min_successful_frames`` frames come back.
"""

import asyncio
import re
from collections import Counter


from listpro.adapters.llm.base import LLMProvider, VisionMessage
from listpro.adapters.llm.openai import OpenAIProvider
from listpro.adapters.llm.stub import StubLLMProvider
from listpro.config import settings
from listpro.domain.models import (
    DEFAULT_FRAME_CONFIDENCE,
    Frame,
    FrameAnalysis,
    SceneContext,
    VisualAnalysis,
)
from listpro.errors import FrameAnalysisThresholdError, VisionAnalysisError
from listpro.logging import get_logger

logger = get_logger(__name__)

FRAME_ANALYSIS_PROMPT = """Analyze this image for items being sold. Identify: brand, model, \
condition, color, material, size, and any distinguishing features. Be specific and detailed.

After your description, list what you can see as labeled lines, omitting any you cannot tell:
Item: <what the item is>
Brand: <brand>
Model: <model>
Color: <main colors>
Material: <material>
Size: <size>
Condition: <condition>
Features: <comma separated distinguishing features>"""

MENTION_LABELS = {
    "item": "item",
    "type": "item",
    "brand": "brand",
    "model": "model",
    "color": "color",
    "colour": "color",
    "colors": "color",
    "material": "material",
    "size": "size",
    "condition": "condition",
    "feature": "feature",
    "features": "feature",
}

_LABEL_LINE = re.compile(r"^\s*[-*]?\s*\**([A-Za-z]+)\**\s*:\s*\**\s*(.+?)\s*$")
_UNKNOWN_VALUES = {"", "unknown", "n/a", "none", "not visible", "unclear", "-"}

KNOWN_COLORS = (
    "black",
    "white",
    "gray",
    "grey",
    "silver",
    "gold",
    "red",
    "orange",
    "yellow",
    "green",
    "blue",
    "navy",
    "purple",
    "pink",
    "brown",
    "tan",
    "beige",
    "cream",
    "ivory",
)
_COLOR_ALIASES = {"grey": "gray"}
_WORD = re.compile(r"[a-z]+")

_OUTDOOR_WORDS = {"outdoor", "outdoors", "outside", "garden", "street", "park", "yard", "sky"}
_INDOOR_WORDS = {"indoor", "indoors", "inside", "room", "table", "desk", "shelf", "floor", "bed"}
_ARTIFICIAL_LIGHT_WORDS = {"lamp", "flash", "artificial", "fluorescent", "led", "overhead"}
_LOW_LIGHT_WORDS = {"dim", "dark", "shadowy", "underexposed", "low-light"}
_BUSY_WORDS = {"cluttered", "busy", "messy", "crowded", "patterned"}


def extract_mentions(description: str) -> frozenset[str]:
    """Parse ``Label: value`` lines into lower-cased item mentions."""
    mentions: set[str] = set()
    for line in description.splitlines():
        match = _LABEL_LINE.match(line)
        if not match or match.group(1).lower() not in MENTION_LABELS:
            continue
        label = MENTION_LABELS[match.group(1).lower()]
        values = match.group(2).split(",") if label in ("feature", "color") else [match.group(2)]
        for value in values:
            cleaned = value.strip().strip(".").lower()
            if cleaned not in _UNKNOWN_VALUES:
                mentions.add(cleaned)
    return frozenset(mentions)


def consolidate_objects(frames: list[FrameAnalysis]) -> dict[str, int]:
    """Count how many frames mention each item."""
    counts: Counter[str] = Counter()
    for frame in frames:
        counts.update(frame.detected_items)
    return dict(counts.most_common())


def extract_dominant_colors(frames: list[FrameAnalysis], limit: int = 3) -> tuple[str, ...]:
    """Most frequently mentioned known colors across all descriptions."""
    counts: Counter[str] = Counter()
    for frame in frames:
        for word in _WORD.findall(frame.description.lower()):
            if word in KNOWN_COLORS:
                counts[_COLOR_ALIASES.get(word, word)] += 1
    return tuple(color for color, _ in counts.most_common(limit))


def classify_scene(frames: list[FrameAnalysis]) -> SceneContext:
    """Keyword vote on setting, lighting and background."""
    words: Counter[str] = Counter()
    for frame in frames:
        words.update(_WORD.findall(frame.description.lower()))

    def score(vocabulary: set[str]) -> int:
        return sum(words[w] for w in vocabulary)

    setting = "outdoor" if score(_OUTDOOR_WORDS) > score(_INDOOR_WORDS) else "indoor"

    lighting = "natural"
    if score(_LOW_LIGHT_WORDS) > 0:
        lighting = "low"
    elif score(_ARTIFICIAL_LIGHT_WORDS) > 0:
        lighting = "artificial"

    background = "busy" if score(_BUSY_WORDS) > 0 else "neutral"
    return SceneContext(setting=setting, lighting=lighting, background=background)


class FrameAnalysisService:
    """Runs the vision model over every sampled frame."""

    def __init__(
        self,
        llm_provider: LLMProvider | None = None,
        concurrency: int | None = None,
        min_successful_frames: int | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self.llm = llm_provider or self._get_vision_provider()
        self.concurrency = (
            settings.frame_analysis_concurrency if concurrency is None else concurrency
        )
        if min_successful_frames is None:
            min_successful_frames = settings.min_successful_frames
        self.min_successful_frames = min_successful_frames
        self.timeout_seconds = (
            settings.external_call_timeout_seconds if timeout_seconds is None else timeout_seconds
        )
        logger.info(
            "frame_analysis_service_initialized",
            provider=self.llm.name,
            supports_vision=self.llm.supports_vision,
            concurrency=self.concurrency,
        )

    def _get_vision_provider(self) -> LLMProvider:
        """Get a vision-capable LLM provider."""
        if settings.llm_provider.lower() != "stub" and settings.openai_api_key:
            return OpenAIProvider(model=settings.openai_vision_model)

        logger.warning("No vision-capable LLM configured, using stub provider")
        return StubLLMProvider()

    async def analyze(self, frames: tuple[Frame, ...] | list[Frame]) -> VisualAnalysis:
        """Analyze all frames and aggregate the successful ones.

        Raises:
            FrameAnalysisThresholdError: If fewer than ``min_successful_frames``
                frames were analyzed
        """
        if not self.llm.supports_vision:
            raise FrameAnalysisThresholdError(f"Provider {self.llm.name} does not support vision")

        logger.info("frame_analysis_started", frame_count=len(frames))

        semaphore = asyncio.Semaphore(self.concurrency)

        async def bounded(frame: Frame) -> FrameAnalysis:
            async with semaphore:
                return await self.analyze_frame(frame)

        # gather keeps input order, so results line up with frames by position
        results = await asyncio.gather(
            *(bounded(frame) for frame in frames),
            return_exceptions=True,
        )

        analyses: list[FrameAnalysis] = []
        failed: dict[int, str] = {}
        for frame, result in zip(frames, results, strict=True):
            if isinstance(result, VisionAnalysisError):
                failed[frame.index] = result.message
            elif isinstance(result, BaseException):
                raise result
            else:
                analyses.append(result)

        required = self.min_successful_frames
        if len(analyses) < required:
            logger.error(
                "frame_analysis_threshold_unmet",
                succeeded=len(analyses),
                required=required,
                failed_frames=failed,
            )
            raise FrameAnalysisThresholdError(
                f"only {len(analyses)} of {len(frames)} frames analyzed, {required} required",
                failed_frames=failed,
            )

        visual = VisualAnalysis(
            frames=tuple(analyses),
            object_counts=consolidate_objects(analyses),
            dominant_colors=extract_dominant_colors(analyses),
            scene_context=classify_scene(analyses),
            failed_frames=failed,
        )

        logger.info(
            "frame_analysis_completed",
            succeeded=len(analyses),
            failed_frames=sorted(failed),
            mean_confidence=visual.mean_confidence,
        )
        return visual

    async def analyze_frame(self, frame: Frame) -> FrameAnalysis:
        """Describe a single frame.

        Raises:
            VisionAnalysisError: On provider error, timeout or empty output
        """
        messages = [
            VisionMessage(role="user", text=FRAME_ANALYSIS_PROMPT, images=(frame.image_ref,))
        ]

        try:
            response = await asyncio.wait_for(
                self.llm.complete_with_vision(messages, temperature=0.2, max_tokens=500),
                timeout=self.timeout_seconds,
            )
        except TimeoutError as e:
            raise VisionAnalysisError(
                f"vision call timed out after {self.timeout_seconds}s", frame_index=frame.index
            ) from e
        except Exception as e:
            logger.warning("frame_analysis_failed", frame_index=frame.index, error=str(e))
            raise VisionAnalysisError(str(e) or type(e).__name__, frame_index=frame.index) from e

        description = response.content.strip()
        if not description:
            raise VisionAnalysisError(
                "vision model returned no description", frame_index=frame.index
            )

        return FrameAnalysis(
            frame_index=frame.index,
            timestamp=frame.timestamp,
            description=description,
            detected_items=extract_mentions(description),
            confidence=DEFAULT_FRAME_CONFIDENCE,
        )
