"""Fusion of transcript and frame analyses into one structured item analysis."""

import asyncio
import json

from pydantic import ValidationError

from listpro.adapters.llm.base import LLMMessage, LLMProvider
from listpro.adapters.llm.openai import OpenAIProvider
from listpro.adapters.llm.stub import StubLLMProvider
from listpro.config import settings
from listpro.domain.models import CombinedAnalysis, Transcript, VisualAnalysis
from listpro.domain.schemas import REQUIRED_FUSION_KEYS, FusionResponse
from listpro.errors import FusionParseError
from listpro.logging import get_logger
from listpro.utils.async_utils import retry_async

logger = get_logger(__name__)


class FusionService:
    """Merges what the seller said with what the camera saw.

    The model must return every required section; anything less is rejected
    with ``FusionParseError`` rather than accepted partially.
    """

    SYSTEM_PROMPT = """You are an expert at analyzing items for sale. Combine the visual \
and audio information to create a comprehensive item analysis.

Return a JSON object with exactly these top-level keys:
{
    "itemDetails": {
        "title": "Short listing title",
        "description": "One paragraph description",
        "brand": "string", "model": "string", "year": "string",
        "category": "string", "subcategory": "string",
        "condition": "new|like-new|good|fair|poor",
        "size": "string", "color": "string", "material": "string",
        "keyFeatures": ["string"]
    },
    "emotionalContext": {
        "attachmentLevel": "high|medium|low",
        "reasonForSelling": "string",
        "sentiment": "string",
        "enthusiasmLevel": "string",
        "personalStory": "string"
    },
    "sellingPoints": ["unique features, condition details, provenance, value propositions"],
    "pricingSignals": {
        "suggestedPrice": 0.0,
        "originalPrice": 0.0,
        "conditionAssessment": "string",
        "rarity": "string",
        "urgency": "string"
    },
    "optimizationRecommendations": {
        "bestPlatforms": ["ebay|etsy|poshmark|instagram|facebook|mercari"],
        "strategy": "string",
        "keySellingPoints": ["string"],
        "buyerPersonas": ["string"]
    }
}

Use null for anything neither the frames nor the transcript support. Do not invent \
brands, sizes or prices."""

    def __init__(
        self,
        llm_provider: LLMProvider | None = None,
        timeout_seconds: float | None = None,
        max_attempts: int | None = None,
        backoff_seconds: float | None = None,
    ) -> None:
        self.llm = llm_provider or self._get_default_provider()
        self.timeout_seconds = (
            settings.external_call_timeout_seconds if timeout_seconds is None else timeout_seconds
        )
        self.max_attempts = (
            settings.fusion_max_attempts if max_attempts is None else max_attempts
        )
        self.backoff_seconds = (
            settings.retry_backoff_seconds if backoff_seconds is None else backoff_seconds
        )
        logger.info("fusion_service_initialized", provider=self.llm.name)

    def _get_default_provider(self) -> LLMProvider:
        provider_name = settings.llm_provider.lower()

        if provider_name == "stub":
            return StubLLMProvider()
        if provider_name == "openai" and settings.openai_api_key:
            return OpenAIProvider()

        logger.warning("No LLM API keys configured, using stub provider")
        return StubLLMProvider()

    def build_prompt(self, transcript: Transcript, visual: VisualAnalysis) -> str:
        """Build the user prompt from frame descriptions and transcript."""
        frame_lines = "\n\n".join(
            f"[Frame {f.frame_index} @ {f.timestamp:.1f}s]\n{f.description}"
            for f in visual.frames
        )
        return f"""VISUAL ANALYSIS:
{frame_lines}

VOICE TRANSCRIPT:
"{transcript.text}"

Extract and organize the item details, emotional context, selling points, pricing \
signals and optimization recommendations as JSON."""

    async def fuse(self, transcript: Transcript, visual: VisualAnalysis) -> CombinedAnalysis:
        """Produce the combined analysis.

        Raises:
            FusionParseError: If the model call fails or its output is not
                valid JSON with every required section
        """
        logger.info(
            "fusion_started",
            frame_count=len(visual.frames),
            transcript_length=len(transcript.text),
        )

        messages = [
            LLMMessage(role="system", content=self.SYSTEM_PROMPT),
            LLMMessage(role="user", content=self.build_prompt(transcript, visual)),
        ]

        parsed = await retry_async(
            lambda: self._complete_and_parse(messages),
            attempts=self.max_attempts,
            backoff_seconds=self.backoff_seconds,
            retry_on=(FusionParseError,),
            operation_name="fusion",
        )

        analysis = CombinedAnalysis(
            item_details=parsed.item_details,
            emotional_context=parsed.emotional_context,
            selling_points=tuple(parsed.selling_points),
            pricing_signals=parsed.pricing_signals,
            optimization_recommendations=parsed.optimization_recommendations,
            confidence=CombinedAnalysis.combine_confidence(transcript, visual),
            transcript=transcript,
            visual_analysis=visual,
        )

        logger.info(
            "fusion_completed",
            title=analysis.item_details.title,
            category=analysis.item_details.category,
            confidence=analysis.confidence,
        )
        return analysis

    async def _complete_and_parse(self, messages: list[LLMMessage]) -> FusionResponse:
        try:
            response = await asyncio.wait_for(
                self.llm.complete(messages, temperature=0.3, json_mode=True),
                timeout=self.timeout_seconds,
            )
        except TimeoutError as e:
            raise FusionParseError(f"fusion call timed out after {self.timeout_seconds}s") from e
        except Exception as e:
            raise FusionParseError(f"fusion call failed: {e}") from e

        return parse_fusion_response(response.content)


def parse_fusion_response(content: str) -> FusionResponse:
    """Parse and validate the fusion model's JSON output.

    Raises:
        FusionParseError: If the content is not a JSON object or any required
            section is missing or malformed
    """
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        logger.error("fusion_parse_failed", reason="invalid_json", error=str(e))
        raise FusionParseError(f"fusion response is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise FusionParseError(f"fusion response must be a JSON object, got {type(data).__name__}")

    missing = [key for key in REQUIRED_FUSION_KEYS if data.get(key) is None]
    if missing:
        logger.error("fusion_parse_failed", reason="missing_keys", missing=missing)
        raise FusionParseError(f"fusion response is missing required keys: {', '.join(missing)}")

    try:
        return FusionResponse.model_validate(data)
    except ValidationError as e:
        logger.error("fusion_parse_failed", reason="schema", error=str(e))
        raise FusionParseError(f"fusion response does not match schema: {e}") from e
