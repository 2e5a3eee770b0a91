"""Offline model provider that answers with a fixed messenger-bag listing."""

import json
import re

from listpro.adapters.llm.base import LLMMessage, LLMProvider, LLMResponse, VisionMessage
from listpro.logging import get_logger

logger = get_logger(__name__)

_PLATFORM_PATTERN = re.compile(r"listing for ([A-Z]+)")

STUB_FRAME_DESCRIPTION = """The image shows a leather messenger bag on a wooden table indoors.
Brand: Fossil
Model: Defender
Color: brown
Material: leather
Size: medium
Condition: good, light scuffing on the corners
Features: brass buckles, padded laptop sleeve"""

STUB_FUSION_RESPONSE = {
    "itemDetails": {
        "title": "Fossil Defender Leather Messenger Bag",
        "description": "Brown leather messenger bag, brass buckles, padded laptop sleeve.",
        "brand": "Fossil",
        "model": "Defender",
        "category": "bags",
        "condition": "good",
        "size": "medium",
        "color": "brown",
        "material": "leather",
        "keyFeatures": ["brass buckles", "padded laptop sleeve"],
    },
    "emotionalContext": {
        "attachmentLevel": "medium",
        "reasonForSelling": "switched to a backpack",
        "sentiment": "positive",
    },
    "sellingPoints": ["genuine leather", "fits a 15 inch laptop", "light wear only"],
    "pricingSignals": {
        "suggestedPrice": 65,
        "originalPrice": 180,
        "rarity": "common",
        "urgency": "low",
    },
    "optimizationRecommendations": {
        "bestPlatforms": ["ebay", "poshmark"],
        "strategy": "Lead with the brand and the laptop sleeve.",
    },
}


class StubLLMProvider(LLMProvider):
    """Deterministic provider used when no API key is configured and in tests."""

    @property
    def name(self) -> str:
        return "stub"

    async def complete(
        self,
        messages: list[LLMMessage],
        temperature: float = 0.7,  # noqa: ARG002
        max_tokens: int = 4096,  # noqa: ARG002
        json_mode: bool = False,
    ) -> LLMResponse:
        """Return fusion JSON in JSON mode and platform copy otherwise."""
        logger.info(
            "stub_llm_complete",
            message_count=len(messages),
            json_mode=json_mode,
        )

        user_message = next((m.content for m in reversed(messages) if m.role == "user"), "")

        if json_mode:
            content = json.dumps(STUB_FUSION_RESPONSE, indent=2)
        else:
            match = _PLATFORM_PATTERN.search(user_message)
            platform = match.group(1).lower() if match else "generic"
            content = (
                "Title: Fossil Defender Leather Messenger Bag - Brown\n"
                f"Description: Selling my Fossil Defender messenger bag on {platform}. "
                "Genuine brown leather, brass buckles and a padded laptop sleeve. "
                "Good condition with light scuffing on the corners.\n"
                "Hashtags: #fossil #leatherbag #messengerbag"
            )

        return LLMResponse(
            content=content,
            model="stub-model",
            usage={
                "prompt_tokens": len(user_message.split()),
                "completion_tokens": len(content.split()),
                "total_tokens": len(user_message.split()) + len(content.split()),
            },
            finish_reason="stop",
        )

    @property
    def supports_vision(self) -> bool:
        return True

    async def complete_with_vision(
        self,
        messages: list[VisionMessage],
        temperature: float = 0.7,  # noqa: ARG002
        max_tokens: int = 4096,  # noqa: ARG002
        json_mode: bool = False,
    ) -> LLMResponse:
        """Return a canned frame description."""
        image_count = sum(len(m.images) for m in messages)

        logger.info(
            "stub_llm_vision_complete",
            message_count=len(messages),
            image_count=image_count,
            json_mode=json_mode,
        )

        return LLMResponse(
            content=STUB_FRAME_DESCRIPTION,
            model="stub-vision-model",
            usage={"total_tokens": image_count * 1000},
            finish_reason="stop",
        )

