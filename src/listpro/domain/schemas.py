"""Validated schema for the fusion model's structured response.

The model is asked for camelCase JSON. All five top-level sections are
required; every field inside a section is optional with a default, and
unknown keys are kept so nothing the model volunteers is lost.
"""

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

_PRICE_PATTERN = re.compile(r"-?\d+(?:[.,]\d+)?")


def _as_str_list(value: Any) -> list[str]:
    """Coerce a loosely shaped model value into a list of strings."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, dict):
        items: list[str] = []
        for item in value.values():
            items.extend(_as_str_list(item))
        return items
    if isinstance(value, list | tuple | set):
        items = []
        for item in value:
            items.extend(_as_str_list(item))
        return items
    return [str(value)]


def _as_price(value: Any) -> float | None:
    """Parse prices such as ``45``, ``"45.00"`` or ``"$1,200"``."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        match = _PRICE_PATTERN.search(value.replace(",", ""))
        if match:
            return float(match.group())
    return None


def _as_optional_str(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, list):
        return ", ".join(str(v) for v in value) or None
    text = str(value).strip()
    return text or None


class _Section(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )


class ItemDetails(_Section):
    """What the item is."""

    title: str | None = None
    description: str | None = None
    brand: str | None = None
    model: str | None = None
    year: str | None = None
    category: str | None = None
    subcategory: str | None = None
    condition: str | None = None
    size: str | None = None
    color: str | None = None
    material: str | None = None
    key_features: list[str] = Field(default_factory=list)

    @field_validator(
        "title",
        "description",
        "brand",
        "model",
        "year",
        "category",
        "subcategory",
        "condition",
        "size",
        "color",
        "material",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, value: Any) -> str | None:
        return _as_optional_str(value)

    @field_validator("key_features", mode="before")
    @classmethod
    def _coerce_features(cls, value: Any) -> list[str]:
        return _as_str_list(value)


class EmotionalContext(_Section):
    """How the seller feels about the item."""

    attachment_level: str | None = None
    reason_for_selling: str | None = None
    sentiment: str | None = None
    enthusiasm_level: str | None = None
    personal_story: str | None = None

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str | None:
        return _as_optional_str(value)


class PricingSignals(_Section):
    """Signals that inform the asking price."""

    suggested_price: float | None = None
    original_price: float | None = None
    condition_assessment: str | None = None
    rarity: str | None = None
    urgency: str | None = None

    @field_validator("suggested_price", "original_price", mode="before")
    @classmethod
    def _coerce_price(cls, value: Any) -> float | None:
        return _as_price(value)

    @field_validator("condition_assessment", "rarity", "urgency", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str | None:
        return _as_optional_str(value)


class OptimizationRecommendations(_Section):
    """Where and how to list the item."""

    best_platforms: list[str] = Field(default_factory=list)
    strategy: str | None = None
    key_selling_points: list[str] = Field(default_factory=list)
    buyer_personas: list[str] = Field(default_factory=list)

    @field_validator("best_platforms", "key_selling_points", "buyer_personas", mode="before")
    @classmethod
    def _coerce_list(cls, value: Any) -> list[str]:
        return _as_str_list(value)

    @field_validator("strategy", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str | None:
        return _as_optional_str(value)


class FusionResponse(_Section):
    """Top-level shape the fusion model must return."""

    item_details: ItemDetails
    emotional_context: EmotionalContext
    selling_points: list[str]
    pricing_signals: PricingSignals
    optimization_recommendations: OptimizationRecommendations

    @field_validator("selling_points", mode="before")
    @classmethod
    def _coerce_selling_points(cls, value: Any) -> list[str]:
        if value is None:
            raise ValueError("sellingPoints must not be null")
        return _as_str_list(value)


REQUIRED_FUSION_KEYS: tuple[str, ...] = (
    "itemDetails",
    "emotionalContext",
    "sellingPoints",
    "pricingSignals",
    "optimizationRecommendations",
)
