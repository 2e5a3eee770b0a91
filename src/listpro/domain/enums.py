"""Domain enumerations."""

from enum import StrEnum


class ProcessingStatus(StrEnum):
    """AI processing status of a stored listing."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class Platform(StrEnum):
    """Supported resale marketplaces."""

    EBAY = "ebay"
    ETSY = "etsy"
    POSHMARK = "poshmark"
    INSTAGRAM = "instagram"
    FACEBOOK = "facebook"
    MERCARI = "mercari"


class PipelineStage(StrEnum):
    """Stages of the listing pipeline, used to label failures."""

    PIPELINE = "pipeline"
    MEDIA_SAMPLING = "media_sampling"
    TRANSCRIPTION = "transcription"
    FRAME_ANALYSIS = "frame_analysis"
    FUSION = "fusion"
    CONTENT_GENERATION = "content_generation"
    PERSISTENCE = "persistence"


class ItemCondition(StrEnum):
    """Normalized item conditions."""

    NEW = "new"
    LIKE_NEW = "like-new"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"

    @classmethod
    def normalize(cls, value: str | None) -> "ItemCondition | None":
        """Map free-text condition wording onto a known condition."""
        if not value:
            return None
        text = value.strip().lower().replace("_", "-").replace(" ", "-")
        for condition in cls:
            if text == condition.value:
                return condition
        if "like-new" in text or "mint" in text or "excellent" in text:
            return cls.LIKE_NEW
        if "new" in text:
            return cls.NEW
        if "poor" in text or "damaged" in text or "parts" in text:
            return cls.POOR
        if "fair" in text or "worn" in text:
            return cls.FAIR
        if "good" in text or "used" in text:
            return cls.GOOD
        return None
