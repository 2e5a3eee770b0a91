"""Maps a combined analysis onto a listing record and stores it."""

from typing import Any

from listpro.adapters.store.base import ListingStore
from listpro.config import settings
from listpro.domain.enums import ItemCondition, ProcessingStatus
from listpro.domain.models import CombinedAnalysis, Listing
from listpro.errors import PersistenceError
from listpro.logging import get_logger
from listpro.services.content_generator import ContentGenerationResult

logger = get_logger(__name__)

LISTING_DEFAULTS: dict[str, Any] = {
    "title": "Untitled Item",
    "description": "",
    "category": "other",
    "condition": str(ItemCondition.GOOD),
    "price": 0.0,
}


class ListingAssembler:
    """Builds the listing record and commits it to the store.

    Missing analysis fields fall back to fixed defaults; each fallback is
    logged so lenient defaulting stays visible.
    """

    def __init__(self, store: ListingStore | None = None) -> None:
        self.store = store or self._get_default_store()
        logger.info("listing_assembler_initialized", store=self.store.name)

    def _get_default_store(self) -> ListingStore:
        if settings.store_provider.lower() == "memory":
            from listpro.adapters.store.memory import InMemoryListingStore

            return InMemoryListingStore()

        from listpro.adapters.store.database import SQLAlchemyListingStore

        return SQLAlchemyListingStore()

    def build(
        self,
        analysis: CombinedAnalysis,
        content: ContentGenerationResult,
        owner_id: str,
    ) -> Listing:
        """Map the analysis onto an unsaved listing."""
        details = analysis.item_details
        suggested_price = analysis.pricing_signals.suggested_price

        condition = ItemCondition.normalize(details.condition)
        values: dict[str, Any] = {
            "title": details.title,
            "description": details.description,
            "category": details.category.lower() if details.category else None,
            "condition": str(condition) if condition else None,
            "price": suggested_price,
        }
        defaulted = [name for name, value in values.items() if value is None]
        for name in defaulted:
            values[name] = LISTING_DEFAULTS[name]
        if defaulted:
            logger.warning(
                "listing_field_defaulted",
                owner_id=owner_id,
                fields=defaulted,
                defaults={name: LISTING_DEFAULTS[name] for name in defaulted},
            )

        return Listing(
            owner_id=owner_id,
            title=values["title"],
            description=values["description"],
            price=values["price"],
            category=values["category"],
            condition=values["condition"],
            brand=details.brand,
            size=details.size,
            suggested_price=suggested_price,
            confidence=analysis.confidence,
            status=ProcessingStatus.COMPLETED,
            ai_metadata={
                **analysis.to_dict(),
                "platformContent": content.to_dict(),
                "defaultedFields": defaulted,
            },
        )

    async def persist(
        self,
        analysis: CombinedAnalysis,
        content: ContentGenerationResult,
        owner_id: str,
    ) -> Listing:
        """Build the listing and insert it.

        Raises:
            PersistenceError: On any store-level error
        """
        listing = self.build(analysis, content, owner_id)

        try:
            stored = await self.store.insert(listing)
        except Exception as e:
            logger.error("listing_persist_failed", owner_id=owner_id, error=str(e))
            raise PersistenceError(f"listing store rejected the record: {e}") from e

        logger.info("listing_persisted", listing_id=str(stored.id), owner_id=owner_id)
        return stored
