"""In-memory listing store for testing."""

from dataclasses import replace
from uuid import UUID, uuid4

from listpro.adapters.store.base import ListingStore
from listpro.domain.models import Listing, utcnow
from listpro.logging import get_logger

logger = get_logger(__name__)


class InMemoryListingStore(ListingStore):
    """Keeps listings in a dict keyed by generated UUID."""

    def __init__(self) -> None:
        self.listings: dict[UUID, Listing] = {}

    @property
    def name(self) -> str:
        return "memory"

    async def insert(self, listing: Listing) -> Listing:
        stored = replace(listing, id=uuid4(), created_at=utcnow())
        self.listings[stored.id] = stored
        logger.info("memory_listing_inserted", listing_id=str(stored.id))
        return stored
