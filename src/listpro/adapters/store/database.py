"""SQLAlchemy-backed listing store."""

import asyncio

from sqlalchemy.orm import Session, sessionmaker

from listpro.adapters.store.base import ListingStore
from listpro.db.models import ListingModel
from listpro.domain.enums import ProcessingStatus
from listpro.domain.models import Listing
from listpro.logging import get_logger

logger = get_logger(__name__)


class SQLAlchemyListingStore(ListingStore):
    """Inserts listings into the ``listings`` table.

    The ORM session is synchronous, so inserts run in the default executor
    to keep the event loop free.
    """

    def __init__(self, session_factory: sessionmaker[Session] | None = None) -> None:
        if session_factory is None:
            from listpro.db.session import get_session_factory

            session_factory = get_session_factory()
        self.session_factory = session_factory

    @property
    def name(self) -> str:
        return "sqlalchemy"

    async def insert(self, listing: Listing) -> Listing:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._insert_sync, listing)

    def _insert_sync(self, listing: Listing) -> Listing:
        model = ListingModel(
            user_id=listing.owner_id,
            title=listing.title,
            description=listing.description,
            price=listing.price,
            category=listing.category,
            condition=listing.condition,
            brand=listing.brand,
            size=listing.size,
            ai_suggested_price=listing.suggested_price,
            ai_confidence_score=listing.confidence,
            ai_processing_status=str(listing.status),
            ai_metadata=listing.ai_metadata,
        )

        with self.session_factory() as session:
            try:
                session.add(model)
                session.commit()
                session.refresh(model)
            except Exception:
                session.rollback()
                raise

            logger.info("listing_inserted", listing_id=str(model.id), user_id=model.user_id)
            return to_domain(model)


def to_domain(model: ListingModel) -> Listing:
    """Convert an ORM row into a domain listing."""
    return Listing(
        id=model.id,
        owner_id=model.user_id,
        title=model.title,
        description=model.description,
        price=model.price,
        category=model.category,
        condition=model.condition,
        brand=model.brand,
        size=model.size,
        suggested_price=model.ai_suggested_price,
        confidence=model.ai_confidence_score,
        status=ProcessingStatus(model.ai_processing_status),
        ai_metadata=model.ai_metadata or {},
        created_at=model.created_at,
    )
