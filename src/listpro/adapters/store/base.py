"""Base interface for listing stores."""

from abc import ABC, abstractmethod

from listpro.domain.models import Listing


class ListingStore(ABC):
    """Abstract base class for listing persistence.

    Implementations:
    - SQLAlchemyListingStore: Relational database via SQLAlchemy
    - InMemoryListingStore: Process-local dict for testing
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Store name identifier."""
        ...

    @abstractmethod
    async def insert(self, listing: Listing) -> Listing:
        """Insert a listing and return the stored record.

        The returned listing carries the identifier assigned by the store.
        Store-level failures propagate as the store's own exceptions.
        """
        ...

    async def health_check(self) -> bool:
        """Check if the store is reachable."""
        return True
