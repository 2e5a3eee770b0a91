"""Listing store adapters."""

from listpro.adapters.store.base import ListingStore
from listpro.adapters.store.memory import InMemoryListingStore
from listpro.adapters.store.database import SQLAlchemyListingStore

__all__ = [
    "ListingStore",
    "InMemoryListingStore",
    "SQLAlchemyListingStore",
]
