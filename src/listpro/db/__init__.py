"""Database layer."""

from listpro.db.models import Base, ListingModel
from listpro.db.session import get_engine, get_session_factory, ping_database

__all__ = [
    "Base",
    "ListingModel",
    "get_engine",
    "get_session_factory",
    "ping_database",
]
