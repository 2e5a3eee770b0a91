"""API route modules."""

from listpro.api.routes import health, listings, platforms

__all__ = ["health", "listings", "platforms"]
