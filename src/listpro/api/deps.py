"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends

from listpro.services.pipeline import ListingPipeline


def get_listing_pipeline() -> ListingPipeline:
    """Get the listing pipeline instance."""
    return ListingPipeline.from_settings()


ListingPipelineDep = Annotated[ListingPipeline, Depends(get_listing_pipeline)]
