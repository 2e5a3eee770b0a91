"""Supported marketplace endpoints."""

from fastapi import APIRouter
from pydantic import BaseModel

from listpro.config import settings
from listpro.services.content_generator import PLATFORM_SPECS

router = APIRouter(prefix="/platforms", tags=["Platforms"])


class PlatformInfo(BaseModel):
    """Constraints applied when writing copy for one platform."""

    platform: str
    title_limit: int | None
    description_limit: int
    style: str
    focus: list[str]
    hashtags: bool
    default: bool


@router.get(
    "",
    response_model=list[PlatformInfo],
    summary="List platforms",
    description="Marketplaces the content generator can write listings for.",
)
async def list_platforms() -> list[PlatformInfo]:
    defaults = {p.lower() for p in settings.default_platforms}
    return [
        PlatformInfo(
            platform=str(platform),
            title_limit=spec.title_limit,
            description_limit=spec.description_limit,
            style=spec.style,
            focus=list(spec.focus),
            hashtags=spec.hashtags,
            default=str(platform) in defaults,
        )
        for platform, spec in PLATFORM_SPECS.items()
    ]
