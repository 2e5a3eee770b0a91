"""Health check endpoints."""

from fastapi import APIRouter, status
from pydantic import BaseModel

from listpro import __version__
from listpro.config import settings
from listpro.logging import get_logger

router = APIRouter(tags=["Health"])
logger = get_logger(__name__)


class HealthResponse(BaseModel):
    status: str
    version: str
    components: dict[str, bool] | None = None


class ReadinessResponse(BaseModel):
    """Whether the listing store and the job broker can be reached."""

    ready: bool
    store: bool
    broker: bool


def _store_reachable() -> bool:
    if settings.store_provider.lower() == "memory":
        return True

    from listpro.db.session import ping_database

    return ping_database()


def _broker_reachable() -> bool:
    # In-process brokers are only used by tests and eager runs
    if settings.celery_broker_url.startswith("memory://"):
        return True

    import redis

    try:
        redis.from_url(settings.celery_broker_url).ping()
    except redis.RedisError as e:
        logger.error("broker_ping_failed", error=str(e))
        return False
    return True


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check",
)
async def health_check() -> HealthResponse:
    """Report the version and which model providers are live (not stubs)."""
    providers = {
        "llm": settings.llm_provider,
        "transcription": settings.transcription_provider,
    }
    return HealthResponse(
        status="healthy",
        version=__version__,
        components={name: value.lower() != "stub" for name, value in providers.items()},
    )


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
)
async def readiness_check() -> ReadinessResponse:
    """Ready once listings can be stored and async jobs can be queued."""
    store_ok = _store_reachable()
    broker_ok = _broker_reachable()
    return ReadinessResponse(ready=store_ok and broker_ok, store=store_ok, broker=broker_ok)


@router.get("/health/live", status_code=status.HTTP_200_OK, summary="Liveness probe")
async def liveness_check() -> dict[str, str]:
    return {"status": "alive"}
