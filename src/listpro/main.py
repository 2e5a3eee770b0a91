"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from listpro import __version__
from listpro.api.routes import health, listings, platforms
from listpro.config import settings
from listpro.logging import get_logger, setup_logging

setup_logging()
logger = get_logger(__name__)

API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info(
        "application_starting",
        version=__version__,
        store=settings.store_provider,
        llm=settings.llm_provider,
        transcription=settings.transcription_provider,
    )

    # A store outage is reported by /health/ready rather than blocking startup
    if settings.store_provider.lower() == "sqlalchemy":
        from listpro.db.session import ping_database

        if ping_database():
            logger.info("listing_store_connected")

    yield

    logger.info("application_shutting_down")


def create_app() -> FastAPI:
    """Assemble the API with its routers."""
    application = FastAPI(
        title="ListPro",
        description="Turns a product video into marketplace-ready resale listings",
        version=__version__,
        lifespan=lifespan,
    )
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.include_router(health.router)
    for module in (listings, platforms):
        application.include_router(module.router, prefix=API_PREFIX)

    @application.get("/", include_in_schema=False)
    async def root() -> dict[str, object]:
        return {
            "name": "ListPro",
            "version": __version__,
            "docs": "/docs",
            "platforms": settings.default_platforms,
        }

    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "listpro.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
