"""Listing creation and job status endpoints."""

from typing import Any

from celery.result import AsyncResult
from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field

from listpro.api.deps import ListingPipelineDep
from listpro.errors import FusionParseError, MediaExtractionError, PipelineError
from listpro.jobs.tasks import process_video_listing_task
from listpro.logging import get_logger
from listpro.worker import celery_app

router = APIRouter(prefix="/listings", tags=["Listings"])
logger = get_logger(__name__)

# Bad input maps to 422; upstream service failures map to 502
CLIENT_ERRORS = (MediaExtractionError, FusionParseError)


class ProcessVideoRequest(BaseModel):
    """Request to turn a product video into a listing."""

    video_url: str = Field(..., min_length=1, description="Path or URL of the video")
    owner_id: str = Field(..., min_length=1, description="Owner of the listing")
    platforms: list[str] | None = Field(None, description="Target marketplaces")


class JobResponse(BaseModel):
    """Response when a job is enqueued."""

    task_id: str
    status: str
    message: str


class JobStatusResponse(BaseModel):
    """Response with job status details."""

    task_id: str
    status: str
    result: dict[str, Any] | None = None
    error: str | None = None


def error_status(error: PipelineError) -> int:
    if isinstance(error, CLIENT_ERRORS):
        return status.HTTP_422_UNPROCESSABLE_ENTITY
    return status.HTTP_502_BAD_GATEWAY


@router.post(
    "/process",
    summary="Process video",
    description="Run the listing pipeline inline and return the stored listing.",
)
async def process_video(
    request: ProcessVideoRequest,
    pipeline: ListingPipelineDep,
) -> dict[str, Any]:
    """Process a video synchronously."""
    logger.info("process_video_requested", owner_id=request.owner_id)

    try:
        result = await pipeline.process_video(
            request.video_url,
            request.owner_id,
            request.platforms,
        )
    except PipelineError as e:
        logger.warning("process_video_rejected", stage=str(e.stage), error=e.message)
        raise HTTPException(status_code=error_status(e), detail=e.to_dict()) from e

    return result.to_dict()


@router.post(
    "/process/async",
    response_model=JobResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Process video in the background",
    description="Enqueue a listing pipeline job.",
)
async def process_video_async(request: ProcessVideoRequest) -> JobResponse:
    """Enqueue a video processing job."""
    logger.info("process_video_enqueued", owner_id=request.owner_id)

    task = process_video_listing_task.delay(
        video_url=request.video_url,
        owner_id=request.owner_id,
        platforms=request.platforms,
    )

    return JobResponse(
        task_id=task.id,
        status="queued",
        message="Listing job enqueued successfully",
    )


@router.get(
    "/jobs/{task_id}",
    response_model=JobStatusResponse,
    summary="Get job status",
    description="Get the status of a listing job by task ID.",
)
async def get_job_status(task_id: str) -> JobStatusResponse:
    """Get the status of a job."""
    result = AsyncResult(task_id, app=celery_app)

    if result.state == "PENDING":
        return JobStatusResponse(task_id=task_id, status="pending")
    elif result.state == "STARTED":
        return JobStatusResponse(task_id=task_id, status="running")
    elif result.state == "SUCCESS":
        payload = result.result or {}
        if payload.get("success") is False:
            return JobStatusResponse(
                task_id=task_id,
                status="failed",
                result=payload,
                error=payload.get("error"),
            )
        return JobStatusResponse(task_id=task_id, status="completed", result=payload)
    elif result.state == "FAILURE":
        return JobStatusResponse(task_id=task_id, status="failed", error=str(result.result))
    else:
        return JobStatusResponse(task_id=task_id, status=result.state.lower())

