"""Celery tasks for the listing pipeline."""

from typing import Any

from listpro.errors import PipelineError
from listpro.logging import get_logger
from listpro.services.pipeline import ListingPipeline
from listpro.utils.async_utils import run_async
from listpro.worker import celery_app

logger = get_logger(__name__)


@celery_app.task(bind=True, name="listings.process_video")
def process_video_listing_task(
    self: Any,
    video_url: str,
    owner_id: str,
    platforms: list[str] | None = None,
) -> dict[str, Any]:
    """Run the full pipeline for one video.

    Fatal pipeline errors are returned as a failed payload rather than
    raised, so the stage and frame/platform context survive the result
    backend.
    """
    task_id = self.request.id
    logger.info("process_video_task_started", task_id=task_id, owner_id=owner_id)

    try:
        pipeline = ListingPipeline.from_settings()
        result = run_async(pipeline.process_video(video_url, owner_id, platforms))
    except PipelineError as e:
        logger.error(
            "process_video_task_failed",
            task_id=task_id,
            stage=str(e.stage),
            error=e.message,
        )
        return {"success": False, "task_id": task_id, **e.to_dict()}

    logger.info(
        "process_video_task_completed",
        task_id=task_id,
        listing_id=str(result.listing_id),
    )
    return {"task_id": task_id, **result.to_dict()}
