"""Celery application for background listing jobs."""

from celery import Celery

from listpro.config import settings
from listpro.logging import setup_logging

setup_logging()

LISTING_QUEUE = "listings"

celery_app = Celery(
    "listpro",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["listpro.jobs.tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    enable_utc=True,
    # One listing run at a time per worker process
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    task_time_limit=settings.listing_job_time_limit,
    task_soft_time_limit=settings.listing_job_time_limit - 60,
    task_track_started=True,
    result_expires=60 * 60 * 24,
    task_default_queue=LISTING_QUEUE,
    task_routes={"listings.*": {"queue": LISTING_QUEUE}},
)
