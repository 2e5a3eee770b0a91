"""Celery job definitions."""

from listpro.jobs.tasks import process_video_listing_task

__all__ = ["process_video_listing_task"]
