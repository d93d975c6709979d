"""Application review tasks."""

import asyncio
import logging
from typing import Any

from celery import Task

from workers.celery_app import celery_app

logger = logging.getLogger(__name__)


async def _run_review(application_id: str) -> dict[str, Any]:
    from api.services.reviews import run_review
    from database.engine import close_db

    try:
        return await run_review(application_id)
    finally:
        # Pooled connections belong to this task's event loop
        await close_db()


async def _retry_stage(application_id: str, stage_type: str) -> dict[str, Any]:
    from api.services.reviews import retry_review
    from database.engine import close_db

    try:
        return await retry_review(application_id, stage_type)
    finally:
        await close_db()


@celery_app.task(name="workers.tasks.reviews.process_application_review", bind=True)
def process_application_review(self: Task, application_id: str) -> dict:
    """Run the full review pipeline for an application.

    Pipeline runs are never retried automatically; a failed stage is
    recovered with retry_review_stage.

    Args:
        application_id: Application to review

    Returns:
        Pipeline summary
    """
    logger.info(
        f"Task {self.request.id} reviewing application {application_id}",
        extra={"application_id": application_id},
    )
    return asyncio.run(_run_review(application_id))


@celery_app.task(name="workers.tasks.reviews.retry_review_stage", bind=True)
def retry_review_stage(self: Task, application_id: str, stage_type: str) -> dict:
    """Re-run a single review stage.

    Args:
        application_id: Application to review
        stage_type: Stage to re-run, e.g. CATEGORIZATION

    Returns:
        Stage result and the resulting application status
    """
    logger.info(
        f"Task {self.request.id} retrying {stage_type} for application {application_id}",
        extra={"application_id": application_id, "stage": stage_type},
    )
    return asyncio.run(_retry_stage(application_id, stage_type))
