"""
Application review endpoints.

Starts the automated review pipeline and exposes its progress, reports and
applicant feedback.
"""

from fastapi import APIRouter, Depends, Path, Query, status

from api.dependencies import get_review_pipeline
from api.schemas.reviews import (
    ApplicantFeedbackResponse,
    PipelineSummary,
    ProcessResponse,
    RetryResponse,
    ReviewReportResponse,
    ReviewStatusResponse,
)
from core.exceptions import ApplicationNotFound
from review.orchestrator import ReviewPipeline
from workers.tasks.reviews import process_application_review

router = APIRouter(prefix="/reviews", tags=["reviews"])


@router.post(
    "/{application_id}/process",
    response_model=ProcessResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Start Review",
    description="Queue the review pipeline for a submitted application, or run it inline with sync=true.",
)
async def process_review(
    application_id: str = Path(..., description="Application ID"),
    sync: bool = Query(False, description="Run the pipeline inline instead of queueing it"),
    pipeline: ReviewPipeline = Depends(get_review_pipeline),
):
    """Start the automated review of an application."""
    if sync:
        summary = await pipeline.run(application_id)
        return ProcessResponse(
            application_id=application_id,
            queued=False,
            summary=PipelineSummary(**summary),
        )

    if await pipeline.store.get_application(application_id) is None:
        raise ApplicationNotFound(application_id)

    task = process_application_review.delay(application_id)
    return ProcessResponse(application_id=application_id, queued=True, task_id=task.id)


@router.get(
    "/{application_id}/status",
    response_model=ReviewStatusResponse,
    summary="Get Review Status",
    description="Per-stage results and overall progress of an application's review.",
)
async def get_review_status(
    application_id: str = Path(..., description="Application ID"),
    pipeline: ReviewPipeline = Depends(get_review_pipeline),
):
    return await pipeline.get_status(application_id)


@router.get(
    "/{application_id}/report",
    response_model=ReviewReportResponse,
    summary="Get Review Report",
    description="Detailed report including every stage's metadata and a score summary.",
)
async def get_review_report(
    application_id: str = Path(..., description="Application ID"),
    pipeline: ReviewPipeline = Depends(get_review_pipeline),
):
    return await pipeline.get_detailed_report(application_id)


@router.get(
    "/{application_id}/feedback",
    response_model=ApplicantFeedbackResponse,
    response_model_exclude_none=True,
    summary="Get Applicant Feedback",
    description="Applicant-facing explanation of the review outcome with next steps.",
)
async def get_applicant_feedback(
    application_id: str = Path(..., description="Application ID"),
    pipeline: ReviewPipeline = Depends(get_review_pipeline),
):
    return await pipeline.get_applicant_feedback(application_id)


@router.post(
    "/{application_id}/retry/{stage_type}",
    response_model=RetryResponse,
    summary="Retry Review Stage",
    description="Delete a stage's results, reset the application status and re-run only that stage.",
)
async def retry_review_stage(
    application_id: str = Path(..., description="Application ID"),
    stage_type: str = Path(..., description="Review stage, e.g. CATEGORIZATION"),
    pipeline: ReviewPipeline = Depends(get_review_pipeline),
):
    """Re-run a single review stage."""
    return await pipeline.retry_stage(application_id, stage_type)
