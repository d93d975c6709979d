"""Pydantic schemas for the review endpoints."""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


class PipelineSummary(BaseModel):
    """Result of a full pipeline run."""

    application_id: str
    outcome: Literal["PASSED", "REJECTED", "SKIPPED"]
    final_status: str
    stages_run: list[str] = Field(default_factory=list)


class ProcessResponse(BaseModel):
    """Response to a review processing request."""

    application_id: str
    queued: bool
    task_id: Optional[str] = None
    summary: Optional[PipelineSummary] = None


class StageProgress(BaseModel):
    type: str
    result: str
    feedback: Optional[str] = None
    score: Optional[float] = None
    processed_at: Optional[datetime] = None
    error: Optional[str] = None


class ReviewStatusResponse(BaseModel):
    """Per-stage review progress."""

    application_id: str
    current_status: str
    progress_percentage: int = Field(ge=0, le=100)
    reviews: list[StageProgress]
    category: Optional[str] = None
    rejection_reason: Optional[str] = None
    last_updated: Optional[datetime] = None


class ReportSummary(BaseModel):
    total_reviews: int
    passed_reviews: int
    failed_reviews: int
    average_score: float
    final_status: str
    rejection_reason: Optional[str] = None


class ReviewReportResponse(BaseModel):
    """Detailed review report for staff."""

    application: dict[str, Any]
    review_results: dict[str, dict[str, Any]]
    summary: ReportSummary


class FeedbackDetails(BaseModel):
    similarity_score: Optional[float] = None
    suggestions: list[str] = Field(default_factory=list)
    rejection_reason: Optional[str] = None


class ApplicantFeedbackResponse(BaseModel):
    """Applicant-facing review feedback."""

    status: Literal["SUCCESS", "REJECTED"]
    is_rejected: bool
    message: Optional[str] = None
    current_stage: Optional[str] = None
    rejection_stage: Optional[str] = None
    primary_reason: Optional[str] = None
    feedback: Optional[str] = None
    score: Optional[float] = None
    reviewed_at: Optional[datetime] = None
    details: Optional[FeedbackDetails] = None
    next_steps: list[str] = Field(default_factory=list)
    can_resubmit: Optional[bool] = None
    resubmission_guidelines: list[str] = Field(default_factory=list)


class RetryResponse(BaseModel):
    """Result of retrying a single stage."""

    application_id: str
    stage: str
    result: str
    status: str
