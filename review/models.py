"""
Review pipeline domain models.

Applications, review records and corpus entries as the pipeline sees them,
independent of how a record store persists them.
"""

from datetime import datetime, timezone
from enum import Enum as PyEnum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ==================== Review Enums ===================== #
class ApplicationStatus(str, PyEnum):
    """Lifecycle status of a submitted application."""

    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    EXTERNAL_IDEA_REVIEW = "EXTERNAL_IDEA_REVIEW"
    INTERNAL_IDEA_REVIEW = "INTERNAL_IDEA_REVIEW"
    CATEGORIZATION = "CATEGORIZATION"
    IMPLEMENTATION_REVIEW = "IMPLEMENTATION_REVIEW"
    COST_REVIEW = "COST_REVIEW"
    IMPACT_REVIEW = "IMPACT_REVIEW"
    UNDER_REVIEW = "UNDER_REVIEW"
    REJECTED = "REJECTED"


class ReviewStage(str, PyEnum):
    """Automated review stages, declared in execution order."""

    EXTERNAL_IDEA = "EXTERNAL_IDEA"
    INTERNAL_IDEA = "INTERNAL_IDEA"
    CATEGORIZATION = "CATEGORIZATION"
    IMPLEMENTATION_FEASIBILITY = "IMPLEMENTATION_FEASIBILITY"
    COST_ANALYSIS = "COST_ANALYSIS"
    CUSTOMER_IMPACT = "CUSTOMER_IMPACT"


class ReviewResult(str, PyEnum):
    """Result of a single review stage."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class Decision(str, PyEnum):
    """Evaluator verdict."""

    APPROVE = "APPROVE"
    REJECT = "REJECT"


STAGE_SEQUENCE: tuple[ReviewStage, ...] = tuple(ReviewStage)


# ==================== Pipeline Models ===================== #
class Application(BaseModel):
    """Snapshot of a submitted project application."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: str = ""
    problem_statement: str = ""
    solution: str = ""
    tech_stack: list[str] = Field(default_factory=list)
    team_size: int = Field(default=1, ge=0)
    team_members: list[str] = Field(default_factory=list)
    estimated_cost: Optional[float] = None
    business_model: Optional[str] = None
    category: Optional[str] = None
    status: ApplicationStatus = ApplicationStatus.DRAFT
    rejection_reason: Optional[str] = None
    is_active: bool = True
    owner_name: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    submitted_at: Optional[datetime] = None

    @property
    def tech_stack_text(self) -> str:
        return " ".join(self.tech_stack)


class ReviewRecord(BaseModel):
    """Persisted outcome of one stage run for one application."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    application_id: str
    stage_type: ReviewStage
    result: ReviewResult = ReviewResult.PENDING
    score: Optional[float] = None
    feedback: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None
    processed_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)


class CorpusEntry(BaseModel):
    """A known company used as prior art by the external similarity stage."""

    name: str
    former_names: list[str] = Field(default_factory=list)
    one_liner: str = ""
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    industry: str = ""
    subindustry: Optional[str] = None
    batch: Optional[str] = None
    founded: Optional[int] = None


class StageOutcome(BaseModel):
    """Decision rendered by a stage evaluator."""

    decision: Decision
    score: float = Field(ge=0.0, le=1.0)
    feedback: str
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def approved(self) -> bool:
        return self.decision == Decision.APPROVE

    @property
    def result(self) -> ReviewResult:
        return ReviewResult.APPROVED if self.approved else ReviewResult.REJECTED
