"""
AI Review Models

One row per review stage run. Rows are created PENDING when a stage starts
and moved to APPROVED or REJECTED by the same run; a retry deletes and
recreates them.
"""

import uuid
from datetime import datetime
from typing import Any, TYPE_CHECKING

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    String,
    ForeignKey,
    DateTime,
    func,
    Text,
    JSON,
    Float,
    Enum as SQLEnum,
    Index,
)

from database.engine import Base
from review.models import ReviewResult, ReviewStage, utcnow

if TYPE_CHECKING:
    from database.models.applications import Application


class AIReview(Base):
    """Outcome of one review stage for one application."""

    __tablename__ = "ai_reviews"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    application_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    stage_type: Mapped[ReviewStage] = mapped_column(
        "type",
        SQLEnum(ReviewStage, native_enum=False, length=50),
        nullable=False,
    )
    result: Mapped[ReviewResult] = mapped_column(
        SQLEnum(ReviewResult, native_enum=False, length=20),
        nullable=False,
        default=ReviewResult.PENDING,
    )
    score: Mapped[float | None] = mapped_column(Float)  # 0.0 to 1.0
    feedback: Mapped[str | None] = mapped_column(Text)
    # "metadata" is reserved on declarative classes
    review_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSON, nullable=False, default=dict
    )
    error_message: Mapped[str | None] = mapped_column(Text)
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    application: Mapped["Application"] = relationship(
        "Application", back_populates="reviews"
    )

    __table_args__ = (
        Index("idx_ai_review_application_type", "application_id", "type"),
        Index("idx_ai_review_result", "result"),
    )

    def __repr__(self) -> str:
        return f"<AIReview(id={self.id}, type={self.stage_type}, result={self.result})>"
