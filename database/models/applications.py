"""
Application Models

Project applications submitted for automated review. The review pipeline
reads the submission fields and writes status, category and rejection reason.
"""

import uuid
from datetime import datetime
from typing import Any, TYPE_CHECKING

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    String,
    Boolean,
    Integer,
    DateTime,
    func,
    Text,
    JSON,
    Float,
    Enum as SQLEnum,
    Index,
)

from database.engine import Base
from review.models import ApplicationStatus, utcnow

if TYPE_CHECKING:
    from database.models.reviews import AIReview


class Application(Base):
    """Project application going through the review lifecycle."""

    __tablename__ = "applications"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )

    # Submission
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    problem_statement: Mapped[str] = mapped_column(Text, nullable=False, default="")
    solution: Mapped[str] = mapped_column(Text, nullable=False, default="")
    tech_stack: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    team_size: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    team_members: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    estimated_cost: Mapped[float | None] = mapped_column(Float)
    business_model: Mapped[str | None] = mapped_column(Text)
    owner_name: Mapped[str | None] = mapped_column(String(255))

    # Review outcome
    category: Mapped[str | None] = mapped_column(String(100), index=True)
    status: Mapped[ApplicationStatus] = mapped_column(
        SQLEnum(ApplicationStatus, native_enum=False, length=50),
        nullable=False,
        default=ApplicationStatus.DRAFT,
        index=True,
    )
    rejection_reason: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Relationships
    reviews: Mapped[list["AIReview"]] = relationship(
        "AIReview", back_populates="application", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("idx_application_status_active", "status", "is_active"),
    )

    def __repr__(self) -> str:
        return f"<Application(id={self.id}, title={self.title!r}, status={self.status})>"

    def to_dict(self) -> dict[str, Any]:
        return {
            column.name: getattr(self, column.key)
            for column in self.__table__.columns
        }
