"""SQLAlchemy-backed record store."""

import logging
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.exceptions import ApplicationNotFound, ReviewRecordNotFound
from database.models.applications import Application as ApplicationRow
from database.models.reviews import AIReview
from review.models import (
    Application,
    ApplicationStatus,
    ReviewRecord,
    ReviewResult,
    ReviewStage,
)
from review.store import RecordStore

logger = logging.getLogger(__name__)

# Application columns the pipeline may write
WRITABLE_FIELDS = frozenset({"status", "category", "rejection_reason"})


def to_review_record(row: AIReview) -> ReviewRecord:
    return ReviewRecord(
        id=row.id,
        application_id=row.application_id,
        stage_type=row.stage_type,
        result=row.result,
        score=row.score,
        feedback=row.feedback,
        metadata=row.review_metadata or {},
        error_message=row.error_message,
        processed_at=row.processed_at,
        created_at=row.created_at,
    )


class SqlRecordStore(RecordStore):
    """Record store over the applications and ai_reviews tables.

    Each operation runs in its own session and commits before returning.
    """

    def __init__(self, session_factory: Optional[async_sessionmaker[AsyncSession]] = None):
        if session_factory is None:
            from database.engine import AsyncSessionLocal

            session_factory = AsyncSessionLocal
        self.session_factory = session_factory

    async def add_application(self, application: Application) -> Application:
        async with self.session_factory() as session:
            row = ApplicationRow(**application.model_dump())
            session.add(row)
            await session.commit()
            await session.refresh(row)
            return Application.model_validate(row)

    async def create_review(self, application_id: str, stage_type: ReviewStage) -> str:
        async with self.session_factory() as session:
            row = AIReview(
                application_id=application_id,
                stage_type=stage_type,
                result=ReviewResult.PENDING,
            )
            session.add(row)
            await session.commit()
            return row.id

    async def update_review(
        self,
        review_id: str,
        *,
        result: ReviewResult,
        score: Optional[float] = None,
        feedback: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
        error_message: Optional[str] = None,
        processed_at: Optional[datetime] = None,
    ) -> ReviewRecord:
        async with self.session_factory() as session:
            row = await session.get(AIReview, review_id)
            if row is None:
                raise ReviewRecordNotFound(review_id)
            row.result = result
            row.score = score
            row.feedback = feedback
            row.review_metadata = dict(metadata or {})
            row.error_message = error_message
            row.processed_at = processed_at
            await session.commit()
            return to_review_record(row)

    async def fail_reviews(
        self,
        application_id: str,
        stage_type: ReviewStage,
        error_message: str,
        processed_at: datetime,
    ) -> int:
        async with self.session_factory() as session:
            result = await session.execute(
                update(AIReview)
                .where(
                    AIReview.application_id == application_id,
                    AIReview.stage_type == stage_type,
                )
                .values(
                    result=ReviewResult.REJECTED,
                    error_message=error_message,
                    processed_at=processed_at,
                )
            )
            await session.commit()
            return result.rowcount

    async def delete_reviews(self, application_id: str, stage_type: ReviewStage) -> int:
        async with self.session_factory() as session:
            result = await session.execute(
                delete(AIReview).where(
                    AIReview.application_id == application_id,
                    AIReview.stage_type == stage_type,
                )
            )
            await session.commit()
            return result.rowcount

    async def list_reviews(self, application_id: str) -> list[ReviewRecord]:
        async with self.session_factory() as session:
            rows = await session.scalars(
                select(AIReview)
                .where(AIReview.application_id == application_id)
                .order_by(AIReview.created_at)
            )
            return [to_review_record(row) for row in rows]

    async def get_application(self, application_id: str) -> Optional[Application]:
        async with self.session_factory() as session:
            row = await session.get(ApplicationRow, application_id)
            return Application.model_validate(row) if row else None

    async def update_application(self, application_id: str, **fields: Any) -> Application:
        unknown = set(fields) - WRITABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update application fields: {sorted(unknown)}")

        async with self.session_factory() as session:
            row = await session.get(ApplicationRow, application_id)
            if row is None:
                raise ApplicationNotFound(application_id)
            for name, value in fields.items():
                setattr(row, name, value)
            await session.commit()
            await session.refresh(row)
            return Application.model_validate(row)

    async def list_active_applications(self, exclude_id: str) -> list[Application]:
        async with self.session_factory() as session:
            rows = await session.scalars(
                select(ApplicationRow).where(
                    ApplicationRow.id != exclude_id,
                    ApplicationRow.is_active.is_(True),
                    ApplicationRow.status != ApplicationStatus.DRAFT,
                )
            )
            return [Application.model_validate(row) for row in rows]
