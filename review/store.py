"""
Record store interface and the in-memory implementation.

The pipeline reads applications and writes review records only through a
RecordStore. database.store.SqlRecordStore is the persistent implementation.
"""

import asyncio
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional

from core.exceptions import ApplicationNotFound, ReviewRecordNotFound
from review.models import (
    Application,
    ApplicationStatus,
    ReviewRecord,
    ReviewResult,
    ReviewStage,
    utcnow,
)


class RecordStore(ABC):
    """Persistence operations used by the review pipeline."""

    @abstractmethod
    async def create_review(self, application_id: str, stage_type: ReviewStage) -> str:
        """Create a PENDING review record and return its id."""

    @abstractmethod
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
        """Move a review record to a terminal result."""

    @abstractmethod
    async def fail_reviews(
        self,
        application_id: str,
        stage_type: ReviewStage,
        error_message: str,
        processed_at: datetime,
    ) -> int:
        """Mark every record of one stage REJECTED with an error. Returns the count."""

    @abstractmethod
    async def delete_reviews(self, application_id: str, stage_type: ReviewStage) -> int:
        """Delete every record of one stage. Returns the count."""

    @abstractmethod
    async def list_reviews(self, application_id: str) -> list[ReviewRecord]:
        """All records of an application, oldest first."""

    @abstractmethod
    async def get_application(self, application_id: str) -> Optional[Application]:
        """Load an application, or None if it does not exist."""

    @abstractmethod
    async def update_application(self, application_id: str, **fields: Any) -> Application:
        """Update application fields (status, category, rejection_reason)."""

    @abstractmethod
    async def list_active_applications(self, exclude_id: str) -> list[Application]:
        """Active, non-draft applications other than exclude_id."""


class InMemoryRecordStore(RecordStore):
    """Dictionary-backed store for tests and single-process runs."""

    def __init__(self, applications: Optional[list[Application]] = None):
        self._lock = asyncio.Lock()
        self._applications: dict[str, Application] = {}
        self._reviews: dict[str, ReviewRecord] = {}
        for application in applications or []:
            self._applications[application.id] = application.model_copy(deep=True)

    async def add_application(self, application: Application) -> Application:
        async with self._lock:
            self._applications[application.id] = application.model_copy(deep=True)
            return application

    async def create_review(self, application_id: str, stage_type: ReviewStage) -> str:
        async with self._lock:
            review_id = str(uuid.uuid4())
            self._reviews[review_id] = ReviewRecord(
                id=review_id,
                application_id=application_id,
                stage_type=stage_type,
            )
            return review_id

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
        async with self._lock:
            record = self._reviews.get(review_id)
            if record is None:
                raise ReviewRecordNotFound(review_id)
            updated = record.model_copy(update={
                "result": result,
                "score": score,
                "feedback": feedback,
                "metadata": dict(metadata or {}),
                "error_message": error_message,
                "processed_at": processed_at,
            })
            self._reviews[review_id] = updated
            return updated.model_copy(deep=True)

    async def fail_reviews(
        self,
        application_id: str,
        stage_type: ReviewStage,
        error_message: str,
        processed_at: datetime,
    ) -> int:
        async with self._lock:
            count = 0
            for review_id, record in self._reviews.items():
                if record.application_id == application_id and record.stage_type == stage_type:
                    self._reviews[review_id] = record.model_copy(update={
                        "result": ReviewResult.REJECTED,
                        "error_message": error_message,
                        "processed_at": processed_at,
                    })
                    count += 1
            return count

    async def delete_reviews(self, application_id: str, stage_type: ReviewStage) -> int:
        async with self._lock:
            doomed = [
                review_id for review_id, record in self._reviews.items()
                if record.application_id == application_id and record.stage_type == stage_type
            ]
            for review_id in doomed:
                del self._reviews[review_id]
            return len(doomed)

    async def list_reviews(self, application_id: str) -> list[ReviewRecord]:
        async with self._lock:
            records = [
                record.model_copy(deep=True) for record in self._reviews.values()
                if record.application_id == application_id
            ]
        # dict order breaks created_at ties
        return sorted(records, key=lambda record: record.created_at)

    async def get_application(self, application_id: str) -> Optional[Application]:
        async with self._lock:
            application = self._applications.get(application_id)
            return application.model_copy(deep=True) if application else None

    async def update_application(self, application_id: str, **fields: Any) -> Application:
        async with self._lock:
            application = self._applications.get(application_id)
            if application is None:
                raise ApplicationNotFound(application_id)
            updated = application.model_copy(update={**fields, "updated_at": utcnow()})
            self._applications[application_id] = updated
            return updated.model_copy(deep=True)

    async def list_active_applications(self, exclude_id: str) -> list[Application]:
        async with self._lock:
            return [
                application.model_copy(deep=True)
                for application in self._applications.values()
                if application.id != exclude_id
                and application.is_active
                and application.status != ApplicationStatus.DRAFT
            ]
