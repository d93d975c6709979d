"""Tests for the in-memory record store."""

from datetime import datetime, timezone

import pytest

from core.exceptions import ApplicationNotFound, ReviewRecordNotFound
from review.models import ApplicationStatus, ReviewResult, ReviewStage
from review.store import InMemoryRecordStore


@pytest.fixture
def store(application_factory):
    return InMemoryRecordStore([
        application_factory(id="a"),
        application_factory(id="b"),
        application_factory(id="draft", status=ApplicationStatus.DRAFT),
        application_factory(id="inactive", is_active=False),
    ])


class TestReviews:
    """Review record lifecycle."""

    @pytest.mark.asyncio
    async def test_create_starts_pending(self, store):
        review_id = await store.create_review("a", ReviewStage.CATEGORIZATION)
        records = await store.list_reviews("a")

        assert len(records) == 1
        assert records[0].id == review_id
        assert records[0].result == ReviewResult.PENDING
        assert records[0].metadata == {}

    @pytest.mark.asyncio
    async def test_update(self, store):
        review_id = await store.create_review("a", ReviewStage.COST_ANALYSIS)
        now = datetime.now(timezone.utc)
        record = await store.update_review(
            review_id,
            result=ReviewResult.APPROVED,
            score=0.9,
            feedback="ok",
            metadata={"total_estimated_cost": 10200},
            processed_at=now,
        )

        assert record.result == ReviewResult.APPROVED
        assert record.metadata == {"total_estimated_cost": 10200}
        assert record.processed_at == now

    @pytest.mark.asyncio
    async def test_update_missing_record(self, store):
        with pytest.raises(ReviewRecordNotFound):
            await store.update_review("nope", result=ReviewResult.APPROVED)

    @pytest.mark.asyncio
    async def test_fail_reviews_marks_every_record_of_the_stage(self, store):
        await store.create_review("a", ReviewStage.EXTERNAL_IDEA)
        await store.create_review("a", ReviewStage.EXTERNAL_IDEA)
        await store.create_review("a", ReviewStage.INTERNAL_IDEA)

        count = await store.fail_reviews(
            "a", ReviewStage.EXTERNAL_IDEA, "boom", datetime.now(timezone.utc)
        )
        records = await store.list_reviews("a")

        assert count == 2
        failed = [r for r in records if r.stage_type == ReviewStage.EXTERNAL_IDEA]
        assert all(r.result == ReviewResult.REJECTED and r.error_message == "boom" for r in failed)
        internal = next(r for r in records if r.stage_type == ReviewStage.INTERNAL_IDEA)
        assert internal.result == ReviewResult.PENDING

    @pytest.mark.asyncio
    async def test_delete_only_target_stage_and_application(self, store):
        await store.create_review("a", ReviewStage.CATEGORIZATION)
        await store.create_review("a", ReviewStage.COST_ANALYSIS)
        await store.create_review("b", ReviewStage.CATEGORIZATION)

        assert await store.delete_reviews("a", ReviewStage.CATEGORIZATION) == 1
        assert [r.stage_type for r in await store.list_reviews("a")] == [ReviewStage.COST_ANALYSIS]
        assert len(await store.list_reviews("b")) == 1

    @pytest.mark.asyncio
    async def test_list_oldest_first(self, store):
        for stage in (ReviewStage.EXTERNAL_IDEA, ReviewStage.INTERNAL_IDEA, ReviewStage.CATEGORIZATION):
            await store.create_review("a", stage)
        records = await store.list_reviews("a")
        assert [r.stage_type for r in records] == [
            ReviewStage.EXTERNAL_IDEA,
            ReviewStage.INTERNAL_IDEA,
            ReviewStage.CATEGORIZATION,
        ]


class TestApplications:
    """Application reads and writes."""

    @pytest.mark.asyncio
    async def test_get_missing(self, store):
        assert await store.get_application("missing") is None

    @pytest.mark.asyncio
    async def test_update_application(self, store):
        updated = await store.update_application(
            "a", status=ApplicationStatus.CATEGORIZATION, category="Education"
        )
        reloaded = await store.get_application("a")

        assert updated.status == ApplicationStatus.CATEGORIZATION
        assert reloaded.category == "Education"
        assert reloaded.updated_at >= reloaded.created_at

    @pytest.mark.asyncio
    async def test_update_missing_application(self, store):
        with pytest.raises(ApplicationNotFound):
            await store.update_application("missing", status=ApplicationStatus.REJECTED)

    @pytest.mark.asyncio
    async def test_returned_snapshots_are_copies(self, store):
        application = await store.get_application("a")
        application.tech_stack.append("mutated")
        assert (await store.get_application("a")).tech_stack == []

    @pytest.mark.asyncio
    async def test_list_active_excludes_self_drafts_and_inactive(self, store):
        peers = await store.list_active_applications(exclude_id="a")
        assert [peer.id for peer in peers] == ["b"]
