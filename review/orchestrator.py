"""
Review pipeline orchestrator.

Runs the six review stages in order against one application, persisting a
review record per stage and moving the application through its status
lifecycle:

    SUBMITTED -> EXTERNAL_IDEA_REVIEW -> INTERNAL_IDEA_REVIEW -> CATEGORIZATION
    -> IMPLEMENTATION_REVIEW -> COST_REVIEW -> IMPACT_REVIEW -> UNDER_REVIEW

Any rejecting stage moves the application to REJECTED and ends the run.

Usage:
    pipeline = ReviewPipeline(store=store, corpus=StaticCorpusProvider())
    summary = await pipeline.run(application_id)
"""

import logging
from typing import Any, Optional, Sequence

from core.exceptions import ApplicationNotFound, EvaluatorFailure, UnknownStage
from core.middleware.error_handling import sanitize_error_message
from review.corpus import CorpusProvider
from review.events import EventSink, EventType, LoggingEventSink, PipelineEvent
from review.judge import RemoteJudge
from review.models import (
    Application,
    ApplicationStatus,
    ReviewRecord,
    ReviewResult,
    ReviewStage,
    STAGE_SEQUENCE,
    StageOutcome,
    utcnow,
)
from review.stages import StageEvaluator, default_evaluators, round_half_up
from review.store import RecordStore
from review.tables import KeywordTables

logger = logging.getLogger(__name__)

# Stages after which a rejection ends the run
STOP_ON_REJECTION = frozenset({
    ReviewStage.EXTERNAL_IDEA,
    ReviewStage.INTERNAL_IDEA,
    ReviewStage.IMPLEMENTATION_FEASIBILITY,
    ReviewStage.COST_ANALYSIS,
})

RETRY_STATUS = {
    ReviewStage.EXTERNAL_IDEA: ApplicationStatus.EXTERNAL_IDEA_REVIEW,
    ReviewStage.INTERNAL_IDEA: ApplicationStatus.INTERNAL_IDEA_REVIEW,
    ReviewStage.CATEGORIZATION: ApplicationStatus.CATEGORIZATION,
    ReviewStage.IMPLEMENTATION_FEASIBILITY: ApplicationStatus.IMPLEMENTATION_REVIEW,
    ReviewStage.COST_ANALYSIS: ApplicationStatus.COST_REVIEW,
    ReviewStage.CUSTOMER_IMPACT: ApplicationStatus.IMPACT_REVIEW,
}

# ==================== Applicant feedback ===================== #
PRIMARY_REASONS = {
    ReviewStage.EXTERNAL_IDEA: "Similar Idea Already Exists",
    ReviewStage.INTERNAL_IDEA: "Duplicate Submission Detected",
    ReviewStage.CATEGORIZATION: "Unable to Categorize Application",
    ReviewStage.IMPLEMENTATION_FEASIBILITY: "Implementation Not Feasible",
    ReviewStage.COST_ANALYSIS: "Budget Insufficient",
    ReviewStage.CUSTOMER_IMPACT: "Low Market Impact Potential",
}
DEFAULT_PRIMARY_REASON = "Application Review Failed"

COMMON_NEXT_STEPS = [
    "Review the detailed feedback provided",
    "Consider the suggestions for improvement",
    "Make significant changes to address the concerns",
    "Resubmit your application when ready",
]
STAGE_NEXT_STEPS = {
    ReviewStage.EXTERNAL_IDEA: [
        "Research existing solutions more thoroughly",
        "Identify unique differentiators for your approach",
        "Consider targeting a different market segment",
        "Focus on specific features that competitors lack",
    ],
    ReviewStage.INTERNAL_IDEA: [
        "Check if you submitted a similar application before",
        "Collaborate with the existing team if appropriate",
        "Focus on a completely different problem or solution",
    ],
    ReviewStage.IMPLEMENTATION_FEASIBILITY: [
        "Simplify your technical approach",
        "Consider using more mature technologies",
        "Strengthen your team with additional expertise",
        "Break down the project into smaller phases",
    ],
    ReviewStage.COST_ANALYSIS: [
        "Reduce the scope to fit within budget",
        "Find additional funding sources",
        "Use more cost-effective technologies",
        "Consider open-source alternatives",
    ],
    ReviewStage.CUSTOMER_IMPACT: [
        "Better quantify the problem you're solving",
        "Provide more evidence of market demand",
        "Focus on a specific target audience",
        "Highlight the unique value proposition",
    ],
}

COMMON_GUIDELINES = [
    "Wait at least 24 hours before resubmitting",
    "Address all points mentioned in the feedback",
    "Provide clear explanations of what you changed",
    "Include additional evidence or research if requested",
]
STAGE_GUIDELINES = {
    ReviewStage.EXTERNAL_IDEA: [
        "Demonstrate clear differentiation from existing solutions",
        "Provide market research showing demand for your unique approach",
    ],
    ReviewStage.IMPLEMENTATION_FEASIBILITY: [
        "Include a more detailed technical plan",
        "Show evidence of team capability improvements",
    ],
    ReviewStage.COST_ANALYSIS: [
        "Provide a revised, more realistic budget breakdown",
        "Show additional funding sources if budget increased",
    ],
}


class ReviewPipeline:
    """Runs and reports on the automated review of applications.

    Stages run strictly one after another. The store and corpus provider
    are the only shared state, so several pipelines may serve different
    applications concurrently.
    """

    def __init__(
        self,
        store: RecordStore,
        corpus: CorpusProvider,
        events: Optional[EventSink] = None,
        evaluators: Optional[dict[ReviewStage, StageEvaluator]] = None,
        judge: Optional[RemoteJudge] = None,
        tables: Optional[KeywordTables] = None,
    ):
        self.store = store
        self.corpus = corpus
        self.events = events or LoggingEventSink()
        self.evaluators = evaluators or default_evaluators(tables)
        self.judge = judge

        missing = set(STAGE_SEQUENCE) - set(self.evaluators)
        if missing:
            raise ValueError(f"No evaluator for stages: {sorted(s.value for s in missing)}")

    # ==================== Running ===================== #
    async def run(self, application_id: str) -> dict[str, Any]:
        """Run every review stage for a submitted application.

        Args:
            application_id: Application to review

        Returns:
            Summary with outcome PASSED, REJECTED or SKIPPED

        Raises:
            ApplicationNotFound: If the application does not exist
        """
        application = await self._load(application_id)
        log_extra = {"application_id": application_id}

        if application.status != ApplicationStatus.SUBMITTED:
            logger.warning(
                f"Application {application_id} is not in SUBMITTED status. "
                f"Current status: {application.status.value}",
                extra=log_extra,
            )
            return self._summary(application, "SKIPPED", [])

        logger.info(f"Starting review pipeline for application {application_id}", extra=log_extra)
        stages_run: list[ReviewStage] = []
        try:
            application = await self.store.update_application(
                application_id, status=ApplicationStatus.EXTERNAL_IDEA_REVIEW
            )
            for stage in STAGE_SEQUENCE:
                await self.run_stage(application, stage)
                stages_run.append(stage)
                application = await self._load(application_id)
                if stage in STOP_ON_REJECTION and application.status == ApplicationStatus.REJECTED:
                    logger.info(
                        f"Application {application_id} rejected in {stage.value} review",
                        extra={**log_extra, "stage": stage.value},
                    )
                    break
        except Exception as e:
            logger.error(
                f"Error in review pipeline for application {application_id}: {e}",
                exc_info=True,
                extra=log_extra,
            )
            application = await self.store.update_application(
                application_id,
                status=ApplicationStatus.REJECTED,
                rejection_reason=f"AI review system error: {sanitize_error_message(str(e))}",
            )

        outcome = "PASSED" if application.status == ApplicationStatus.UNDER_REVIEW else "REJECTED"
        logger.info(
            f"AI review completed for application {application_id}: {outcome}",
            extra={**log_extra, "event": EventType.PIPELINE_COMPLETED.value},
        )
        await self._publish(PipelineEvent(
            event_type=EventType.PIPELINE_COMPLETED,
            application_id=application_id,
            status=application.status,
        ))
        return self._summary(application, outcome, stages_run)

    async def retry_stage(self, application_id: str, stage_type: str) -> dict[str, Any]:
        """Re-run a single stage from scratch.

        Deletes the stage's records, resets the application status to the
        stage's entry status and runs only that stage. Later stages are not
        resumed.

        Raises:
            UnknownStage: If stage_type is not a review stage
            ApplicationNotFound: If the application does not exist
        """
        try:
            stage = ReviewStage(stage_type)
        except ValueError:
            raise UnknownStage(str(stage_type)) from None

        await self._load(application_id)
        log_extra = {"application_id": application_id, "stage": stage.value}
        logger.info(
            f"Retrying {stage.value} review for application {application_id}", extra=log_extra
        )

        deleted = await self.store.delete_reviews(application_id, stage)
        logger.debug(f"Deleted {deleted} {stage.value} review records", extra=log_extra)

        application = await self.store.update_application(
            application_id,
            status=RETRY_STATUS[stage],
            rejection_reason=None,
        )
        outcome = await self.run_stage(application, stage)
        application = await self._load(application_id)

        return {
            "application_id": application_id,
            "stage": stage.value,
            "result": (outcome.result if outcome else ReviewResult.REJECTED).value,
            "status": application.status.value,
        }

    async def run_stage(
        self,
        application: Application,
        stage: ReviewStage,
    ) -> Optional[StageOutcome]:
        """Evaluate one stage and apply its outcome.

        A failing stage marks its records REJECTED with an error message and
        leaves the application status alone.

        Returns:
            The stage outcome, or None if the stage failed
        """
        evaluator = self.evaluators[stage]
        log_extra = {"application_id": application.id, "stage": stage.value}
        logger.info(f"Running {stage.value} review", extra=log_extra)
        await self._publish(PipelineEvent(
            event_type=EventType.STAGE_STARTED,
            application_id=application.id,
            stage=stage,
            result=ReviewResult.PENDING,
            status=application.status,
        ))

        try:
            review_id = await self.store.create_review(application.id, stage)
            comparisons = await self._comparisons(evaluator, application)
            outcome = await self._evaluate(evaluator, application, comparisons)
            await self.store.update_review(
                review_id,
                result=outcome.result,
                score=outcome.score,
                feedback=outcome.feedback,
                metadata=outcome.metadata,
                processed_at=utcnow(),
            )
            application = await self.store.update_application(
                application.id, **self._status_update(evaluator, outcome)
            )
        except Exception as e:
            message = sanitize_error_message(str(e))
            logger.error(
                f"{stage.value} review failed for application {application.id}: {message}",
                exc_info=True,
                extra=log_extra,
            )
            await self.store.fail_reviews(application.id, stage, message, utcnow())
            await self._publish(PipelineEvent(
                event_type=EventType.STAGE_FAILED,
                application_id=application.id,
                stage=stage,
                result=ReviewResult.REJECTED,
                status=application.status,
            ))
            return None

        logger.info(
            f"{stage.value} review {outcome.result.value} (score {outcome.score:.2f})",
            extra=log_extra,
        )
        await self._publish(PipelineEvent(
            event_type=EventType.STAGE_COMPLETED,
            application_id=application.id,
            stage=stage,
            result=outcome.result,
            score=outcome.score,
            status=application.status,
        ))
        return outcome

    async def _comparisons(
        self,
        evaluator: StageEvaluator,
        application: Application,
    ) -> Optional[Sequence]:
        if evaluator.needs_corpus:
            return await self.corpus.fetch_corpus(exhaustive=True)
        if evaluator.needs_peers:
            return await self.store.list_active_applications(exclude_id=application.id)
        return None

    async def _evaluate(
        self,
        evaluator: StageEvaluator,
        application: Application,
        comparisons: Optional[Sequence],
    ) -> StageOutcome:
        if self.judge is not None and evaluator.stage == self.judge.stage:
            return await self.judge.evaluate(application, comparisons or [])
        try:
            return evaluator.evaluate(application, comparisons)
        except Exception as e:
            raise EvaluatorFailure(f"{evaluator.stage.value} evaluator failed: {e}") from e

    @staticmethod
    def _status_update(evaluator: StageEvaluator, outcome: StageOutcome) -> dict[str, Any]:
        if not outcome.approved:
            return {"status": ApplicationStatus.REJECTED, "rejection_reason": outcome.feedback}
        fields: dict[str, Any] = {"status": evaluator.advances_to}
        if evaluator.stage == ReviewStage.CATEGORIZATION:
            fields["category"] = outcome.metadata.get("suggested_category")
        return fields

    async def _publish(self, event: PipelineEvent) -> None:
        try:
            await self.events.publish(event)
        except Exception as e:
            logger.warning(
                f"Failed to publish {event.event_type.value} event: {e}",
                extra={"application_id": event.application_id},
            )

    async def _load(self, application_id: str) -> Application:
        application = await self.store.get_application(application_id)
        if application is None:
            raise ApplicationNotFound(application_id)
        return application

    @staticmethod
    def _summary(
        application: Application,
        outcome: str,
        stages_run: list[ReviewStage],
    ) -> dict[str, Any]:
        return {
            "application_id": application.id,
            "outcome": outcome,
            "final_status": application.status.value,
            "stages_run": [stage.value for stage in stages_run],
        }

    # ==================== Reporting ===================== #
    async def get_status(self, application_id: str) -> dict[str, Any]:
        """Per-stage progress of an application's review."""
        application = await self._load(application_id)
        records = await self.store.list_reviews(application_id)

        reviews = []
        for stage in STAGE_SEQUENCE:
            record = next((r for r in records if r.stage_type == stage), None)
            reviews.append({
                "type": stage.value,
                "result": record.result.value if record else ReviewResult.PENDING.value,
                "feedback": record.feedback if record else None,
                "score": record.score if record else None,
                "processed_at": record.processed_at if record else None,
                "error": record.error_message if record else None,
            })

        completed = sum(1 for review in reviews if review["result"] != ReviewResult.PENDING.value)
        return {
            "application_id": application_id,
            "current_status": application.status.value,
            "progress_percentage": round_half_up(completed / len(STAGE_SEQUENCE) * 100),
            "reviews": reviews,
            "category": application.category,
            "rejection_reason": application.rejection_reason,
            "last_updated": application.updated_at,
        }

    async def get_detailed_report(self, application_id: str) -> dict[str, Any]:
        """Application fields, every stage's full result and a summary."""
        application = await self._load(application_id)
        records = await self.store.list_reviews(application_id)

        review_results = {
            record.stage_type.value: {
                "result": record.result.value,
                "feedback": record.feedback,
                "score": record.score,
                "metadata": record.metadata,
                "processed_at": record.processed_at,
                "error": record.error_message,
            }
            for record in records
        }

        total = len(records)
        average = sum(record.score or 0.0 for record in records) / total if total else 0.0
        return {
            "application": application.model_dump(
                include={
                    "id", "title", "description", "problem_statement", "solution",
                    "tech_stack", "team_size", "team_members", "estimated_cost",
                    "business_model", "category", "status", "submitted_at", "owner_name",
                },
                mode="json",
            ),
            "review_results": review_results,
            "summary": {
                "total_reviews": total,
                "passed_reviews": sum(1 for r in records if r.result == ReviewResult.APPROVED),
                "failed_reviews": sum(1 for r in records if r.result == ReviewResult.REJECTED),
                "average_score": average,
                "final_status": application.status.value,
                "rejection_reason": application.rejection_reason,
            },
        }

    async def get_applicant_feedback(self, application_id: str) -> dict[str, Any]:
        """Applicant-facing explanation of the review outcome."""
        application = await self._load(application_id)
        records = await self.store.list_reviews(application_id)

        rejected: Optional[ReviewRecord] = next(
            (r for r in reversed(records) if r.result == ReviewResult.REJECTED), None
        )
        if rejected is None:
            return {
                "status": "SUCCESS",
                "message": "Your application has passed all AI review stages!",
                "current_stage": application.status.value,
                "is_rejected": False,
            }

        stage = rejected.stage_type
        metadata = rejected.metadata or {}
        return {
            "status": "REJECTED",
            "is_rejected": True,
            "rejection_stage": stage.value,
            "primary_reason": PRIMARY_REASONS.get(stage, DEFAULT_PRIMARY_REASON),
            "feedback": rejected.feedback or rejected.error_message,
            "score": rejected.score,
            "reviewed_at": rejected.processed_at,
            "details": {
                "similarity_score": metadata.get("similarity_score"),
                "suggestions": metadata.get("suggestions", []),
                "rejection_reason": metadata.get("rejection_reason"),
            },
            "next_steps": COMMON_NEXT_STEPS + STAGE_NEXT_STEPS.get(stage, []),
            "can_resubmit": True,
            "resubmission_guidelines": COMMON_GUIDELINES + STAGE_GUIDELINES.get(stage, []),
        }
