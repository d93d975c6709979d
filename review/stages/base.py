"""Base class for all review stage evaluators."""

import math
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from review.models import (
    Application,
    ApplicationStatus,
    Decision,
    ReviewStage,
    StageOutcome,
)
from review.similarity import clamp
from review.tables import KeywordTables, default_tables


class StageEvaluator(ABC):
    """Scores one aspect of an application and renders a decision.

    Subclasses declare which stage they implement and the application status
    reached when they approve. Evaluators hold no per-application state.
    """

    stage: ReviewStage
    advances_to: ApplicationStatus
    # Whether the orchestrator must supply comparison data
    needs_corpus: bool = False
    needs_peers: bool = False

    def __init__(self, tables: Optional[KeywordTables] = None):
        self.tables = tables or default_tables()

    @abstractmethod
    def evaluate(
        self,
        application: Application,
        comparisons: Optional[Sequence] = None,
    ) -> StageOutcome:
        """Evaluate an application.

        Args:
            application: Application snapshot
            comparisons: Corpus entries or peer applications, for the
                similarity stages

        Returns:
            Stage outcome with decision, score, feedback and metadata
        """

    @staticmethod
    def approve(score: float, feedback: str, metadata: dict) -> StageOutcome:
        return StageOutcome(
            decision=Decision.APPROVE, score=clamp(score), feedback=feedback, metadata=metadata
        )

    @staticmethod
    def reject(score: float, feedback: str, metadata: dict) -> StageOutcome:
        return StageOutcome(
            decision=Decision.REJECT, score=clamp(score), feedback=feedback, metadata=metadata
        )


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def percent(value: float) -> int:
    """Fraction in [0, 1] as a whole percentage."""
    return round_half_up(value * 100)
