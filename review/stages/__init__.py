"""Review stage evaluators, one per pipeline stage."""

from typing import Optional

from review.models import ReviewStage
from review.stages.base import StageEvaluator, percent, round_half_up
from review.stages.categorization import CategorizationEvaluator
from review.stages.cost import CostEvaluator
from review.stages.customer_impact import CustomerImpactEvaluator
from review.stages.external_similarity import ExternalSimilarityEvaluator
from review.stages.implementation import ImplementationEvaluator
from review.stages.internal_similarity import InternalSimilarityEvaluator
from review.tables import KeywordTables

EVALUATOR_CLASSES: tuple[type[StageEvaluator], ...] = (
    ExternalSimilarityEvaluator,
    InternalSimilarityEvaluator,
    CategorizationEvaluator,
    ImplementationEvaluator,
    CostEvaluator,
    CustomerImpactEvaluator,
)


def default_evaluators(
    tables: Optional[KeywordTables] = None,
) -> dict[ReviewStage, StageEvaluator]:
    """One evaluator per stage, sharing the same keyword tables."""
    return {cls.stage: cls(tables) for cls in EVALUATOR_CLASSES}


__all__ = [
    "StageEvaluator",
    "CategorizationEvaluator",
    "CostEvaluator",
    "CustomerImpactEvaluator",
    "ExternalSimilarityEvaluator",
    "ImplementationEvaluator",
    "InternalSimilarityEvaluator",
    "EVALUATOR_CLASSES",
    "default_evaluators",
    "percent",
    "round_half_up",
]
