"""Tests for the implementation feasibility stage."""

import pytest

from review.models import ApplicationStatus, Decision, ReviewStage
from review.stages import ImplementationEvaluator
from review.stages.implementation import WEIGHTS


@pytest.fixture
def evaluator(tables):
    return ImplementationEvaluator(tables)


@pytest.fixture
def ml_application(application_factory):
    return application_factory(
        description="real-time machine learning distributed system",
        team_size=1,
    )


class TestSubScores:
    """Individual feasibility dimensions."""

    def test_weights_sum_to_one(self):
        assert sum(WEIGHTS.values()) == pytest.approx(1.0)

    def test_simple_stack_scores_high(self, evaluator, basket_weaving):
        assert evaluator.technical_score(basket_weaving) == pytest.approx(1.0)
        assert evaluator.timeframe_score(basket_weaving) == pytest.approx(0.85)
        assert evaluator.resources_score(basket_weaving) == pytest.approx(0.7)

    def test_complex_technologies_penalized(self, evaluator, ml_application):
        assert evaluator.technical_score(ml_application) == pytest.approx(0.1)

    @pytest.mark.parametrize("team_size,tech_stack,expected", [
        (1, [], 0.3),
        (2, [], 0.6),
        (2, ["experienced python"], 0.8),
        (3, [], 0.8),
        (5, [], 1.0),
        (5, ["senior engineers"], 1.0),
    ])
    def test_team_score(self, evaluator, application_factory, team_size, tech_stack, expected):
        application = application_factory(team_size=team_size, tech_stack=tech_stack)
        assert evaluator.team_score(application) == pytest.approx(expected)

    def test_timeframe_floor(self, evaluator, application_factory):
        application = application_factory(
            description="complex advanced comprehensive full-featured enterprise "
                        "scalable robust sophisticated",
        )
        assert evaluator.timeframe_score(application) == 0.2


class TestEvaluate:
    """Weighted decision at 60%."""

    def test_stage_wiring(self, evaluator):
        assert evaluator.stage == ReviewStage.IMPLEMENTATION_FEASIBILITY
        assert evaluator.advances_to == ApplicationStatus.COST_REVIEW

    def test_feasible_application(self, evaluator, basket_weaving):
        outcome = evaluator.evaluate(basket_weaving)
        analysis = outcome.metadata["detailed_analysis"]

        assert outcome.decision == Decision.APPROVE
        assert outcome.score == pytest.approx(0.8525)
        assert outcome.metadata["issues"] == []
        assert outcome.metadata["recommendation"].startswith("Highly feasible")
        assert analysis["technical"]["estimated_difficulty"] == "Low"
        assert analysis["timeframe"]["recommended_timeframe"] == "2-4 weeks"
        assert analysis["resources"]["estimated_resource_needs"] == "Medium"
        assert analysis["team"]["adequacy"] == "Adequate"

    def test_infeasible_application(self, evaluator, ml_application):
        outcome = evaluator.evaluate(ml_application)
        analysis = outcome.metadata["detailed_analysis"]

        assert outcome.decision == Decision.REJECT
        assert outcome.score == pytest.approx(0.42)
        assert outcome.metadata["issues"] == [
            "High technical complexity",
            "Insufficient team size/capability",
        ]
        assert analysis["technical"]["complexity_indicators"] == [
            "real-time", "machine learning", "distributed",
        ]
        assert analysis["team"]["adequacy"] == "May need additional members"
        assert "Implementation feasibility assessment failed" in outcome.feedback
        assert "42%" in outcome.feedback
