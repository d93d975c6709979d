"""Tests for the customer impact stage."""

import pytest

from review.models import ApplicationStatus, Decision, ReviewStage
from review.stages import CustomerImpactEvaluator
from review.stages.customer_impact import WEIGHTS


@pytest.fixture
def evaluator(tables):
    return CustomerImpactEvaluator(tables)


class TestSubScores:
    """Impact dimensions."""

    def test_weights_sum_to_one(self):
        assert sum(WEIGHTS.values()) == pytest.approx(1.0)

    def test_quantified_problem_raises_severity(self, evaluator, application_factory):
        application = application_factory(problem_statement="Teams waste 5 hours a week")
        # waste (+0.08) and a quantified figure (+0.2)
        assert evaluator.severity_score(application) == pytest.approx(0.78)

    def test_severity_capped(self, evaluator, application_factory):
        application = application_factory(
            problem_statement="A critical, urgent, major and serious pain point costing 40%",
        )
        assert evaluator.severity_score(application) == 1.0

    def test_niche_market_floor(self, evaluator, application_factory):
        application = application_factory(
            description="A niche tool only for a specific certain group",
        )
        assert evaluator.market_score(application) == 0.2

    def test_viability_counts_budget(self, evaluator, application_factory):
        with_budget = application_factory(estimated_cost=500)
        without_budget = application_factory(estimated_cost=None)
        assert evaluator.viability_score(with_budget) == pytest.approx(0.6)
        assert evaluator.viability_score(without_budget) == pytest.approx(0.5)


class TestEvaluate:
    """Weighted decision at 60%."""

    def test_stage_wiring(self, evaluator):
        assert evaluator.stage == ReviewStage.CUSTOMER_IMPACT
        assert evaluator.advances_to == ApplicationStatus.UNDER_REVIEW

    def test_good_impact(self, evaluator, basket_weaving):
        outcome = evaluator.evaluate(basket_weaving)
        metadata = outcome.metadata
        ux = metadata["detailed_analysis"]["ux"]

        assert outcome.decision == Decision.APPROVE
        assert outcome.score == pytest.approx(0.69)
        assert metadata["solution_novelty"] == pytest.approx(0.8)
        assert metadata["user_experience"] == pytest.approx(0.9)
        assert "Innovative solution approach" in metadata["strengths"]
        assert metadata["concerns"] == []
        assert metadata["recommendation"].startswith("Good customer impact potential")
        assert ux["ux_elements"] == ["simple", "intuitive"]
        assert ux["design_mentions"] == ["ui"]
        assert metadata["detailed_analysis"]["novelty"]["innovation_elements"] == ["new"]

    def test_low_impact_rejected(self, evaluator, application_factory):
        application = application_factory(
            description="A niche tool only for a specific certain group",
            solution="A complex, technical copy of existing tools.",
            estimated_cost=None,
        )
        outcome = evaluator.evaluate(application)

        assert outcome.decision == Decision.REJECT
        assert outcome.score == pytest.approx(0.37)
        assert outcome.metadata["concerns"] == [
            "Limited market size",
            "Solution lacks novelty",
            "Poor user experience design",
        ]
        assert "Customer impact assessment failed" in outcome.feedback

    def test_quantified_elements_reported(self, evaluator, application_factory):
        application = application_factory(problem_statement="Clinics lose 30% of bookings")
        problem = evaluator.detailed_analysis(application)["problem"]
        assert "30%" in problem["quantified_elements"]
