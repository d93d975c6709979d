"""Tests for the categorization stage."""

import pytest

from review.models import ApplicationStatus, Decision, ReviewStage
from review.stages import CategorizationEvaluator


@pytest.fixture
def evaluator(tables):
    return CategorizationEvaluator(tables)


class TestCategorize:
    """Whole-word keyword voting."""

    def test_stage_wiring(self, evaluator):
        assert evaluator.stage == ReviewStage.CATEGORIZATION
        assert evaluator.advances_to == ApplicationStatus.IMPLEMENTATION_REVIEW

    def test_education(self, evaluator, basket_weaving):
        assert evaluator.categorize(basket_weaving) == "Education"

    def test_healthcare(self, evaluator, application_factory):
        application = application_factory(
            title="Clinic queue",
            description="Patients wait too long to see a doctor for medical advice.",
        )
        assert evaluator.categorize(application) == "Healthcare"

    def test_first_category_wins_ties(self, evaluator, application_factory):
        # "payment" votes for both E-Commerce and Finance
        application = application_factory(title="Payment", description="")
        assert evaluator.categorize(application) == "E-Commerce"

    def test_whole_words_only(self, evaluator, application_factory):
        # "shopping" and "carton" must not count as "shop" and "car"
        application = application_factory(title="Shopping carton", description="")
        assert evaluator.categorize(application) == "Other"

    def test_no_keywords_defaults_to_other(self, evaluator, application_factory):
        application = application_factory(title="Zzz", description="Nothing relevant here.")
        assert evaluator.categorize(application) == "Other"


class TestConfidence:
    """Keyword density confidence with a title bonus."""

    def test_empty_text_defaults(self, evaluator, application_factory):
        application = application_factory(title="", description="")
        assert evaluator.confidence(application, "Other") == 0.5

    def test_title_bonus_and_cap(self, evaluator, application_factory):
        application = application_factory(title="Learn", description="teach course")
        assert evaluator.confidence(application, "Education") == 1.0

    def test_unknown_category_has_no_matches(self, evaluator, application_factory):
        application = application_factory(title="Zzz", description="Nothing relevant here.")
        assert evaluator.confidence(application, "Other") == 0.0


class TestEvaluate:
    """The stage never rejects."""

    def test_always_approves(self, evaluator, application_factory):
        outcome = evaluator.evaluate(application_factory(title="Zzz", description="Nothing."))
        assert outcome.decision == Decision.APPROVE
        assert outcome.metadata["suggested_category"] == "Other"

    def test_metadata(self, evaluator, basket_weaving):
        outcome = evaluator.evaluate(basket_weaving)
        details = outcome.metadata["analysis_details"]

        assert outcome.approved
        assert outcome.metadata["suggested_category"] == "Education"
        assert outcome.score == outcome.metadata["confidence"]
        assert "learn" in details["detected_keywords"]
        assert details["total_keywords_checked"] == 8
        assert details["strong_indicators"] == []
        assert 'categorized as "Education"' in outcome.feedback
