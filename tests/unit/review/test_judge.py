"""Tests for the remote similarity judge and its fallback."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from core.exceptions import RemoteJudgeError
from review.corpus import DEFAULT_CORPUS_PATH, StaticCorpusProvider
from review.judge import RemoteJudge, SimilarityVerdict
from review.models import Decision, ReviewStage
from review.stages import ExternalSimilarityEvaluator


@pytest.fixture
def entries():
    return StaticCorpusProvider.load(DEFAULT_CORPUS_PATH)


@pytest.fixture
def fallback(tables):
    return ExternalSimilarityEvaluator(tables)


def make_judge(fallback, agent=None, api_key="test-key", timeout=1.0):
    return RemoteJudge(fallback=fallback, agent=agent, timeout=timeout, api_key=api_key)


def agent_returning(payload):
    agent = MagicMock()
    agent.process = AsyncMock(return_value=payload)
    return agent


REJECT_VERDICT = {
    "is_similar": True,
    "similarity_score": 0.9,
    "most_similar_entry": {"name": "Stripe", "reason": "Same payments API"},
    "recommendation": "REJECT",
    "feedback": "This is Stripe.",
    "suggestions": ["Pick a niche"],
}


class TestSimilarityVerdict:
    """Parsing the agent answer."""

    def test_camel_case_keys(self):
        verdict = SimilarityVerdict.model_validate({
            "isSimilar": False,
            "similarityScore": 0.2,
            "mostSimilarCompany": {"name": "Airbnb", "reason": "Rentals"},
            "recommendation": "APPROVE",
            "feedback": "Different enough.",
        })
        assert verdict.similarity_score == 0.2
        assert verdict.most_similar_entry.name == "Airbnb"
        assert verdict.suggestions == []

    def test_score_out_of_range(self):
        with pytest.raises(ValueError):
            SimilarityVerdict.model_validate({**REJECT_VERDICT, "similarity_score": 1.5})


class TestRemoteJudge:
    """Verdict mapping and fallback reasons."""

    def test_stage(self, fallback):
        assert make_judge(fallback).stage == ReviewStage.EXTERNAL_IDEA

    @pytest.mark.asyncio
    async def test_reject_verdict(self, fallback, entries, basket_weaving):
        judge = make_judge(fallback, agent_returning(REJECT_VERDICT))
        outcome = await judge.evaluate(basket_weaving, entries)

        assert outcome.decision == Decision.REJECT
        assert outcome.score == 0.9
        assert outcome.feedback == "This is Stripe."
        assert outcome.metadata["match_type"] == "remote_judge"
        assert outcome.metadata["most_similar_entry"] == {
            "name": "Stripe", "reason": "Same payments API",
        }
        assert outcome.metadata["suggestions"] == ["Pick a niche"]
        assert outcome.metadata["corpus_size"] == len(entries)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("recommendation", ["APPROVE", "NEEDS_DIFFERENTIATION"])
    async def test_non_reject_verdict_approves(self, fallback, entries, basket_weaving, recommendation):
        payload = {**REJECT_VERDICT, "similarity_score": 0.25, "recommendation": recommendation}
        judge = make_judge(fallback, agent_returning(payload))
        outcome = await judge.evaluate(basket_weaving, entries)

        assert outcome.decision == Decision.APPROVE
        assert outcome.score == pytest.approx(0.75)

    @pytest.mark.asyncio
    async def test_sends_application_and_corpus(self, fallback, entries, basket_weaving):
        agent = agent_returning(REJECT_VERDICT)
        await make_judge(fallback, agent).evaluate(basket_weaving, entries)

        payload = agent.process.await_args.args[0]
        assert payload["application"]["title"] == basket_weaving.title
        assert len(payload["corpus"]) == len(entries)

    @pytest.mark.asyncio
    async def test_missing_api_key(self, fallback, entries, basket_weaving):
        agent = agent_returning(REJECT_VERDICT)
        judge = make_judge(fallback, agent, api_key="")
        outcome = await judge.evaluate(basket_weaving, entries)

        agent.process.assert_not_called()
        assert outcome.metadata["judge_fallback_reason"] == "missing_api_key"
        assert outcome.metadata["match_type"] == "business_concept"

    @pytest.mark.asyncio
    async def test_timeout(self, fallback, entries, basket_weaving):
        async def slow(_):
            await asyncio.sleep(1)
            return REJECT_VERDICT

        agent = MagicMock()
        agent.process = slow
        outcome = await make_judge(fallback, agent, timeout=0.01).evaluate(basket_weaving, entries)

        assert outcome.metadata["judge_fallback_reason"] == "timeout"
        assert outcome.approved

    @pytest.mark.asyncio
    @pytest.mark.parametrize("failure,reason", [
        (RemoteJudgeError("no JSON"), "unparsable_response"),
        (ConnectionError("network down"), "transport_error"),
    ])
    async def test_agent_failures(self, fallback, entries, basket_weaving, failure, reason):
        agent = MagicMock()
        agent.process = AsyncMock(side_effect=failure)
        outcome = await make_judge(fallback, agent).evaluate(basket_weaving, entries)

        assert outcome.metadata["judge_fallback_reason"] == reason

    @pytest.mark.asyncio
    async def test_invalid_verdict(self, fallback, entries, basket_weaving):
        agent = agent_returning({"is_similar": True, "recommendation": "MAYBE"})
        outcome = await make_judge(fallback, agent).evaluate(basket_weaving, entries)

        assert outcome.metadata["judge_fallback_reason"] == "invalid_response"

    @pytest.mark.asyncio
    async def test_fallback_matches_deterministic_result(self, fallback, entries, application_factory):
        application = application_factory(
            title="CircuitHub",
            description="On-Demand Electronics Manufacturing",
        )
        outcome = await make_judge(fallback, api_key="").evaluate(application, entries)
        expected = fallback.evaluate(application, entries)

        assert outcome.decision == expected.decision == Decision.REJECT
        assert outcome.score == expected.score
