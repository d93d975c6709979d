"""
Remote similarity judge for the external similarity stage.

Asks the idea similarity agent for a verdict and maps it onto a stage
outcome. Whenever the agent cannot deliver a valid verdict in time the
deterministic ExternalSimilarityEvaluator decides instead, and its metadata
records why under judge_fallback_reason.
"""

import asyncio
import logging
from typing import Literal, Optional, Sequence

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from agents.base import BaseAgent
from core.config import settings
from core.exceptions import RemoteJudgeError
from review.models import Application, CorpusEntry, ReviewStage, StageOutcome
from review.stages.base import StageEvaluator
from review.stages.external_similarity import ExternalSimilarityEvaluator

logger = logging.getLogger(__name__)

AGENT_NAME = "idea_similarity"


class SimilarEntry(BaseModel):
    name: str = ""
    reason: str = ""


class SimilarityVerdict(BaseModel):
    """Agent answer. Accepts both snake_case and camelCase keys."""

    model_config = ConfigDict(extra="ignore")

    is_similar: bool = Field(validation_alias=AliasChoices("is_similar", "isSimilar"))
    similarity_score: float = Field(
        ge=0.0, le=1.0,
        validation_alias=AliasChoices("similarity_score", "similarityScore"),
    )
    most_similar_entry: Optional[SimilarEntry] = Field(
        default=None,
        validation_alias=AliasChoices(
            "most_similar_entry", "mostSimilarEntry", "mostSimilarCompany"
        ),
    )
    recommendation: Literal["APPROVE", "REJECT", "NEEDS_DIFFERENTIATION"]
    feedback: str
    suggestions: list[str] = Field(default_factory=list)


class RemoteJudge:
    """External similarity backed by a Gemini agent with a deterministic fallback."""

    stage = ReviewStage.EXTERNAL_IDEA

    def __init__(
        self,
        fallback: Optional[ExternalSimilarityEvaluator] = None,
        agent: Optional[BaseAgent] = None,
        timeout: Optional[float] = None,
        api_key: Optional[str] = None,
    ):
        self.fallback = fallback or ExternalSimilarityEvaluator()
        self.timeout = timeout or settings.remote_judge_timeout_seconds
        self.api_key = api_key if api_key is not None else settings.google_api_key
        self._agent = agent

    @property
    def agent(self) -> BaseAgent:
        if self._agent is None:
            from agents import registry

            self._agent = registry.get(AGENT_NAME)
        return self._agent

    def _fall_back(
        self,
        application: Application,
        corpus: Sequence[CorpusEntry],
        reason: str,
    ) -> StageOutcome:
        logger.warning(
            f"Remote judge unavailable ({reason}), using deterministic similarity",
            extra={"application_id": application.id, "stage": self.stage.value},
        )
        outcome = self.fallback.evaluate(application, corpus)
        outcome.metadata["judge_fallback_reason"] = reason
        return outcome

    @staticmethod
    def to_outcome(verdict: SimilarityVerdict, corpus: Sequence[CorpusEntry]) -> StageOutcome:
        metadata = {
            "match_type": "remote_judge",
            "is_similar": verdict.is_similar,
            "similarity_score": verdict.similarity_score,
            "most_similar_entry": (
                verdict.most_similar_entry.model_dump() if verdict.most_similar_entry else None
            ),
            "recommendation": verdict.recommendation,
            "suggestions": verdict.suggestions,
            "corpus_size": len(corpus),
        }
        if verdict.recommendation == "REJECT":
            return StageEvaluator.reject(verdict.similarity_score, verdict.feedback, metadata)
        return StageEvaluator.approve(1.0 - verdict.similarity_score, verdict.feedback, metadata)

    async def evaluate(
        self,
        application: Application,
        corpus: Sequence[CorpusEntry],
    ) -> StageOutcome:
        if not self.api_key:
            return self._fall_back(application, corpus, "missing_api_key")

        payload = {
            "application": application.model_dump(mode="json"),
            "corpus": [entry.model_dump(mode="json") for entry in corpus],
        }
        try:
            raw = await asyncio.wait_for(self.agent.process(payload), timeout=self.timeout)
            verdict = SimilarityVerdict.model_validate(raw)
        except asyncio.TimeoutError:
            return self._fall_back(application, corpus, "timeout")
        except RemoteJudgeError as e:
            logger.warning(f"Remote judge returned unparsable output: {e}")
            return self._fall_back(application, corpus, "unparsable_response")
        except ValidationError as e:
            logger.warning(f"Remote judge returned an invalid verdict: {e}")
            return self._fall_back(application, corpus, "invalid_response")
        except Exception as e:
            logger.warning(f"Remote judge call failed: {e}")
            return self._fall_back(application, corpus, "transport_error")

        logger.info(
            f"Remote judge recommendation {verdict.recommendation} "
            f"(similarity {verdict.similarity_score:.2f})",
            extra={"application_id": application.id, "stage": self.stage.value},
        )
        return self.to_outcome(verdict, corpus)
