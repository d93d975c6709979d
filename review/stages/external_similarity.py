"""
External similarity stage (deterministic algorithm).

Compares an application with a corpus of known companies in two phases:

1. Name phase: a fuzzy, exact or containment name match combined with a
   matching problem statement rejects immediately.
2. Concept phase: five weighted sub-similarities (problem, industry,
   solution, technology, business model) are computed against every entry;
   the closest entry decides.
"""

from typing import Optional, Sequence

from review.models import (
    Application,
    ApplicationStatus,
    CorpusEntry,
    ReviewStage,
    StageOutcome,
)
from review.similarity import (
    concept_similarity,
    edit_similarity,
    keyword_overlap,
    normalize_name,
    present_keywords,
)
from review.stages.base import StageEvaluator, percent

# Name phase
FUZZY_NAME_THRESHOLD = 0.85
EXACT_NAME_THRESHOLD = 0.95
MIN_CONTAINED_NAME_LEN = 3
EXACT_CONCEPT_THRESHOLD = 0.1
FUZZY_CONCEPT_THRESHOLD = 0.3
EXACT_MATCH_SCORE = 0.95

# Concept phase
CONCEPT_WEIGHTS = {
    "problem": 0.3,
    "industry": 0.3,
    "solution": 0.2,
    "technology": 0.15,
    "business_model": 0.05,
}
CONCEPT_REJECT_THRESHOLD = 0.4


class ExternalSimilarityEvaluator(StageEvaluator):
    """Rejects applications that duplicate a known company."""

    stage = ReviewStage.EXTERNAL_IDEA
    advances_to = ApplicationStatus.INTERNAL_IDEA_REVIEW
    needs_corpus = True

    @property
    def _keywords(self):
        return self.tables.external_similarity

    # ==================== Name phase ===================== #
    @staticmethod
    def name_match(title: str, name: str) -> Optional[dict]:
        """Compare an application title with a company name.

        Returns:
            Match details, or None if the names do not match
        """
        similarity = edit_similarity(title.lower(), name.lower())
        normalized_title = normalize_name(title)
        normalized_name = normalize_name(name)

        exact = normalized_title == normalized_name
        contained = (
            len(normalized_title) > MIN_CONTAINED_NAME_LEN and normalized_title in normalized_name
        ) or (
            len(normalized_name) > MIN_CONTAINED_NAME_LEN and normalized_name in normalized_title
        )

        if not (similarity > FUZZY_NAME_THRESHOLD or exact or contained):
            return None

        return {
            "matched_name": name,
            "name_similarity": similarity,
            "exact": exact or similarity > EXACT_NAME_THRESHOLD,
        }

    def problem_similarity(self, application: Application, entry: CorpusEntry) -> float:
        return concept_similarity(
            f"{application.description} {application.problem_statement}",
            f"{entry.one_liner} {entry.description}",
            self._keywords.concept_keywords,
        )

    def check_names(
        self,
        application: Application,
        corpus: Sequence[CorpusEntry],
    ) -> Optional[StageOutcome]:
        """Reject when both the name and the problem match a corpus entry."""
        for entry in corpus:
            for name in [entry.name, *entry.former_names]:
                match = self.name_match(application.title, name)
                if match is None:
                    continue

                problem = self.problem_similarity(application, entry)
                threshold = (
                    EXACT_CONCEPT_THRESHOLD if match["exact"] else FUZZY_CONCEPT_THRESHOLD
                )
                if problem <= threshold:
                    continue

                score = EXACT_MATCH_SCORE if match["exact"] else problem
                reason = (
                    f'Name and problem both match {entry.name}: "{application.title}" is '
                    f'{percent(match["name_similarity"])}% similar to "{name}" and the '
                    f"problem statements overlap {percent(problem)}%."
                )
                feedback = (
                    f"Similar idea found among existing companies. {reason} "
                    "Differentiate the name and the core problem before resubmitting."
                )
                metadata = {
                    "match_type": "name_and_problem",
                    "most_similar_entry": {"name": entry.name, "reason": reason},
                    "matched_name": name,
                    "name_similarity": match["name_similarity"],
                    "problem_similarity": problem,
                    "exact_name_match": match["exact"],
                    "similarity_score": score,
                    "corpus_size": len(corpus),
                }
                return self.reject(score, feedback, metadata)
        return None

    # ==================== Concept phase ===================== #
    def industry_similarity(self, application: Application, entry: CorpusEntry) -> float:
        user_text = (
            f"{application.description} {application.problem_statement} {application.solution}"
        )
        entry_text = f"{entry.one_liner} {entry.description}"
        user_keywords = set(present_keywords(user_text, self._keywords.industry_keywords))
        entry_keywords = set(present_keywords(entry_text, self._keywords.industry_keywords))
        if not user_keywords or not entry_keywords:
            return 0.0
        return len(user_keywords & entry_keywords) / max(len(user_keywords), len(entry_keywords))

    def concept_breakdown(self, application: Application, entry: CorpusEntry) -> dict[str, float]:
        keywords = self._keywords.concept_keywords
        business_model = (application.business_model or "").strip()
        return {
            "problem": self.problem_similarity(application, entry),
            "industry": self.industry_similarity(application, entry),
            "solution": concept_similarity(application.solution, entry.description, keywords),
            "technology": keyword_overlap(
                f"{application.description} {application.solution} {application.tech_stack_text}",
                f"{entry.one_liner} {entry.description} {' '.join(entry.tags)}",
                self._keywords.technology_keywords,
            ),
            "business_model": (
                concept_similarity(business_model, entry.description, keywords)
                if business_model else 0.0
            ),
        }

    @staticmethod
    def overall(breakdown: dict[str, float]) -> float:
        return sum(breakdown[name] * weight for name, weight in CONCEPT_WEIGHTS.items())

    def check_concepts(
        self,
        application: Application,
        corpus: Sequence[CorpusEntry],
    ) -> StageOutcome:
        best_entry: Optional[CorpusEntry] = None
        best_breakdown: dict[str, float] = {}
        best_score = 0.0

        for entry in corpus:
            breakdown = self.concept_breakdown(application, entry)
            score = self.overall(breakdown)
            if score > best_score:
                best_score = score
                best_entry = entry
                best_breakdown = breakdown

        metadata = {
            "match_type": "business_concept",
            "concept_similarity": best_score,
            "similarity_score": best_score,
            "dimensions": best_breakdown,
            "corpus_size": len(corpus),
            "most_similar_entry": None,
        }

        if best_entry is not None:
            dimensions = ", ".join(
                f"{name.replace('_', ' ')}: {percent(value)}%"
                for name, value in best_breakdown.items()
            )
            metadata["most_similar_entry"] = {
                "name": best_entry.name,
                "reason": f"Closest business concept ({percent(best_score)}%). {dimensions}.",
            }

        if best_entry is not None and best_score > CONCEPT_REJECT_THRESHOLD:
            feedback = (
                f'Business concept too similar to existing company "{best_entry.name}" '
                f"({percent(best_score)}% similarity). "
                f"{metadata['most_similar_entry']['reason']}"
            )
            return self.reject(best_score, feedback, metadata)

        feedback = (
            f"No sufficiently similar ideas found among {len(corpus)} known companies. "
            "Proceeding to internal review."
        )
        score = 1.0 - best_score if corpus else 1.0
        return self.approve(score, feedback, metadata)

    def evaluate(
        self,
        application: Application,
        comparisons: Optional[Sequence[CorpusEntry]] = None,
    ) -> StageOutcome:
        corpus = list(comparisons or [])
        rejected = self.check_names(application, corpus)
        if rejected is not None:
            return rejected
        return self.check_concepts(application, corpus)
