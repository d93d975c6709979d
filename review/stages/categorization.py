"""Categorization stage: assigns a category by whole-word keyword votes."""

from typing import Optional, Sequence

from review.models import Application, ApplicationStatus, ReviewStage, StageOutcome
from review.similarity import WORD_SPLIT, clamp, count_whole_words
from review.stages.base import StageEvaluator, percent

TITLE_BONUS = 0.2
DENSITY_FACTOR = 5
DEFAULT_CONFIDENCE = 0.5


class CategorizationEvaluator(StageEvaluator):
    """Categorizes an application. Never rejects."""

    stage = ReviewStage.CATEGORIZATION
    advances_to = ApplicationStatus.IMPLEMENTATION_REVIEW

    @staticmethod
    def _text(application: Application) -> str:
        return (
            f"{application.title} {application.description} "
            f"{application.problem_statement} {application.solution}"
        ).lower()

    def categorize(self, application: Application) -> str:
        """Pick the category with the most whole-word keyword hits.

        Categories are scanned in table order and only a strictly higher
        count replaces the current best, so the first category wins ties.
        """
        text = self._text(application)
        best = self.tables.categorization.default_category
        best_score = 0
        for category in self.tables.categorization.categories:
            score = sum(count_whole_words(text, keyword) for keyword in category.keywords)
            if score > best_score:
                best_score = score
                best = category.name
        return best

    def confidence(self, application: Application, category: str) -> float:
        text = self._text(application)
        words = [word for word in WORD_SPLIT.split(text) if len(word) > 2]
        if not words:
            return DEFAULT_CONFIDENCE

        keywords = self.tables.categorization.confidence_keywords_for(category)
        matching = [
            word for word in words
            if any(keyword in word or word in keyword for keyword in keywords)
        ]
        base = min(len(matching) / len(words) * DENSITY_FACTOR, 1.0)

        title = application.title.lower()
        title_match = any(keyword in title for keyword in keywords)
        return clamp(base + (TITLE_BONUS if title_match else 0.0))

    def analysis_details(self, application: Application, category: str) -> dict:
        keywords = self.tables.categorization.confidence_keywords_for(category)
        text = self._text(application)
        title = application.title.lower()
        found = [keyword for keyword in keywords if keyword in text]
        return {
            "detected_keywords": found,
            "total_keywords_checked": len(keywords),
            "keyword_match_ratio": len(found) / len(keywords) if keywords else 0.0,
            "text_length": len(text),
            "strong_indicators": [keyword for keyword in found if keyword in title],
        }

    def evaluate(
        self,
        application: Application,
        comparisons: Optional[Sequence] = None,
    ) -> StageOutcome:
        category = self.categorize(application)
        confidence = self.confidence(application, category)
        feedback = (
            f'Application categorized as "{category}" with '
            f"{percent(confidence)}% confidence."
        )
        metadata = {
            "suggested_category": category,
            "confidence": confidence,
            "analysis_details": self.analysis_details(application, category),
        }
        return self.approve(confidence, feedback, metadata)
