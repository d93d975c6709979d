"""Customer impact stage: problem severity, market, novelty, viability and UX."""

import re
from typing import Optional, Sequence

from review.models import Application, ApplicationStatus, ReviewStage, StageOutcome
from review.similarity import clamp, count_present, present_keywords
from review.stages.base import StageEvaluator, percent

WEIGHTS = {
    "severity": 0.25,
    "market": 0.2,
    "novelty": 0.2,
    "viability": 0.2,
    "ux": 0.15,
}
BASE_SCORE = 0.5
FLOOR = 0.2
APPROVAL_THRESHOLD = 0.6
EXCELLENT = 0.8
STRENGTH_THRESHOLD = 0.7
CONCERN_THRESHOLD = 0.5

QUANTIFIED = re.compile(r"\d+%|\d+\s*(hours?|minutes?|days?|dollars?|\$)", re.IGNORECASE)
QUANTIFIED_ELEMENTS = re.compile(r"\d+%|\d+\s*\w+")

LABELS = {
    "severity": ("Addresses significant problem", "Problem significance unclear"),
    "market": ("Large market potential", "Limited market size"),
    "novelty": ("Innovative solution approach", "Solution lacks novelty"),
    "viability": ("Strong business potential", "Questionable business viability"),
    "ux": ("Excellent user experience potential", "Poor user experience design"),
}


class CustomerImpactEvaluator(StageEvaluator):
    """Estimates how much customers would benefit from an application."""

    stage = ReviewStage.CUSTOMER_IMPACT
    advances_to = ApplicationStatus.UNDER_REVIEW

    @property
    def _keywords(self):
        return self.tables.impact

    def severity_score(self, application: Application) -> float:
        text = f"{application.problem_statement} {application.description}"
        score = BASE_SCORE
        score += 0.1 * count_present(text, self._keywords.high_severity)
        score += 0.08 * count_present(text, self._keywords.impact)
        if QUANTIFIED.search(text):
            score += 0.2
        return min(score, 1.0)

    def market_score(self, application: Application) -> float:
        text = f"{application.description} {application.problem_statement}"
        score = BASE_SCORE
        score += 0.15 * count_present(text, self._keywords.large_market)
        score += 0.1 * count_present(text, self._keywords.specific_market)
        score -= 0.1 * count_present(text, self._keywords.niche_market)
        return clamp(score, FLOOR, 1.0)

    def novelty_score(self, application: Application) -> float:
        text = f"{application.solution} {application.description}"
        score = BASE_SCORE
        score += 0.15 * count_present(text, self._keywords.innovation)
        score += 0.1 * count_present(text, self._keywords.improvement)
        score -= 0.1 * count_present(text, self._keywords.existing_solution)
        return clamp(score, FLOOR, 1.0)

    def viability_score(self, application: Application) -> float:
        text = f"{application.description} {application.solution}"
        score = BASE_SCORE
        score += 0.12 * count_present(text, self._keywords.revenue)
        score += 0.1 * count_present(text, self._keywords.scalability)
        score += 0.08 * count_present(text, self._keywords.sustainability)
        if (application.estimated_cost or 0) > 0:
            score += 0.1
        return min(score, 1.0)

    def ux_score(self, application: Application) -> float:
        text = f"{application.description} {application.solution}"
        score = BASE_SCORE
        score += 0.12 * count_present(text, self._keywords.positive_ux)
        score += 0.08 * count_present(text, self._keywords.design)
        score -= 0.1 * count_present(text, self._keywords.negative_ux)
        return clamp(score, FLOOR, 1.0)

    @staticmethod
    def recommendation(total: float) -> str:
        if total >= EXCELLENT:
            return "Excellent customer impact potential. Strong recommendation for approval."
        if total >= APPROVAL_THRESHOLD:
            return "Good customer impact potential. Approved with suggested improvements."
        return (
            "Insufficient customer impact. "
            "Requires significant improvements or scope changes."
        )

    def detailed_analysis(self, application: Application) -> dict:
        details = self._keywords.details
        problem = f"{application.problem_statement} {application.description}"
        solution = f"{application.solution} {application.description}"
        everything = f"{problem} {application.solution}"

        def found(bucket: str, text: str) -> list[str]:
            return present_keywords(text, details.get(bucket, []))

        return {
            "problem": {
                "severity_indicators": found("severity_indicators", problem),
                "quantified_elements": QUANTIFIED_ELEMENTS.findall(problem),
            },
            "market": {
                "target_audience": found("target_audience", everything),
                "market_size_indicators": found("market_size_indicators", everything),
            },
            "novelty": {
                "competitive_advantage": found("competitive_advantage", solution),
                "innovation_elements": found("innovation_elements", solution),
                "differentiators": found("differentiators", solution),
            },
            "viability": {
                "business_model_hints": found("business_model", everything),
                "revenue_indicators": found("revenue_indicators", everything),
                "scalability_factors": found("scalability_factors", everything),
            },
            "ux": {
                "ux_elements": found("ux_elements", solution),
                "accessibility": found("accessibility", solution),
                "design_mentions": found("design_mentions", solution),
            },
        }

    def evaluate(
        self,
        application: Application,
        comparisons: Optional[Sequence] = None,
    ) -> StageOutcome:
        scores = {
            "severity": self.severity_score(application),
            "market": self.market_score(application),
            "novelty": self.novelty_score(application),
            "viability": self.viability_score(application),
            "ux": self.ux_score(application),
        }
        total = sum(scores[name] * weight for name, weight in WEIGHTS.items())

        strengths = []
        concerns = []
        for name, value in scores.items():
            strength, concern = LABELS[name]
            if value >= STRENGTH_THRESHOLD:
                strengths.append(strength)
            elif value < CONCERN_THRESHOLD:
                concerns.append(concern)

        recommendation = self.recommendation(total)
        metadata = {
            "problem_severity": scores["severity"],
            "market_size": scores["market"],
            "solution_novelty": scores["novelty"],
            "business_viability": scores["viability"],
            "user_experience": scores["ux"],
            "overall_impact": total,
            "strengths": strengths,
            "concerns": concerns,
            "recommendation": recommendation,
            "detailed_analysis": self.detailed_analysis(application),
        }

        if total < APPROVAL_THRESHOLD:
            feedback = (
                "Customer impact assessment failed. "
                f"Overall impact score: {percent(total)}%. "
                f"Issues identified: {', '.join(concerns)}. {recommendation}"
            )
            return self.reject(total, feedback, metadata)

        feedback = (
            "Customer impact assessment passed. "
            f"Overall impact score: {percent(total)}%. "
            f"Strengths: {', '.join(strengths)}. {recommendation}"
        )
        return self.approve(total, feedback, metadata)
