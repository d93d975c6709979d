"""Implementation feasibility stage."""

from typing import Optional, Sequence

from review.models import Application, ApplicationStatus, ReviewStage, StageOutcome
from review.similarity import clamp, count_present, present_keywords
from review.stages.base import StageEvaluator, percent

WEIGHTS = {
    "technical": 0.3,
    "team": 0.25,
    "timeframe": 0.25,
    "resources": 0.2,
}
BASE_SCORE = 0.7
APPROVAL_THRESHOLD = 0.6
HIGHLY_FEASIBLE = 0.8

ISSUE_LABELS = {
    "technical": "High technical complexity",
    "team": "Insufficient team size/capability",
    "timeframe": "Unrealistic timeframe",
    "resources": "Insufficient resources",
}


class ImplementationEvaluator(StageEvaluator):
    """Scores technical complexity, team, timeframe and resource needs."""

    stage = ReviewStage.IMPLEMENTATION_FEASIBILITY
    advances_to = ApplicationStatus.COST_REVIEW

    @property
    def _keywords(self):
        return self.tables.implementation

    def technical_score(self, application: Application) -> float:
        text = f"{application.description} {application.solution} {application.tech_stack_text}"
        score = BASE_SCORE
        score -= 0.15 * count_present(text, self._keywords.complex_technologies)
        if count_present(text, self._keywords.moderate_technologies):
            score += 0.1
        score += 0.1 * count_present(text, self._keywords.simple_technologies)
        return clamp(score)

    def team_score(self, application: Application) -> float:
        size = application.team_size
        if size >= 5:
            score = 1.0
        elif size >= 3:
            score = 0.8
        elif size >= 2:
            score = 0.6
        else:
            score = 0.3

        if count_present(application.tech_stack_text, self._keywords.experience_keywords):
            score += 0.2
        return min(score, 1.0)

    def timeframe_score(self, application: Application) -> float:
        text = f"{application.description} {application.solution}"
        score = BASE_SCORE
        score -= 0.1 * count_present(text, self._keywords.complex_features)
        score += 0.15 * count_present(text, self._keywords.quick_features)
        return clamp(score, 0.2, 1.0)

    def resources_score(self, application: Application) -> float:
        text = f"{application.description} {application.tech_stack_text}"
        score = BASE_SCORE
        score -= 0.08 * count_present(text, self._keywords.resource_intensive)
        score += 0.1 * count_present(text, self._keywords.low_resource)
        return clamp(score, 0.2, 1.0)

    @staticmethod
    def recommendation(total: float) -> str:
        if total >= HIGHLY_FEASIBLE:
            return "Highly feasible project with good chances of success."
        if total >= APPROVAL_THRESHOLD:
            return "Feasible project but requires careful planning and execution."
        return (
            "Project faces significant implementation challenges "
            "and may not be feasible within current constraints."
        )

    def detailed_analysis(self, application: Application, scores: dict[str, float]) -> dict:
        text = f"{application.description} {application.solution} {application.tech_stack_text}"
        technical = scores["technical"]
        timeframe = scores["timeframe"]
        resources = scores["resources"]

        if technical > 0.7:
            difficulty = "Low"
        elif technical > 0.5:
            difficulty = "Medium"
        else:
            difficulty = "High"

        if timeframe > 0.7:
            recommended = "2-4 weeks"
        elif timeframe > 0.5:
            recommended = "1-3 months"
        else:
            recommended = "3+ months"

        if resources > 0.7:
            needs = "Low"
        elif resources > 0.5:
            needs = "Medium"
        else:
            needs = "High"

        return {
            "technical": {
                "estimated_difficulty": difficulty,
                "complexity_indicators": present_keywords(
                    text, self._keywords.complexity_indicators
                ),
                "tech_stack": list(application.tech_stack),
            },
            "team": {
                "team_size": application.team_size,
                "team_members": list(application.team_members),
                "adequacy": (
                    "Adequate" if application.team_size >= 3 else "May need additional members"
                ),
            },
            "timeframe": {
                "estimated_complexity": difficulty,
                "recommended_timeframe": recommended,
            },
            "resources": {
                "estimated_resource_needs": needs,
                "key_resource_requirements": present_keywords(
                    text, self._keywords.resource_requirements
                ),
            },
        }

    def evaluate(
        self,
        application: Application,
        comparisons: Optional[Sequence] = None,
    ) -> StageOutcome:
        scores = {
            "technical": self.technical_score(application),
            "team": self.team_score(application),
            "timeframe": self.timeframe_score(application),
            "resources": self.resources_score(application),
        }
        total = sum(scores[name] * weight for name, weight in WEIGHTS.items())
        issues = [ISSUE_LABELS[name] for name, value in scores.items() if value < 0.6]
        recommendation = self.recommendation(total)

        metadata = {
            "technical_complexity": scores["technical"],
            "team_capability": scores["team"],
            "timeframe_realism": scores["timeframe"],
            "resource_availability": scores["resources"],
            "overall_feasibility": total,
            "issues": issues,
            "recommendation": recommendation,
            "detailed_analysis": self.detailed_analysis(application, scores),
        }

        if total < APPROVAL_THRESHOLD:
            feedback = (
                "Implementation feasibility assessment failed. "
                f"Overall score: {percent(total)}%. "
                f"Issues identified: {', '.join(issues)}. {recommendation}"
            )
            return self.reject(total, feedback, metadata)

        feedback = (
            f"Implementation is feasible. Overall score: {percent(total)}%. {recommendation}"
        )
        return self.approve(total, feedback, metadata)
