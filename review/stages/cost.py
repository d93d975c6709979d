"""
Cost feasibility stage.

Builds a rough cost estimate from four buckets (development, infrastructure,
third-party services, operations) and compares it with the requested budget.
All amounts are in dollars.
"""

from typing import Optional, Sequence

from review.models import Application, ApplicationStatus, ReviewStage, StageOutcome
from review.similarity import clamp, count_present, present_keywords
from review.stages.base import StageEvaluator, round_half_up

LARGE_TEAM = 3
LARGE_TEAM_MULTIPLIER = 1.2
COORDINATION_TEAM = 5
FEASIBLE_RATIO = 0.8
GENEROUS_VARIANCE = -20
NO_BUDGET_SCORE = 0.5
NO_BUDGET_VARIANCE = 100

TIMEFRAMES = {
    "high": "4-6 months",
    "medium": "2-4 months",
    "low": "1-2 months",
}


def _dollars(amount: float) -> str:
    return f"${round_half_up(amount)}"


class CostEvaluator(StageEvaluator):
    """Compares an estimated implementation cost with the requested budget."""

    stage = ReviewStage.COST_ANALYSIS
    advances_to = ApplicationStatus.IMPACT_REVIEW

    @property
    def _tables(self):
        return self.tables.cost

    def complexity(self, application: Application) -> str:
        text = f"{application.description} {application.solution} {application.tech_stack_text}"
        if count_present(text, self._tables.high_complexity):
            return "high"
        if count_present(text, self._tables.medium_complexity) > 2:
            return "medium"
        return "low"

    def estimate(self, application: Application, complexity: str) -> dict[str, int]:
        """Estimated cost per bucket."""
        tables = self._tables
        large_team = application.team_size > LARGE_TEAM

        multiplier = LARGE_TEAM_MULTIPLIER if large_team else 1.0
        development = round_half_up(
            tables.complexity_hours[complexity] * tables.hourly_rate * multiplier
        )

        infra_text = f"{application.description} {application.tech_stack_text}"
        monthly = sum(
            item.amount for item in tables.infrastructure
            if count_present(infra_text, item.keywords)
        )
        infrastructure = round_half_up(monthly * tables.infrastructure_months)

        service_text = f"{application.description} {application.solution}"
        third_party = round_half_up(sum(
            item.amount for item in tables.third_party
            if count_present(service_text, item.keywords)
        ))

        operational = tables.operational_base + tables.operational_complexity[complexity]
        if large_team:
            operational += tables.operational_large_team

        return {
            "development": development,
            "infrastructure": infrastructure,
            "third_party": third_party,
            "operational": round_half_up(operational),
        }

    @staticmethod
    def recommendation(is_feasible: bool, variance: float, shortfall: float) -> str:
        if is_feasible and variance < GENEROUS_VARIANCE:
            return (
                "Budget is more than sufficient. Consider allocating additional "
                "resources to quality assurance or feature enhancement."
            )
        if is_feasible:
            return "Budget is adequate for implementation with proper cost management."
        return (
            f"Budget is insufficient. Consider increasing budget by approximately "
            f"{_dollars(shortfall)} or reducing scope."
        )

    def breakdown_details(self, application: Application, complexity: str) -> dict:
        text = f"{application.description} {application.solution} {application.tech_stack_text}"
        drivers = [
            item.label for item in self._tables.cost_drivers
            if present_keywords(text, item.keywords)
        ]
        if application.team_size > COORDINATION_TEAM:
            drivers.append("Large team coordination overhead")

        savings = [
            item.label for item in self._tables.potential_savings
            if present_keywords(text, item.keywords)
        ]
        if application.team_size <= LARGE_TEAM:
            savings.append("Small team reduces coordination costs")

        return {
            "complexity": complexity,
            "team_size": application.team_size,
            "estimated_timeframe": TIMEFRAMES[complexity],
            "main_cost_drivers": drivers,
            "potential_savings": savings,
        }

    def evaluate(
        self,
        application: Application,
        comparisons: Optional[Sequence] = None,
    ) -> StageOutcome:
        complexity = self.complexity(application)
        costs = self.estimate(application, complexity)
        total = sum(costs.values())
        requested = application.estimated_cost or 0

        if requested > 0:
            variance = (total - requested) / requested * 100
            score = clamp(requested / total) if total else 1.0
        else:
            variance = NO_BUDGET_VARIANCE
            score = NO_BUDGET_SCORE

        is_feasible = requested >= total * FEASIBLE_RATIO
        recommendation = self.recommendation(is_feasible, variance, total - requested)

        metadata = {
            "estimated_costs": costs,
            "total_estimated_cost": total,
            "requested_budget": requested,
            "cost_variance": variance,
            "is_feasible": is_feasible,
            "feasibility_score": score,
            "recommendation": recommendation,
            "budget_analysis": {
                "requested_budget": requested,
                "estimated_cost": total,
                "variance": variance,
                "feasible": is_feasible,
                "minimum_viable_budget": round_half_up(total * FEASIBLE_RATIO),
            },
            "cost_breakdown_details": self.breakdown_details(application, complexity),
        }

        if not is_feasible:
            sign = "+" if variance > 0 else ""
            feedback = (
                f"Cost analysis failed. Requested budget: {_dollars(requested)}, "
                f"Estimated actual cost: {_dollars(total)}. "
                f"Variance: {sign}{round_half_up(variance)}%. {recommendation}"
            )
            return self.reject(score, feedback, metadata)

        feedback = (
            "Cost analysis passed. Budget appears sufficient for implementation. "
            f"Estimated cost: {_dollars(total)} vs requested: {_dollars(requested)}. "
            f"{recommendation}"
        )
        return self.approve(score, feedback, metadata)
