"""
Keyword tables consumed by the stage evaluators.

The tables live in a JSON document (review/data/keyword_tables.json by
default, or KEYWORD_TABLES_PATH) and are validated into the models below
before being injected into each evaluator.
"""

import functools
import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from core.exceptions import KeywordTablesError

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent / "data"
DEFAULT_TABLES_PATH = DATA_DIR / "keyword_tables.json"


class CategoryTable(BaseModel):
    """One category and the keywords that vote for it."""

    name: str
    keywords: list[str]
    confidence_keywords: list[str]


class CategorizationTables(BaseModel):
    default_category: str = "Other"
    # Order is significant: the first category wins ties.
    categories: list[CategoryTable]

    @field_validator("categories")
    @classmethod
    def unique_names(cls, v: list[CategoryTable]) -> list[CategoryTable]:
        names = [category.name for category in v]
        if len(names) != len(set(names)):
            raise ValueError("Category names must be unique")
        return v

    def confidence_keywords_for(self, category: str) -> list[str]:
        for table in self.categories:
            if table.name == category:
                return table.confidence_keywords
        return []


class InternalSimilarityTables(BaseModel):
    stop_words: list[str]


class ExternalSimilarityTables(BaseModel):
    concept_keywords: list[str]
    industry_keywords: list[str]
    technology_keywords: list[str]


class ImplementationTables(BaseModel):
    complex_technologies: list[str]
    moderate_technologies: list[str]
    simple_technologies: list[str]
    experience_keywords: list[str]
    complex_features: list[str]
    quick_features: list[str]
    resource_intensive: list[str]
    low_resource: list[str]
    complexity_indicators: list[str]
    resource_requirements: list[str]


class KeywordAmount(BaseModel):
    """Flat amount charged when any of the keywords is mentioned."""

    keywords: list[str]
    amount: float = Field(ge=0)


class KeywordLabel(BaseModel):
    keywords: list[str]
    label: str


class CostTables(BaseModel):
    high_complexity: list[str]
    medium_complexity: list[str]
    complexity_hours: dict[str, float]
    hourly_rate: float = Field(gt=0)
    infrastructure_months: int = Field(ge=1)
    infrastructure: list[KeywordAmount]
    third_party: list[KeywordAmount]
    operational_base: float = Field(ge=0)
    operational_complexity: dict[str, float]
    operational_large_team: float = Field(ge=0)
    cost_drivers: list[KeywordLabel]
    potential_savings: list[KeywordLabel]

    @field_validator("complexity_hours", "operational_complexity")
    @classmethod
    def covers_all_levels(cls, v: dict[str, float]) -> dict[str, float]:
        missing = {"high", "medium", "low"} - set(v)
        if missing:
            raise ValueError(f"Missing complexity levels: {sorted(missing)}")
        return v


class ImpactTables(BaseModel):
    high_severity: list[str]
    impact: list[str]
    large_market: list[str]
    specific_market: list[str]
    niche_market: list[str]
    innovation: list[str]
    improvement: list[str]
    existing_solution: list[str]
    revenue: list[str]
    scalability: list[str]
    sustainability: list[str]
    positive_ux: list[str]
    design: list[str]
    negative_ux: list[str]
    details: dict[str, list[str]] = Field(default_factory=dict)


class KeywordTables(BaseModel):
    """All keyword tables used by the review stages."""

    categorization: CategorizationTables
    internal_similarity: InternalSimilarityTables
    external_similarity: ExternalSimilarityTables
    implementation: ImplementationTables
    cost: CostTables
    impact: ImpactTables


def load_keyword_tables(path: Optional[str | Path] = None) -> KeywordTables:
    """Load and validate keyword tables from a JSON file.

    Args:
        path: Tables file; defaults to the packaged tables

    Returns:
        Validated keyword tables

    Raises:
        KeywordTablesError: If the file is missing or does not validate
    """
    tables_path = Path(path) if path else DEFAULT_TABLES_PATH
    try:
        raw = tables_path.read_text(encoding="utf-8")
    except OSError as e:
        raise KeywordTablesError(f"Cannot read keyword tables at {tables_path}: {e}") from e

    try:
        tables = KeywordTables.model_validate_json(raw)
    except ValidationError as e:
        raise KeywordTablesError(f"Invalid keyword tables at {tables_path}: {e}") from e

    logger.info(
        f"Loaded keyword tables from {tables_path} "
        f"({len(tables.categorization.categories)} categories)"
    )
    return tables


@functools.lru_cache(maxsize=1)
def default_tables() -> KeywordTables:
    """Packaged keyword tables, loaded once per process."""
    return load_keyword_tables()
