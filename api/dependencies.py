"""FastAPI dependencies for dependency injection."""

import functools

from api.services.reviews import build_pipeline
from review.orchestrator import ReviewPipeline


@functools.lru_cache(maxsize=1)
def get_review_pipeline() -> ReviewPipeline:
    """
    Shared review pipeline for request handlers.

    Tests replace it through app.dependency_overrides.
    """
    return build_pipeline()
