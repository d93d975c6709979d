"""Health check endpoints."""

import logging

from fastapi import APIRouter
from pydantic import BaseModel

from review.stages import EVALUATOR_CLASSES

logger = logging.getLogger(__name__)

router = APIRouter()

VERSION = "0.1.0"


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    status: str
    stages: int
    keyword_tables: bool


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(status="healthy", version=VERSION)


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check():
    """Readiness check for load balancers."""
    from api.services.reviews import get_keyword_tables

    try:
        get_keyword_tables()
        tables_loaded = True
    except Exception as e:
        logger.error(f"Keyword tables unavailable: {e}")
        tables_loaded = False

    return ReadinessResponse(
        status="ready" if tables_loaded else "degraded",
        stages=len(EVALUATOR_CLASSES),
        keyword_tables=tables_loaded,
    )
