"""
Review service functions for API endpoints and workers.

Wires the review pipeline to the configured keyword tables, corpus, event
sink, remote judge and the SQL record store.
"""

import functools
import logging
from typing import Any, Optional

from core.config import settings
from database.store import SqlRecordStore
from review.corpus import StaticCorpusProvider
from review.events import build_event_sink
from review.judge import RemoteJudge
from review.models import ReviewStage
from review.orchestrator import ReviewPipeline
from review.stages import default_evaluators
from review.store import RecordStore
from review.tables import KeywordTables, default_tables, load_keyword_tables

logger = logging.getLogger(__name__)


@functools.lru_cache(maxsize=1)
def get_keyword_tables() -> KeywordTables:
    """Keyword tables from KEYWORD_TABLES_PATH, or the packaged ones."""
    if settings.keyword_tables_path:
        return load_keyword_tables(settings.keyword_tables_path)
    return default_tables()


@functools.lru_cache(maxsize=1)
def get_corpus_provider() -> StaticCorpusProvider:
    return StaticCorpusProvider()


def build_pipeline(store: Optional[RecordStore] = None) -> ReviewPipeline:
    """
    Build a review pipeline from configuration.

    Args:
        store: Record store, defaults to the SQL store

    Returns:
        Configured review pipeline
    """
    evaluators = default_evaluators(get_keyword_tables())
    judge = None
    if settings.remote_judge_enabled:
        judge = RemoteJudge(fallback=evaluators[ReviewStage.EXTERNAL_IDEA])
        logger.info("Remote similarity judge enabled")

    return ReviewPipeline(
        store=store or SqlRecordStore(),
        corpus=get_corpus_provider(),
        events=build_event_sink(),
        evaluators=evaluators,
        judge=judge,
    )


async def run_review(application_id: str, pipeline: Optional[ReviewPipeline] = None) -> dict[str, Any]:
    """Run the full review for one application and release the event sink."""
    pipeline = pipeline or build_pipeline()
    try:
        return await pipeline.run(application_id)
    finally:
        await pipeline.events.close()


async def retry_review(
    application_id: str,
    stage_type: str,
    pipeline: Optional[ReviewPipeline] = None,
) -> dict[str, Any]:
    """Re-run one review stage and release the event sink."""
    pipeline = pipeline or build_pipeline()
    try:
        return await pipeline.retry_stage(application_id, stage_type)
    finally:
        await pipeline.events.close()
