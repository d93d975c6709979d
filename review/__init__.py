"""
Automated multi-stage review of project applications.

Six stages run in order: external similarity, internal similarity,
categorization, implementation feasibility, cost feasibility and customer
impact. ReviewPipeline drives them against a RecordStore.
"""

from review.corpus import CorpusProvider, StaticCorpusProvider
from review.events import (
    EventSink,
    EventType,
    LoggingEventSink,
    NullEventSink,
    PipelineEvent,
    RedisEventSink,
)
from review.models import (
    Application,
    ApplicationStatus,
    CorpusEntry,
    Decision,
    ReviewRecord,
    ReviewResult,
    ReviewStage,
    STAGE_SEQUENCE,
    StageOutcome,
)
from review.orchestrator import ReviewPipeline
from review.store import InMemoryRecordStore, RecordStore

__all__ = [
    "Application",
    "ApplicationStatus",
    "CorpusEntry",
    "CorpusProvider",
    "Decision",
    "EventSink",
    "EventType",
    "InMemoryRecordStore",
    "LoggingEventSink",
    "NullEventSink",
    "PipelineEvent",
    "RecordStore",
    "RedisEventSink",
    "ReviewPipeline",
    "ReviewRecord",
    "ReviewResult",
    "ReviewStage",
    "STAGE_SEQUENCE",
    "StageOutcome",
    "StaticCorpusProvider",
]
