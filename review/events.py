"""
Pipeline progress events.

The orchestrator publishes an event after every stage transition. Sinks must
not affect the review outcome: the orchestrator catches and logs anything a
sink raises.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum as PyEnum
from typing import Optional

from pydantic import BaseModel, Field
from redis.asyncio import Redis, from_url

from core.config import settings
from review.models import ApplicationStatus, ReviewResult, ReviewStage, utcnow

logger = logging.getLogger(__name__)


class EventType(str, PyEnum):
    STAGE_STARTED = "stage_started"
    STAGE_COMPLETED = "stage_completed"
    STAGE_FAILED = "stage_failed"
    PIPELINE_COMPLETED = "pipeline_completed"


class PipelineEvent(BaseModel):
    """Status change broadcast to interested listeners."""

    event_type: EventType
    application_id: str
    stage: Optional[ReviewStage] = None
    result: Optional[ReviewResult] = None
    score: Optional[float] = None
    status: Optional[ApplicationStatus] = None
    timestamp: datetime = Field(default_factory=utcnow)


class EventSink(ABC):
    @abstractmethod
    async def publish(self, event: PipelineEvent) -> None:
        """Deliver one event."""

    async def close(self) -> None:
        """Release connections held by the sink."""
        return None


class NullEventSink(EventSink):
    """Discards every event."""

    async def publish(self, event: PipelineEvent) -> None:
        return None


class LoggingEventSink(EventSink):
    """Writes events to the structured log."""

    def __init__(self, level: int = logging.INFO):
        self.level = level

    async def publish(self, event: PipelineEvent) -> None:
        logger.log(
            self.level,
            f"Pipeline event {event.event_type.value} for application {event.application_id}",
            extra={
                "event": event.event_type.value,
                "application_id": event.application_id,
                "stage": event.stage.value if event.stage else None,
            },
        )


class RedisEventSink(EventSink):
    """Publishes events as JSON on a Redis pub/sub channel."""

    def __init__(
        self,
        redis_url: Optional[str] = None,
        channel: Optional[str] = None,
        client: Optional[Redis] = None,
    ):
        self.redis_url = redis_url or str(settings.redis_url)
        self.channel = channel or settings.event_channel
        self._redis = client

    async def init(self):
        """Initialize Redis connection."""
        if not self._redis:
            self._redis = from_url(self.redis_url, encoding="utf-8", decode_responses=True)
            logger.info(f"Redis event sink initialized on channel {self.channel}")

    async def close(self):
        """Close Redis connection."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None
            logger.info("Redis event sink closed")

    async def publish(self, event: PipelineEvent) -> None:
        if not self._redis:
            await self.init()
        await self._redis.publish(self.channel, event.model_dump_json())


def build_event_sink() -> EventSink:
    """Event sink selected by configuration."""
    if settings.redis_events_enabled:
        return RedisEventSink()
    return LoggingEventSink()
