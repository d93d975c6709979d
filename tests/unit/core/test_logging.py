"""
Tests for structured logging and the request logging middleware.
"""

import json
import logging
import sys

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from core.middleware.logging import (
    StructuredFormatter,
    StructuredLoggingMiddleware,
    get_logger,
    setup_logging,
    should_log_request,
)


def make_record(message="Stage finished", exc_info=None, **extra):
    record = logging.LogRecord(
        name="review.orchestrator",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=exc_info,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestStructuredFormatter:
    """JSON log lines."""

    def test_base_fields(self):
        data = json.loads(StructuredFormatter().format(make_record()))
        assert data["level"] == "INFO"
        assert data["logger"] == "review.orchestrator"
        assert data["message"] == "Stage finished"
        assert "timestamp" in data

    def test_pipeline_context_fields(self):
        record = make_record(application_id="app-1", stage="COST_ANALYSIS", event="stage_completed")
        data = json.loads(StructuredFormatter().format(record))
        assert data["application_id"] == "app-1"
        assert data["stage"] == "COST_ANALYSIS"
        assert data["event"] == "stage_completed"
        assert "request_id" not in data

    def test_exception_details(self):
        try:
            raise ValueError("bad score")
        except ValueError:
            record = make_record("failed", exc_info=sys.exc_info())
        data = json.loads(StructuredFormatter().format(record))
        assert data["exception"]["type"] == "ValueError"
        assert data["exception"]["message"] == "bad score"


class TestSetupLogging:
    """Root logger configuration."""

    @pytest.fixture(autouse=True)
    def restore_root(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        root.handlers = handlers
        root.setLevel(level)

    def test_json_handler_installed(self):
        setup_logging(log_level="DEBUG", json_logs=True)
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, StructuredFormatter)

    def test_plain_text_logs(self):
        setup_logging(log_level="WARNING", json_logs=False)
        formatter = logging.getLogger().handlers[0].formatter
        assert not isinstance(formatter, StructuredFormatter)

    def test_get_logger(self):
        assert get_logger("review.stages").name == "review.stages"


class TestRequestLogging:
    """Request id propagation and path filtering."""

    @pytest.mark.parametrize("path,expected", [
        ("/health", False),
        ("/ready", False),
        ("/api/v1/reviews/app-1/status", True),
    ])
    def test_should_log_request(self, path, expected):
        assert should_log_request(path) is expected

    @pytest.fixture
    def client(self):
        app = FastAPI()
        app.add_middleware(StructuredLoggingMiddleware)

        @app.get("/api/v1/ping")
        async def ping():
            return {"ok": True}

        @app.get("/health")
        async def health():
            return {"status": "healthy"}

        return TestClient(app)

    def test_request_id_generated(self, client):
        response = client.get("/api/v1/ping")
        assert response.status_code == 200
        assert response.headers["x-request-id"]

    def test_request_id_propagated(self, client):
        response = client.get("/api/v1/ping", headers={"x-request-id": "req-123"})
        assert response.headers["x-request-id"] == "req-123"

    def test_skipped_paths_still_tagged(self, client):
        response = client.get("/health", headers={"x-request-id": "req-456"})
        assert response.headers["x-request-id"] == "req-456"

    def test_completion_logged(self, client, caplog):
        with caplog.at_level(logging.INFO, logger="core.middleware.logging"):
            client.get("/api/v1/ping", headers={"x-request-id": "req-789"})

        completed = [r for r in caplog.records if getattr(r, "event", None) == "request_completed"]
        assert len(completed) == 1
        assert completed[0].request_id == "req-789"
        assert "-> 200" in completed[0].getMessage()
