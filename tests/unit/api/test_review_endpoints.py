"""
Tests for the review API endpoints.
The pipeline runs over an in-memory store; Celery is mocked.
"""

from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_review_pipeline
from api.main import app


@pytest.fixture
def circuithub(application_factory):
    return application_factory(
        id="app-circuithub",
        title="CircuitHub",
        description="On-Demand Electronics Manufacturing",
    )


@pytest.fixture
def pipeline(pipeline_factory, basket_weaving, circuithub):
    return pipeline_factory(basket_weaving, circuithub)


@pytest.fixture
def client(pipeline):
    app.dependency_overrides[get_review_pipeline] = lambda: pipeline
    yield TestClient(app)
    app.dependency_overrides.clear()


BASE = "/api/v1/reviews"


class TestProcessEndpoint:
    """Starting a review."""

    def test_sync_run(self, client, basket_weaving):
        response = client.post(f"{BASE}/{basket_weaving.id}/process", params={"sync": "true"})

        assert response.status_code == 202
        body = response.json()
        assert body["queued"] is False
        assert body["summary"]["outcome"] == "PASSED"
        assert body["summary"]["final_status"] == "UNDER_REVIEW"

    def test_queued_run(self, client, basket_weaving):
        task = MagicMock()
        task.delay.return_value = MagicMock(id="task-1")
        with patch("api.routes.v1.reviews.process_application_review", task):
            response = client.post(f"{BASE}/{basket_weaving.id}/process")

        assert response.status_code == 202
        assert response.json() == {
            "application_id": basket_weaving.id,
            "queued": True,
            "task_id": "task-1",
            "summary": None,
        }
        task.delay.assert_called_once_with(basket_weaving.id)

    def test_queue_unknown_application(self, client):
        task = MagicMock()
        with patch("api.routes.v1.reviews.process_application_review", task):
            response = client.post(f"{BASE}/missing/process")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "APPLICATION_NOT_FOUND"
        task.delay.assert_not_called()


class TestReadEndpoints:
    """Status, report and feedback."""

    def test_status(self, client, circuithub):
        client.post(f"{BASE}/{circuithub.id}/process", params={"sync": "true"})
        response = client.get(f"{BASE}/{circuithub.id}/status")

        body = response.json()
        assert response.status_code == 200
        assert body["current_status"] == "REJECTED"
        assert body["progress_percentage"] == 17
        assert len(body["reviews"]) == 6

    def test_status_unknown_application(self, client):
        response = client.get(f"{BASE}/missing/status")
        assert response.status_code == 404

    def test_report(self, client, basket_weaving):
        client.post(f"{BASE}/{basket_weaving.id}/process", params={"sync": "true"})
        response = client.get(f"{BASE}/{basket_weaving.id}/report")

        body = response.json()
        assert response.status_code == 200
        assert body["summary"]["passed_reviews"] == 6
        assert body["review_results"]["CATEGORIZATION"]["metadata"]["suggested_category"] == "Education"

    def test_feedback_rejected(self, client, circuithub):
        client.post(f"{BASE}/{circuithub.id}/process", params={"sync": "true"})
        response = client.get(f"{BASE}/{circuithub.id}/feedback")

        body = response.json()
        assert body["status"] == "REJECTED"
        assert body["primary_reason"] == "Similar Idea Already Exists"
        assert "message" not in body

    def test_feedback_success(self, client, basket_weaving):
        response = client.get(f"{BASE}/{basket_weaving.id}/feedback")

        body = response.json()
        assert body["status"] == "SUCCESS"
        assert body["current_stage"] == "SUBMITTED"
        assert "rejection_stage" not in body


class TestRetryEndpoint:
    """Single-stage retry."""

    def test_retry(self, client, basket_weaving):
        client.post(f"{BASE}/{basket_weaving.id}/process", params={"sync": "true"})
        response = client.post(f"{BASE}/{basket_weaving.id}/retry/CATEGORIZATION")

        assert response.status_code == 200
        assert response.json() == {
            "application_id": basket_weaving.id,
            "stage": "CATEGORIZATION",
            "result": "APPROVED",
            "status": "IMPLEMENTATION_REVIEW",
        }

    def test_unknown_stage(self, client, basket_weaving):
        response = client.post(f"{BASE}/{basket_weaving.id}/retry/BOGUS")

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Unknown review type: BOGUS"
