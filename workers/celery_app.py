"""Celery app factory."""

from celery import Celery
from celery.signals import setup_logging as celery_setup_logging

from core.config import settings
from core.middleware.logging import setup_logging

celery_app = Celery(settings.app_name)
celery_app.config_from_object("workers.celery_config")
celery_app.autodiscover_tasks(["workers.tasks"], related_name="reviews")


@celery_setup_logging.connect
def configure_worker_logging(**kwargs):
    """Use the structured JSON logging in workers too."""
    setup_logging(log_level=settings.log_level, json_logs=settings.json_logs)
