"""Celery configuration for async task processing."""

from kombu import Exchange, Queue

from core.config import settings

# Broker configuration (Redis)
broker_url = str(settings.celery_broker_url)
result_backend = str(settings.celery_result_backend)

# Task routing and serialization
task_serializer = "json"
accept_content = ["json"]
result_serializer = "json"
timezone = "UTC"
enable_utc = True

# Task execution settings
task_track_started = True
task_time_limit = 10 * 60  # 10 minutes hard limit
task_soft_time_limit = 8 * 60  # 8 minutes soft limit

# Worker settings
worker_prefetch_multiplier = 1
worker_max_tasks_per_child = 1000
worker_hijack_root_logger = False

# Queue configuration with routing
default_exchange = Exchange("reviews", type="direct")
default_queue_name = "default"
task_default_queue = default_queue_name
task_queues = (
    Queue("default", exchange=default_exchange, routing_key="default"),
    Queue("reviews", exchange=default_exchange, routing_key="reviews"),
)

# Task routing
task_routes = {
    "workers.tasks.reviews.*": {"queue": "reviews"},
}

# Result backend settings
result_expires = 3600  # Results expire after 1 hour
