"""
API Services Layer.

Builds the review pipeline and wraps its operations for the routes and
the Celery tasks.
"""
