"""Celery workers module - imports the task modules for autodiscovery."""

from service_scout.features.discovery.workers import tasks  # noqa: F401
