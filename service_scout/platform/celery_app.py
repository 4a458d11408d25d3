from celery import Celery
from kombu import Queue

from service_scout.platform.config import settings


def create_celery_app() -> Celery:
    """
    Create and configure the Celery application.

    Queue Structure:
    - discovery.crawl: service discovery runs (Selenium, one browser per task)

    Workers for discovery.crawl should run with --concurrency=1 per browser:
    a run is strictly sequential and holds a Chrome instance for its lifetime.
    """
    celery_app = Celery(
        "service_scout",
        broker=settings.CELERY_BROKER_URL,
        backend=settings.CELERY_RESULT_BACKEND,
    )

    celery_app.conf.update(
        task_serializer=settings.CELERY_TASK_SERIALIZER,
        result_serializer=settings.CELERY_RESULT_SERIALIZER,
        accept_content=[settings.CELERY_ACCEPT_CONTENT],
        timezone="UTC",
        enable_utc=True,
        task_track_started=settings.CELERY_TASK_TRACK_STARTED,
        task_time_limit=settings.CELERY_TASK_TIME_LIMIT,

        result_expires=86400,  # Keep discovery results for a day

        task_routes={
            "service_scout.features.discovery.workers.tasks.discover_company_services": {"queue": "discovery.crawl"},
        },
        task_queues=(
            Queue("default"),
            Queue("discovery.crawl"),
        ),
        task_default_queue="default",

        worker_prefetch_multiplier=1,
        task_acks_late=True,
        task_reject_on_worker_lost=True,
    )

    celery_app.autodiscover_tasks(["service_scout.features.discovery.workers"])

    return celery_app


celery_app = create_celery_app()
