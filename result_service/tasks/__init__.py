"""Celery tasks for the result service.

There is no beat schedule. CheckResult and NotifySubscriber tasks are sent
with an ETA by the TaskScheduler; the alias backfill is sent on demand.
"""

from celery import Celery

from result_service.config import get_settings
from result_service.logging_config import configure_logging

settings = get_settings()

configure_logging(settings.log_level)

# Create Celery application
celery_app = Celery(
    "result_service",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "result_service.tasks.result_check",
        "result_service.tasks.notification",
        "result_service.tasks.backfill",
    ],
)

# Celery configuration
celery_app.conf.update(
    # Serialization
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    # Timezone
    timezone="UTC",
    enable_utc=True,
    # Delivery: acknowledge after the task ran, redeliver if the worker died
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    # ETA tasks wait in the worker unacknowledged. A match registered days ahead
    # outlives this timeout, so Redis redelivers its attempt 1 one or more times.
    # The copies are absorbed: check_result only acts on a scheduled match and
    # the next attempt name can be claimed once.
    broker_transport_options={
        "visibility_timeout": settings.celery_visibility_timeout_seconds
    },
    # Task behavior
    task_track_started=True,
    task_time_limit=300,  # 5 minute hard limit
    task_soft_time_limit=240,  # 4 minute soft limit
    task_routes={
        "result_service.tasks.result_check.*": {"queue": settings.check_result_queue},
        "result_service.tasks.notification.*": {"queue": settings.notify_subscriber_queue},
    },
    # Result expiration
    result_expires=3600,  # 1 hour
    # Worker settings
    worker_prefetch_multiplier=1,
    worker_concurrency=4,
)
