"""ERP Core — Celery worker configuration."""
from celery import Celery
from celery.signals import setup_logging

from erp_core.config import get_settings
from erp_core.core.logging import configure_logging

settings = get_settings()

celery_app = Celery(
    "erp_core",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.REDIS_URL,
    include=["erp_core.tasks.replenishment_tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_default_retry_delay=60,
    task_routes={
        "erp_core.tasks.*": {"queue": "default"},
    },
)

# Celery Beat schedule
celery_app.conf.beat_schedule = {
    "refresh-replenishment-cache-60s": {
        "task": "erp_core.tasks.replenishment_tasks.refresh_replenishment_cache",
        "schedule": 60.0,  # every 60 seconds
    },
}


@setup_logging.connect
def _configure_worker_logging(**kwargs):
    configure_logging()
