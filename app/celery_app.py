from celery import Celery
from celery.schedules import crontab
from celery.signals import setup_logging, worker_process_init

from app.config import settings
from app.logging import configure_logging
from app.telemetry import setup_otel

celery_app = Celery(
    "performance_engine",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["app.tasks.performance"],
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
)

celery_app.conf.beat_schedule = {
    "performance_weekly_reports": {
        "task": "app.tasks.performance.generate_weekly_reports",
        # Early Monday, after the previous week has closed.
        "schedule": crontab(minute=15, hour=1, day_of_week="mon"),
    },
    "performance_kpi_rollover": {
        "task": "app.tasks.performance.rollover_kpis",
        "schedule": crontab(minute=5, hour=0, day_of_week="mon"),
    },
}


@setup_logging.connect
def _configure_worker_logging(**_kwargs) -> None:
    configure_logging()


@worker_process_init.connect
def _configure_worker_tracing(**_kwargs) -> None:
    setup_otel()
