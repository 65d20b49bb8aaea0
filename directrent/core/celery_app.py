"""
Celery application for payout settlement and quota housekeeping.

settle_payout is queued per payout with a countdown; the beat schedule sweeps
payouts whose timer was lost and resets elapsed quota cycles.
"""
from celery import Celery
from celery.schedules import crontab
from celery.signals import setup_logging

from directrent.core.config import settings
from directrent.core.logging import configure_logging

celery_app = Celery(
    "directrent",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=[
        "directrent.workers.tasks.settle_payout",
        "directrent.workers.tasks.quota_cycle",
    ],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    # a redelivered settlement finds the row claimed or terminal and no-ops
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_track_started=True,
    task_time_limit=300,
    result_expires=86400,
    beat_schedule={
        "settle-overdue-payouts": {
            "task": "directrent.workers.tasks.settle_payout.settle_overdue_payouts",
            "schedule": float(settings.payout_overdue_sweep_seconds),
        },
        "reset-expired-quota-cycles": {
            "task": "directrent.workers.tasks.quota_cycle.reset_expired_quota_cycles",
            "schedule": crontab(minute=15),
        },
    },
)


@setup_logging.connect
def _configure_worker_logging(**kwargs) -> None:
    configure_logging(service="directrent-worker")
