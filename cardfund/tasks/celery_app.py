"""Celery configuration.

Usage:
    # Start a worker for both queues
    celery -A cardfund.worker worker -Q billing,reconciliation -l info

    # Start beat scheduler
    celery -A cardfund.worker beat -l info
"""

from celery import Celery
from celery.schedules import crontab

from cardfund.core.config import get_settings

settings = get_settings()

BILLING_QUEUE = "billing"
RECONCILIATION_QUEUE = "reconciliation"

celery_app = Celery(
    "cardfund_tasks",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "cardfund.tasks.billing",
        "cardfund.tasks.reconciliation",
    ],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    result_expires=3600,
    task_default_retry_delay=60,
    task_max_retries=3,
    task_default_queue=BILLING_QUEUE,
    task_routes={
        "billing.*": {"queue": BILLING_QUEUE},
        "reconciliation.*": {"queue": RECONCILIATION_QUEUE},
    },
)

if settings.enable_scheduled_jobs:
    celery_app.conf.beat_schedule = {
        # Next month's records are created ahead of the cycle
        "schedule-monthly-fees": {
            "task": "billing.schedule_monthly_fees",
            "schedule": crontab(minute=0, hour=2, day_of_month=25),
        },
        "process-monthly-fees": {
            "task": "billing.process_monthly_fees",
            "schedule": crontab(minute=0, hour=2),
        },
        "reconcile-balances": {
            "task": "reconciliation.reconcile_balances",
            "schedule": crontab(minute=0),
        },
    }
