"""CardFund Tasks Module."""

from cardfund.tasks.billing import (
    process_monthly_fees,
    process_user_monthly_fees,
    schedule_monthly_fees,
)
from cardfund.tasks.celery_app import celery_app
from cardfund.tasks.reconciliation import reconcile_balances

__all__ = [
    "celery_app",
    "schedule_monthly_fees",
    "process_monthly_fees",
    "process_user_monthly_fees",
    "reconcile_balances",
]
