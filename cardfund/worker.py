"""Celery worker entry point.

Usage:
    celery -A cardfund.worker worker -Q billing,reconciliation -l info
    celery -A cardfund.worker beat -l info
"""

import logging
from collections.abc import Iterable

from celery import Celery
from celery.signals import worker_ready, worker_shutdown

from cardfund.tasks.celery_app import BILLING_QUEUE, RECONCILIATION_QUEUE, celery_app
from cardfund.tasks.worker_pool import SignalHandle, WorkerPool

logger = logging.getLogger(__name__)


def create_worker_app(
    queues: Iterable[str] = (BILLING_QUEUE, RECONCILIATION_QUEUE),
) -> Celery:
    """Wire task monitoring into the worker lifecycle.

    Returns:
        The configured Celery application
    """
    pool = WorkerPool(queues)
    handles: list[SignalHandle] = []

    def on_worker_ready(**kwargs) -> None:
        handles.extend(pool.start())

    def on_worker_shutdown(**kwargs) -> None:
        pool.stop(handles)
        handles.clear()
        logger.info(f"Worker stopped, task outcomes: {pool.status()}")

    worker_ready.connect(on_worker_ready, weak=False)
    worker_shutdown.connect(on_worker_shutdown, weak=False)
    return celery_app


app = create_worker_app()
