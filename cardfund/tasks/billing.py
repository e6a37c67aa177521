"""Monthly card fee tasks.

This module contains Celery tasks for the monthly fee cycle:
- Scheduling next month's fee records
- Charging due fee records for all users, or for one user on demand
"""

import asyncio
import logging
import time

from cardfund.core.redis import close_redis, init_redis, user_lock
from cardfund.db.engine import async_session_factory, close_db
from cardfund.services.billing_scheduler import MonthlyFeeScheduler
from cardfund.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


def run_async(coro):
    """Run async coroutine in sync context for Celery."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def build_scheduler() -> MonthlyFeeScheduler:
    """Scheduler using the shared session factory and per-user Redis locks."""
    return MonthlyFeeScheduler(async_session_factory, lock_factory=user_lock)


@celery_app.task(name="billing.schedule_monthly_fees")
def schedule_monthly_fees() -> dict:
    """Create next month's pending fee records for every fee-bearing card.

    Returns:
        Dict with scheduling counts
    """
    return run_async(_schedule_monthly_fees_async())


async def _schedule_monthly_fees_async() -> dict:
    """Async implementation of schedule_monthly_fees."""
    start_time = time.time()
    logger.info("[schedule_monthly_fees] start")

    try:
        stats = await build_scheduler().schedule_all()
        elapsed = time.time() - start_time
        logger.info(f"[schedule_monthly_fees] done {stats} elapsed={elapsed:.3f}s")
        return {"success": True, **stats}
    except Exception as e:
        logger.exception(f"[schedule_monthly_fees] failed: {e}")
        return {"success": False, "error": str(e)}
    finally:
        await close_db()


@celery_app.task(name="billing.process_monthly_fees")
def process_monthly_fees() -> dict:
    """Charge due monthly fees for every user that owes any.

    Returns:
        Dict with per-user and per-record totals
    """
    return run_async(_process_monthly_fees_async())


async def _process_monthly_fees_async() -> dict:
    """Async implementation of process_monthly_fees."""
    start_time = time.time()
    logger.info("[process_monthly_fees] start")

    await init_redis()
    try:
        stats = await build_scheduler().process_all()
        elapsed = time.time() - start_time
        logger.info(
            f"[process_monthly_fees] users={stats['total_users']} "
            f"charged={stats['processed']} failed={stats['failed']} elapsed={elapsed:.3f}s"
        )
        return {"success": True, **stats, "total_amount": str(stats["total_amount"])}
    except Exception as e:
        logger.exception(f"[process_monthly_fees] failed: {e}")
        return {"success": False, "error": str(e)}
    finally:
        await close_redis()
        await close_db()


@celery_app.task(name="billing.process_user_monthly_fees")
def process_user_monthly_fees(user_id: int) -> dict:
    """Charge one user's due monthly fees.

    Args:
        user_id: User ID

    Returns:
        Dict with the batch result
    """
    return run_async(_process_user_monthly_fees_async(user_id))


async def _process_user_monthly_fees_async(user_id: int) -> dict:
    """Async implementation of process_user_monthly_fees."""
    logger.info(f"[process_user_monthly_fees] user_id={user_id}")

    await init_redis()
    try:
        result = await build_scheduler().process_user(user_id)
        logger.info(
            f"[process_user_monthly_fees] user_id={user_id} charged={result.processed} "
            f"failed={result.failed} total={result.total_amount}"
        )
        return {"success": True, **result.model_dump(mode="json")}
    except Exception as e:
        logger.exception(f"[process_user_monthly_fees] user_id={user_id} failed: {e}")
        return {"success": False, "error": str(e)}
    finally:
        await close_redis()
        await close_db()
