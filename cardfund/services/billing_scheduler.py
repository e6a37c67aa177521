"""Monthly fee scheduler - drives the pricing service across all users."""

import logging
from decimal import Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import sessionmaker

from cardfund.core.redis import UserLockFactory
from cardfund.schemas.pricing import FeeBatchResult
from cardfund.services.card_service import CardService
from cardfund.services.monthly_fee_service import MonthlyFeeService
from cardfund.services.pricing_service import PricingService
from cardfund.utils.dates import utcnow

logger = logging.getLogger(__name__)


class MonthlyFeeScheduler:
    """Schedules and charges monthly card fees for every user.

    Each user is handled in its own session. When a lock factory is given,
    charging one user's fees holds that user's lock so two runs never charge
    the same user concurrently.
    """

    def __init__(
        self,
        session_factory: "sessionmaker[AsyncSession]",
        lock_factory: UserLockFactory | None = None,
    ):
        self.session_factory = session_factory
        self.lock_factory = lock_factory

    async def schedule_all(self) -> dict[str, int]:
        """Schedule next month's fee for every active card with a monthly fee.

        Returns:
            Counts of cards seen, records scheduled, cards skipped and errors
        """
        async with self.session_factory() as db:
            cards = [(c.id, c.user_id) for c in await CardService(db).list_fee_bearing_cards()]

        stats = {"cards": len(cards), "scheduled": 0, "skipped": 0, "errors": 0}
        for card_id, user_id in cards:
            try:
                async with self.session_factory() as db:
                    created = await PricingService(db).schedule_monthly_card_fee(card_id, user_id)
            except Exception:
                logger.exception(f"Failed to schedule monthly fee for card {card_id}")
                stats["errors"] += 1
                continue

            if created:
                stats["scheduled"] += 1
            else:
                stats["skipped"] += 1

        logger.info(
            f"Monthly fee scheduling done: {stats['scheduled']} scheduled, "
            f"{stats['skipped']} skipped, {stats['errors']} errors"
        )
        return stats

    async def process_user(self, user_id: int) -> FeeBatchResult:
        """Charge one user's due monthly fees."""
        if self.lock_factory is None:
            return await self._process_user(user_id)

        async with self.lock_factory(user_id):
            return await self._process_user(user_id)

    async def _process_user(self, user_id: int) -> FeeBatchResult:
        async with self.session_factory() as db:
            return await PricingService(db).process_pending_monthly_fees(user_id)

    async def process_all(self) -> dict[str, Any]:
        """Charge due monthly fees for every user that owes any.

        A failing user is logged and counted, the run moves on to the next.

        Returns:
            Per-user and per-record totals
        """
        async with self.session_factory() as db:
            user_ids = await MonthlyFeeService(db).users_with_pending_due(utcnow().date())

        stats: dict[str, Any] = {
            "total_users": len(user_ids),
            "successful_users": 0,
            "failed_users": 0,
            "processed": 0,
            "failed": 0,
            "total_amount": Decimal("0"),
        }

        for user_id in user_ids:
            try:
                result = await self.process_user(user_id)
            except Exception:
                logger.exception(f"Failed to process monthly fees for user {user_id}")
                stats["failed_users"] += 1
                continue

            stats["successful_users"] += 1
            stats["processed"] += result.processed
            stats["failed"] += result.failed
            stats["total_amount"] += result.total_amount

        logger.info(
            f"Monthly fee processing done: {stats['successful_users']}/{stats['total_users']} "
            f"users, {stats['processed']} charged, {stats['failed']} failed, "
            f"total {stats['total_amount']}"
        )
        return stats
