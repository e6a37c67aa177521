"""Monthly Fee Service - persistence of scheduled card monthly fees."""

import logging
from datetime import date
from decimal import Decimal

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from cardfund.models.monthly_fee import CardMonthlyFee, MonthlyFeeStatus
from cardfund.utils.dates import utcnow

logger = logging.getLogger(__name__)


class MonthlyFeeService:
    """Service for monthly fee records.

    Status transitions are conditional on the record still being pending, so
    a record is charged or failed at most once. None of the methods commit.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_pending_due(self, user_id: int, as_of: date) -> list[CardMonthlyFee]:
        """Pending records of a user due on or before ``as_of``.

        Ordered by due date, then id.
        """
        result = await self.db.execute(
            select(CardMonthlyFee)
            .where(
                CardMonthlyFee.user_id == user_id,
                CardMonthlyFee.status == MonthlyFeeStatus.PENDING,
                CardMonthlyFee.due_date <= as_of,
            )
            .order_by(CardMonthlyFee.due_date, CardMonthlyFee.id)
        )
        return list(result.scalars().all())

    async def find_by_card_and_month(
        self, card_id: int, billing_month: date
    ) -> CardMonthlyFee | None:
        """Get the record of a card for one billing month."""
        result = await self.db.execute(
            select(CardMonthlyFee).where(
                CardMonthlyFee.card_id == card_id,
                CardMonthlyFee.billing_month == billing_month,
            )
        )
        return result.scalar_one_or_none()

    async def create_if_absent(self, record: CardMonthlyFee) -> bool:
        """Insert a record unless one exists for the same card and month.

        A concurrent insert losing the unique constraint is rolled back and
        reported as not created.

        Returns:
            True if the record was inserted
        """
        existing = await self.find_by_card_and_month(record.card_id, record.billing_month)
        if existing is not None:
            return False

        try:
            self.db.add(record)
            await self.db.flush()
        except IntegrityError:
            await self.db.rollback()
            logger.info(
                f"Monthly fee for card {record.card_id} month {record.billing_month} "
                f"already scheduled"
            )
            return False

        return True

    async def mark_charged(self, fee_id: int, ledger_entry_id: int) -> bool:
        """Transition a pending record to charged.

        Returns:
            False if the record was no longer pending
        """
        now = utcnow()
        result = await self.db.execute(
            update(CardMonthlyFee)
            .where(
                CardMonthlyFee.id == fee_id,
                CardMonthlyFee.status == MonthlyFeeStatus.PENDING,
            )
            .values(
                status=MonthlyFeeStatus.CHARGED,
                charged_at=now,
                balance_ledger_id=ledger_entry_id,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def mark_failed(self, fee_id: int) -> bool:
        """Transition a pending record to failed.

        Returns:
            False if the record was no longer pending
        """
        result = await self.db.execute(
            update(CardMonthlyFee)
            .where(
                CardMonthlyFee.id == fee_id,
                CardMonthlyFee.status == MonthlyFeeStatus.PENDING,
            )
            .values(status=MonthlyFeeStatus.FAILED, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def sum_pending(self, user_id: int) -> Decimal:
        """Total of a user's pending fee amounts, whatever their due date."""
        result = await self.db.execute(
            select(CardMonthlyFee.fee_amount).where(
                CardMonthlyFee.user_id == user_id,
                CardMonthlyFee.status == MonthlyFeeStatus.PENDING,
            )
        )
        return sum(result.scalars().all(), Decimal("0"))

    async def list_for_user_month(self, user_id: int, billing_month: date) -> list[CardMonthlyFee]:
        """A user's records for one billing month, ordered by card."""
        result = await self.db.execute(
            select(CardMonthlyFee)
            .where(
                CardMonthlyFee.user_id == user_id,
                CardMonthlyFee.billing_month == billing_month,
            )
            .order_by(CardMonthlyFee.card_id)
        )
        return list(result.scalars().all())

    async def get_latest_for_card(self, card_id: int) -> CardMonthlyFee | None:
        """Most recent billing month record of a card."""
        result = await self.db.execute(
            select(CardMonthlyFee)
            .where(CardMonthlyFee.card_id == card_id)
            .order_by(CardMonthlyFee.billing_month.desc())
            .limit(1)
        )
        return result.scalars().first()

    async def get_last_charged_for_card(self, card_id: int) -> CardMonthlyFee | None:
        """Most recently charged record of a card."""
        result = await self.db.execute(
            select(CardMonthlyFee)
            .where(
                CardMonthlyFee.card_id == card_id,
                CardMonthlyFee.status == MonthlyFeeStatus.CHARGED,
            )
            .order_by(CardMonthlyFee.charged_at.desc())
            .limit(1)
        )
        return result.scalars().first()

    async def users_with_pending_due(self, as_of: date) -> list[int]:
        """Distinct ids of users owning pending records due on or before ``as_of``."""
        result = await self.db.execute(
            select(CardMonthlyFee.user_id)
            .where(
                CardMonthlyFee.status == MonthlyFeeStatus.PENDING,
                CardMonthlyFee.due_date <= as_of,
            )
            .distinct()
            .order_by(CardMonthlyFee.user_id)
        )
        return list(result.scalars().all())
