"""Balance Service - the user balance store.

``User.balance`` is only ever changed through ``adjust_balance``, a single
conditional UPDATE evaluated by the database, so concurrent writers never
race on a read-modify-write.
"""

import logging
from decimal import Decimal

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from cardfund.core.exceptions import (
    InsufficientBalanceError,
    PersistenceError,
    UserNotFoundError,
)
from cardfund.models.user import User
from cardfund.schemas.balance import BalanceChange, BalanceDirection
from cardfund.utils.dates import utcnow

logger = logging.getLogger(__name__)


class BalanceService:
    """Service for reading and atomically adjusting user balances."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_id(self, user_id: int) -> User | None:
        """Load a user with a fresh balance.

        Always re-reads the row, even when the user is already in the
        session's identity map.
        """
        return await self.db.get(User, user_id, populate_existing=True)

    async def adjust_balance(
        self,
        user_id: int,
        amount: Decimal,
        direction: BalanceDirection,
    ) -> BalanceChange:
        """Atomically add to or subtract from a user's balance.

        Does not commit; the caller owns the transaction.

        Args:
            user_id: User to adjust
            amount: Positive amount
            direction: add or subtract

        Returns:
            BalanceChange with before/after snapshots

        Raises:
            ValueError: If amount is not positive
            UserNotFoundError: If the user does not exist
            InsufficientBalanceError: If a subtraction would make the balance negative
            PersistenceError: If the update fails
        """
        if amount <= 0:
            raise ValueError(f"Balance adjustment must be positive, got {amount}")

        stmt = update(User).where(User.id == user_id)
        if direction == BalanceDirection.ADD:
            stmt = stmt.values(balance=User.balance + amount, updated_at=utcnow())
        else:
            stmt = stmt.where(User.balance >= amount).values(
                balance=User.balance - amount, updated_at=utcnow()
            )

        try:
            result = await self.db.execute(stmt.execution_options(synchronize_session=False))
        except SQLAlchemyError as e:
            logger.error(f"Balance update failed user_id={user_id} amount={amount}: {e}")
            raise PersistenceError("Failed to update balance", {"user_id": user_id}) from e

        if result.rowcount == 0:
            user = await self.find_by_id(user_id)
            if user is None:
                raise UserNotFoundError(user_id)
            raise InsufficientBalanceError(required=amount, available=user.balance)

        balance_after = (
            await self.db.execute(select(User.balance).where(User.id == user_id))
        ).scalar_one()

        if direction == BalanceDirection.ADD:
            balance_before = balance_after - amount
        else:
            balance_before = balance_after + amount

        logger.debug(
            f"Balance {direction.value} user_id={user_id} amount={amount} "
            f"{balance_before} -> {balance_after}"
        )
        return BalanceChange(
            user_id=user_id,
            balance_before=balance_before,
            balance_after=balance_after,
        )
