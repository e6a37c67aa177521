"""Ledger Service - Business logic for the append-only balance ledger.

Sign contract: credits are positive, debits negative. Every entry must
satisfy ``balance_after - balance_before == amount``. An entry that does not
start from the previous entry's ``balance_after`` is logged as a gap and kept.
"""

import logging
from decimal import Decimal
from typing import Any

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from cardfund.core.exceptions import LedgerIntegrityError, PersistenceError
from cardfund.models.ledger import (
    CREDIT_TYPES,
    DEBIT_TYPES,
    BalanceLedgerEntry,
    LedgerTransactionType,
)
from cardfund.schemas.balance import BalanceDirection
from cardfund.schemas.ledger import (
    BalanceValidation,
    LedgerEntryCreate,
    LedgerQueryParams,
    LedgerSummary,
)
from cardfund.services.balance_service import BalanceService
from cardfund.utils.amount import amounts_match

logger = logging.getLogger(__name__)

ADMIN_ADJUSTMENT = "admin_adjustment"


class LedgerService:
    """Service for ledger-related business logic."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # =========================================================================
    # Writes
    # =========================================================================

    async def append(self, data: LedgerEntryCreate) -> BalanceLedgerEntry:
        """Append one immutable ledger entry.

        Validates the entry and flushes it to obtain its id. Does not commit;
        the caller owns the transaction.

        Args:
            data: Entry to write

        Returns:
            The stored entry

        Raises:
            LedgerIntegrityError: Amount sign or before/after snapshots are inconsistent
            PersistenceError: The write failed
        """
        self._check_integrity(data)
        await self._check_continuity(data)

        entry = BalanceLedgerEntry(
            user_id=data.user_id,
            transaction_type=data.transaction_type,
            amount=data.amount,
            balance_before=data.balance_before,
            balance_after=data.balance_after,
            reference_type=data.reference_type,
            reference_id=data.reference_id,
            description=data.description,
            entry_metadata=data.metadata,
        )

        try:
            self.db.add(entry)
            await self.db.flush()
        except SQLAlchemyError as e:
            logger.error(f"Failed to write ledger entry user_id={data.user_id}: {e}")
            raise PersistenceError(
                "Failed to create ledger entry",
                {"user_id": data.user_id, "transaction_type": data.transaction_type.value},
            ) from e

        logger.info(
            f"Created ledger entry id={entry.id} user_id={entry.user_id} "
            f"type={entry.transaction_type.value} amount={entry.amount} "
            f"balance_after={entry.balance_after}"
        )
        return entry

    async def create_adjustment_entry(
        self,
        user_id: int,
        amount: Decimal,
        reason: str,
        operator_id: int,
    ) -> BalanceLedgerEntry:
        """Append a ledger-only correction starting from the ledger's latest balance.

        Used to close a gap between the ledger and the balance store (for
        example after a ledger write failed behind a committed debit). The
        stored balance is not touched.

        Args:
            user_id: User whose ledger is corrected
            amount: Signed correction
            reason: Why the correction is made
            operator_id: Admin performing the correction

        Returns:
            Created ledger entry
        """
        current = await self.latest_balance(user_id) or Decimal("0")
        entry = await self.append(
            LedgerEntryCreate(
                user_id=user_id,
                transaction_type=LedgerTransactionType.ADJUSTMENT,
                amount=amount,
                balance_before=current,
                balance_after=current + amount,
                reference_type=ADMIN_ADJUSTMENT,
                reference_id=str(operator_id),
                description=reason,
            )
        )
        await self.db.commit()

        logger.info(
            f"Created ledger adjustment user_id={user_id} amount={amount} "
            f"operator_id={operator_id} reason={reason!r}"
        )
        return entry

    async def manual_balance_adjust(
        self,
        user_id: int,
        amount: Decimal,
        reason: str,
        operator_id: int,
    ) -> BalanceLedgerEntry:
        """Adjust a user's stored balance and record it in the ledger (admin only).

        Args:
            user_id: Target user ID
            amount: Amount to add (positive) or deduct (negative)
            reason: Reason for adjustment
            operator_id: Admin performing the operation

        Returns:
            Created ledger entry

        Raises:
            ValueError: If amount is zero
            UserNotFoundError: If the user does not exist
            InsufficientBalanceError: If a deduction exceeds the balance
        """
        if amount == 0:
            raise ValueError("Adjustment amount must not be zero")

        direction = BalanceDirection.ADD if amount > 0 else BalanceDirection.SUBTRACT
        change = await BalanceService(self.db).adjust_balance(user_id, abs(amount), direction)

        try:
            entry = await self.append(
                LedgerEntryCreate(
                    user_id=user_id,
                    transaction_type=LedgerTransactionType.ADJUSTMENT,
                    amount=amount,
                    balance_before=change.balance_before,
                    balance_after=change.balance_after,
                    reference_type=ADMIN_ADJUSTMENT,
                    reference_id=str(operator_id),
                    description=reason,
                )
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        return entry

    # =========================================================================
    # Reads
    # =========================================================================

    async def get_last_entry(self, user_id: int) -> BalanceLedgerEntry | None:
        """Most recent entry of a user, or None."""
        result = await self.db.execute(
            select(BalanceLedgerEntry)
            .where(BalanceLedgerEntry.user_id == user_id)
            .order_by(BalanceLedgerEntry.created_at.desc(), BalanceLedgerEntry.id.desc())
            .limit(1)
        )
        return result.scalars().first()

    async def latest_balance(self, user_id: int) -> Decimal | None:
        """Balance after the user's most recent entry, or None if there are none."""
        entry = await self.get_last_entry(user_id)
        return entry.balance_after if entry else None

    async def summarize(self, user_id: int) -> LedgerSummary:
        """Aggregate all ledger entries of a user.

        Positive amounts count as credits, everything else as debits (by
        absolute value); net_amount is the signed total.
        """
        result = await self.db.execute(
            select(BalanceLedgerEntry.amount, BalanceLedgerEntry.created_at).where(
                BalanceLedgerEntry.user_id == user_id
            )
        )
        rows = result.all()

        summary = LedgerSummary(transaction_count=len(rows))
        for amount, created_at in rows:
            if amount > 0:
                summary.total_credits += amount
            else:
                summary.total_debits += abs(amount)
            summary.net_amount += amount
            if summary.last_transaction_at is None or created_at > summary.last_transaction_at:
                summary.last_transaction_at = created_at

        return summary

    async def list_entries(
        self,
        user_id: int,
        params: LedgerQueryParams,
    ) -> tuple[list[BalanceLedgerEntry], int]:
        """List a user's ledger entries with pagination, newest first.

        Args:
            user_id: User ID
            params: Query parameters

        Returns:
            Tuple of (entries, total_count)
        """
        query = select(BalanceLedgerEntry).where(BalanceLedgerEntry.user_id == user_id)

        if params.transaction_type:
            query = query.where(BalanceLedgerEntry.transaction_type == params.transaction_type)
        if params.start_date:
            query = query.where(BalanceLedgerEntry.created_at >= params.start_date)
        if params.end_date:
            query = query.where(BalanceLedgerEntry.created_at <= params.end_date)

        # Count total
        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        # Apply pagination and ordering
        query = query.order_by(
            BalanceLedgerEntry.created_at.desc(), BalanceLedgerEntry.id.desc()
        )
        offset = (params.page - 1) * params.page_size
        query = query.offset(offset).limit(params.page_size)

        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def find_by_reference(
        self, reference_type: str, reference_id: str
    ) -> list[BalanceLedgerEntry]:
        """Entries linked to one originating entity, newest first."""
        result = await self.db.execute(
            select(BalanceLedgerEntry)
            .where(
                BalanceLedgerEntry.reference_type == reference_type,
                BalanceLedgerEntry.reference_id == reference_id,
            )
            .order_by(BalanceLedgerEntry.created_at.desc(), BalanceLedgerEntry.id.desc())
        )
        return list(result.scalars().all())

    async def sum_fees_since(self, user_id: int, types: frozenset, since: Any) -> Decimal:
        """Total debited by entries of the given types created at or after ``since``."""
        result = await self.db.execute(
            select(BalanceLedgerEntry.amount).where(
                BalanceLedgerEntry.user_id == user_id,
                BalanceLedgerEntry.transaction_type.in_(list(types)),
                BalanceLedgerEntry.created_at >= since,
            )
        )
        return sum((abs(amount) for amount in result.scalars().all()), Decimal("0"))

    async def validate_balance(self, user_id: int, expected: Decimal) -> BalanceValidation:
        """Compare an expected balance with the ledger's latest balance.

        A user without entries is valid only when the expected balance is 0.
        """
        actual = await self.latest_balance(user_id)
        if actual is None:
            return BalanceValidation(
                is_valid=expected == 0,
                actual_balance=None,
                difference=abs(expected),
            )

        difference = abs(expected - actual)
        is_valid = amounts_match(expected, actual)
        if not is_valid:
            logger.warning(
                f"Balance validation failed user_id={user_id} expected={expected} "
                f"actual={actual} difference={difference}"
            )

        return BalanceValidation(is_valid=is_valid, actual_balance=actual, difference=difference)

    async def recalculate_balance(self, user_id: int) -> Decimal:
        """Rebuild a balance as the signed sum of all of the user's entries."""
        result = await self.db.execute(
            select(BalanceLedgerEntry.amount).where(BalanceLedgerEntry.user_id == user_id)
        )
        amounts = result.scalars().all()
        balance = sum(amounts, Decimal("0"))

        logger.info(
            f"Recalculated balance user_id={user_id} balance={balance} "
            f"transaction_count={len(amounts)}"
        )
        return balance

    # =========================================================================
    # Validation
    # =========================================================================

    @staticmethod
    def _check_integrity(data: LedgerEntryCreate) -> None:
        """Check the amount's sign and the before/after snapshots."""
        if data.transaction_type in DEBIT_TYPES and data.amount > 0:
            raise LedgerIntegrityError(
                f"{data.transaction_type.value} entries must have a negative amount",
                {"amount": str(data.amount)},
            )
        if data.transaction_type in CREDIT_TYPES and data.amount < 0:
            raise LedgerIntegrityError(
                f"{data.transaction_type.value} entries must have a positive amount",
                {"amount": str(data.amount)},
            )

        change = data.balance_after - data.balance_before
        if not amounts_match(change, data.amount):
            logger.error(
                f"Balance integrity check failed user_id={data.user_id}: "
                f"amount {data.amount}, balance change {change}"
            )
            raise LedgerIntegrityError(
                f"Balance integrity check failed: expected change {data.amount}, got {change}",
                {"user_id": data.user_id},
            )

    async def _check_continuity(self, data: LedgerEntryCreate) -> None:
        """Warn when the entry does not start where the previous entry ended.

        A gap is left by a balance change whose ledger write failed. The entry
        is still appended; reconciliation reports the drift.
        """
        last_entry = await self.get_last_entry(data.user_id)
        if last_entry is None:
            return

        if not amounts_match(last_entry.balance_after, data.balance_before):
            logger.warning(
                f"Ledger gap user_id={data.user_id}: last entry {last_entry.id} ended at "
                f"{last_entry.balance_after}, new balance_before {data.balance_before}"
            )
