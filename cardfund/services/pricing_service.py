"""Pricing Service - Fee calculation and card fee billing.

Fee rules:
- Deposit fee is subtracted from the deposit: net = amount - fee
- Withdrawal fee is added on top: total = amount + fee
- Percentage fees are rounded to 2 decimal places, half-up
- Monthly card fees are scheduled once per card per billing month with the
  fee locked in, then charged from the user's balance once due
"""

import logging
from datetime import date
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from cardfund.core.config import get_settings
from cardfund.core.exceptions import InsufficientBalanceError, UserNotFoundError
from cardfund.core.redis import UserLockFactory
from cardfund.models.ledger import FEE_TYPES, LedgerTransactionType
from cardfund.models.monthly_fee import CardMonthlyFee, MonthlyFeeStatus
from cardfund.schemas.balance import BalanceDirection
from cardfund.schemas.ledger import LedgerEntryCreate
from cardfund.schemas.pricing import (
    CardAtRisk,
    CardFeeBreakdown,
    CardFees,
    CreationFeeResult,
    CurrentMonthTotals,
    DepositFeeResult,
    FeeBatchResult,
    FeeCalculation,
    FeeSchedule,
    FeeSummary,
    MonthlyFeeBreakdown,
    NextMonthSchedule,
    UpcomingRenewal,
)
from cardfund.services.balance_service import BalanceService
from cardfund.services.card_service import CardService
from cardfund.services.ledger_service import LedgerService
from cardfund.services.monthly_fee_service import MonthlyFeeService
from cardfund.services.tier_service import TierService
from cardfund.utils.amount import percentage_of, quantize_money, to_decimal
from cardfund.utils.dates import (
    first_day_of_month,
    first_day_of_next_month,
    start_of_month,
    utcnow,
)

logger = logging.getLogger(__name__)

UNVERIFIED_TIER_NAME = "Unverified"


class PricingService:
    """Service for card fee calculation and billing."""

    def __init__(self, db: AsyncSession, lock_factory: UserLockFactory | None = None):
        self.db = db
        self.lock_factory = lock_factory
        self.tiers = TierService(db)
        self.balances = BalanceService(db)
        self.ledger = LedgerService(db)
        self.monthly_fees = MonthlyFeeService(db)
        self.cards = CardService(db)

    # =========================================================================
    # Fee calculation
    # =========================================================================

    async def calculate_card_creation_fee(self, user_id: int) -> CardFees:
        """Get the card fees of a user's tier.

        Args:
            user_id: User ID

        Returns:
            CardFees with creation and monthly fee

        Raises:
            UserNotFoundError: If the user has no tier information
        """
        tier_info = await self.tiers.get_user_tier_info(user_id)
        if tier_info is None:
            raise UserNotFoundError(user_id, "User tier information not found")

        return CardFees(
            creation_fee=tier_info.card_creation_fee,
            monthly_fee=tier_info.card_monthly_fee,
            tier_name=tier_info.tier_display_name,
            tier_level=tier_info.tier_level,
            tier_id=tier_info.tier_id,
        )

    async def calculate_deposit_fee(
        self, user_id: int, amount: Decimal | int | float | str
    ) -> FeeCalculation:
        """Calculate the fee deducted from a deposit.

        Args:
            user_id: User ID
            amount: Deposit amount

        Returns:
            FeeCalculation where net_amount is credited to the user
        """
        amount = to_decimal(amount)
        fees = await self.tiers.calculate_user_fees(user_id)
        percentage = fees.deposit_fee_percentage

        fee_amount = quantize_money(percentage_of(amount, percentage))
        net_amount = quantize_money(amount - fee_amount)

        return FeeCalculation(
            amount=amount,
            fee_percentage=percentage,
            fee_amount=fee_amount,
            net_amount=net_amount,
            total_amount=amount,
            description=f"Deposit fee ({percentage}%)",
        )

    async def calculate_withdrawal_fee(
        self, user_id: int, amount: Decimal | int | float | str
    ) -> FeeCalculation:
        """Calculate the fee added on top of a withdrawal.

        Args:
            user_id: User ID
            amount: Withdrawal amount

        Returns:
            FeeCalculation where total_amount is debited from the user
        """
        amount = to_decimal(amount)
        fees = await self.tiers.calculate_user_fees(user_id)
        percentage = fees.withdrawal_fee_percentage

        fee_amount = quantize_money(percentage_of(amount, percentage))
        total_amount = quantize_money(amount + fee_amount)

        return FeeCalculation(
            amount=amount,
            fee_percentage=percentage,
            fee_amount=fee_amount,
            net_amount=amount,
            total_amount=total_amount,
            description=f"Withdrawal fee ({percentage}%)",
        )

    async def apply_deposit_fee(
        self, user_id: int, amount: Decimal | int | float | str
    ) -> DepositFeeResult:
        """Split a deposit into fee and net amount. Does not touch the balance."""
        calculation = await self.calculate_deposit_fee(user_id, amount)
        return DepositFeeResult(
            gross_amount=calculation.amount,
            fee_amount=calculation.fee_amount,
            net_amount=calculation.net_amount,
            fee_percentage=calculation.fee_percentage,
        )

    # =========================================================================
    # Card creation fee
    # =========================================================================

    async def apply_card_creation_fee(self, user_id: int) -> CreationFeeResult:
        """Charge the card creation fee from a user's balance.

        The debit is committed before the ledger entry is written. A failed
        ledger write is logged and leaves a gap for reconciliation; the call
        still succeeds with ``ledger_entry_id=None``.

        When a lock factory is set, the debit and the ledger write run under
        the user's billing lock.

        Args:
            user_id: User ID

        Returns:
            CreationFeeResult

        Raises:
            UserNotFoundError: If the user or their tier does not exist
            InsufficientBalanceError: If the balance does not cover the fee
        """
        if self.lock_factory is None:
            return await self._apply_card_creation_fee(user_id)

        async with self.lock_factory(user_id):
            return await self._apply_card_creation_fee(user_id)

    async def _apply_card_creation_fee(self, user_id: int) -> CreationFeeResult:
        user = await self.balances.find_by_id(user_id)
        if user is None:
            raise UserNotFoundError(user_id)

        card_fees = await self.calculate_card_creation_fee(user_id)
        fee = card_fees.creation_fee

        if user.balance < fee:
            raise InsufficientBalanceError(required=fee, available=user.balance)

        if fee <= 0:
            return CreationFeeResult(fee_applied=Decimal("0"), new_balance=user.balance)

        change = await self.balances.adjust_balance(user_id, fee, BalanceDirection.SUBTRACT)
        await self.db.commit()

        ledger_entry_id = None
        try:
            entry = await self.ledger.append(
                LedgerEntryCreate(
                    user_id=user_id,
                    transaction_type=LedgerTransactionType.CARD_CREATION_FEE,
                    amount=-fee,
                    balance_before=change.balance_before,
                    balance_after=change.balance_after,
                    reference_type="card_creation",
                    description=f"Card creation fee ({card_fees.tier_name})",
                    metadata={
                        "tier_id": card_fees.tier_id,
                        "tier_level": card_fees.tier_level,
                        "tier_name": card_fees.tier_name,
                    },
                )
            )
            await self.db.commit()
            ledger_entry_id = entry.id
        except Exception as e:
            await self.db.rollback()
            logger.error(
                f"Card creation fee debited but ledger entry failed user_id={user_id} "
                f"fee={fee}: {e}"
            )

        logger.info(
            f"Applied card creation fee user_id={user_id} fee={fee} "
            f"new_balance={change.balance_after}"
        )
        return CreationFeeResult(
            fee_applied=fee,
            new_balance=change.balance_after,
            ledger_entry_id=ledger_entry_id,
        )

    # =========================================================================
    # Monthly fees
    # =========================================================================

    async def schedule_monthly_card_fee(
        self, card_id: int, user_id: int, today: date | None = None
    ) -> bool:
        """Schedule next month's fee for a card.

        Idempotent: a second call for the same card and month does nothing.

        Args:
            card_id: Card ID
            user_id: Card holder
            today: Reference date (defaults to the current UTC date)

        Returns:
            True if a new pending record was created
        """
        today = today or utcnow().date()
        billing_month = first_day_of_next_month(today)
        due_date = billing_month.replace(day=get_settings().billing_due_day)

        card_fees = await self.calculate_card_creation_fee(user_id)
        if card_fees.monthly_fee <= 0:
            return False

        created = await self.monthly_fees.create_if_absent(
            CardMonthlyFee(
                card_id=card_id,
                user_id=user_id,
                tier_id=card_fees.tier_id,
                fee_amount=card_fees.monthly_fee,
                billing_month=billing_month,
                due_date=due_date,
                status=MonthlyFeeStatus.PENDING,
            )
        )
        if not created:
            return False

        await self.db.commit()
        logger.info(
            f"Scheduled monthly fee card_id={card_id} user_id={user_id} "
            f"month={billing_month} fee={card_fees.monthly_fee}"
        )
        return True

    async def process_pending_monthly_fees(
        self, user_id: int, as_of: date | None = None
    ) -> FeeBatchResult:
        """Charge every pending monthly fee of a user that is due.

        Each record is committed on its own; a failure on one record never
        stops the others. Only failing to load the pending records raises.

        Args:
            user_id: User ID
            as_of: Charge fees due on or before this date (defaults to today)

        Returns:
            FeeBatchResult with processed/failed counts and the charged total
        """
        as_of = as_of or utcnow().date()
        pending = await self.monthly_fees.find_pending_due(user_id, as_of)
        # Plain values, the ORM objects expire on rollback
        records = [(fee.id, fee.card_id, fee.fee_amount, fee.billing_month) for fee in pending]

        result = FeeBatchResult()
        for fee_id, card_id, fee_amount, billing_month in records:
            try:
                status = await self._charge_monthly_fee(
                    user_id, fee_id, card_id, fee_amount, billing_month
                )
            except Exception:
                logger.exception(f"Error processing monthly fee {fee_id} for user {user_id}")
                await self.db.rollback()
                result.failed += 1
                continue

            if status == MonthlyFeeStatus.CHARGED:
                result.processed += 1
                result.total_amount += fee_amount
            elif status == MonthlyFeeStatus.FAILED:
                result.failed += 1

        if records:
            logger.info(
                f"Processed monthly fees user_id={user_id} processed={result.processed} "
                f"failed={result.failed} total={result.total_amount}"
            )
        return result

    async def _charge_monthly_fee(
        self,
        user_id: int,
        fee_id: int,
        card_id: int,
        fee_amount: Decimal,
        billing_month: date,
    ) -> MonthlyFeeStatus | None:
        """Charge one monthly fee record.

        Returns:
            CHARGED or FAILED, or None when the record was no longer pending
        """
        user = await self.balances.find_by_id(user_id)
        if user is None or user.balance < fee_amount:
            logger.warning(
                f"Monthly fee {fee_id} failed user_id={user_id} fee={fee_amount} "
                f"balance={user.balance if user else None}"
            )
            return await self._fail_monthly_fee(fee_id)

        try:
            change = await self.balances.adjust_balance(
                user_id, fee_amount, BalanceDirection.SUBTRACT
            )
        except InsufficientBalanceError:
            await self.db.rollback()
            logger.warning(f"Monthly fee {fee_id} failed user_id={user_id}: balance changed")
            return await self._fail_monthly_fee(fee_id)

        entry = await self.ledger.append(
            LedgerEntryCreate(
                user_id=user_id,
                transaction_type=LedgerTransactionType.CARD_MONTHLY_FEE,
                amount=-fee_amount,
                balance_before=change.balance_before,
                balance_after=change.balance_after,
                reference_type="monthly_fee",
                reference_id=str(card_id),
                description=f"Card monthly fee {billing_month:%Y-%m}",
                metadata={"monthly_fee_id": fee_id, "billing_month": billing_month.isoformat()},
            )
        )

        if not await self.monthly_fees.mark_charged(fee_id, entry.id):  # type: ignore[arg-type]
            await self.db.rollback()
            logger.warning(f"Monthly fee {fee_id} is no longer pending, skipped")
            return None

        await self.db.commit()
        return MonthlyFeeStatus.CHARGED

    async def _fail_monthly_fee(self, fee_id: int) -> MonthlyFeeStatus | None:
        if not await self.monthly_fees.mark_failed(fee_id):
            await self.db.rollback()
            return None
        await self.db.commit()
        return MonthlyFeeStatus.FAILED

    # =========================================================================
    # Reporting
    # =========================================================================

    async def get_user_fee_summary(self, user_id: int) -> FeeSummary:
        """Get a user's tier, fee schedule, fees owed and fees paid this month.

        Raises:
            UserNotFoundError: If the user does not exist
        """
        user = await self.balances.find_by_id(user_id)
        if user is None:
            raise UserNotFoundError(user_id)

        tier_info = await self.tiers.get_user_tier_info(user_id)
        fees = await self.tiers.calculate_user_fees(user_id)
        owed = await self.monthly_fees.sum_pending(user_id)
        paid = await self.ledger.sum_fees_since(user_id, FEE_TYPES, start_of_month(utcnow()))

        return FeeSummary(
            current_tier=tier_info.tier_display_name if tier_info else UNVERIFIED_TIER_NAME,
            fees=FeeSchedule(
                card_creation=fees.card_creation_fee,
                card_monthly=fees.card_monthly_fee,
                deposit_percentage=fees.deposit_fee_percentage,
                withdrawal_percentage=fees.withdrawal_fee_percentage,
            ),
            monthly_fees_owed=owed,
            total_fees_this_month=paid,
        )

    async def get_upcoming_renewal(self, user_id: int, today: date | None = None) -> UpcomingRenewal:
        """Preview the next monthly renewal against the current balance.

        Only cards the scheduler bills are counted: active cards issued with
        a monthly fee, while the tier charges one. Cards are walked in id
        order, each deducting the per-card fee from the balance; every card
        whose fee is no longer covered is at risk.

        Raises:
            UserNotFoundError: If the user does not exist
        """
        today = today or utcnow().date()
        user = await self.balances.find_by_id(user_id)
        if user is None:
            raise UserNotFoundError(user_id)

        fees = await self.tiers.calculate_user_fees(user_id)
        per_card_fee = fees.card_monthly_fee
        billed_cards = []
        if per_card_fee > 0:
            billed_cards = await self.cards.list_fee_bearing_cards(user_id)

        total = per_card_fee * len(billed_cards)
        balance = user.balance
        next_renewal = first_day_of_next_month(today)

        at_risk = []
        remaining = balance
        for card in billed_cards:
            if remaining >= per_card_fee:
                remaining -= per_card_fee
                continue
            at_risk.append(
                CardAtRisk(
                    card_id=card.id,  # type: ignore[arg-type]
                    card_token=card.card_token,
                    masked_pan=card.masked_pan,
                    monthly_fee=per_card_fee,
                    current_balance=balance,
                )
            )

        return UpcomingRenewal(
            next_renewal_date=next_renewal,
            days_until_renewal=(next_renewal - today).days,
            total_renewal_amount=total,
            active_cards_count=len(billed_cards),
            per_card_fee=per_card_fee,
            current_balance=balance,
            sufficient_balance=balance >= total,
            balance_shortfall=max(total - balance, Decimal("0")),
            cards_at_risk=at_risk,
        )

    async def get_monthly_fee_breakdown(
        self, user_id: int, today: date | None = None
    ) -> MonthlyFeeBreakdown:
        """Break down a user's monthly fees by billing month and card.

        Raises:
            UserNotFoundError: If the user does not exist
        """
        today = today or utcnow().date()
        user = await self.balances.find_by_id(user_id)
        if user is None:
            raise UserNotFoundError(user_id)

        current = CurrentMonthTotals()
        for fee in await self.monthly_fees.list_for_user_month(user_id, first_day_of_month(today)):
            if fee.status == MonthlyFeeStatus.CHARGED:
                current.paid += fee.fee_amount
            elif fee.status == MonthlyFeeStatus.PENDING:
                current.pending += fee.fee_amount
            else:
                current.failed += fee.fee_amount

        next_month = first_day_of_next_month(today)
        scheduled = sum(
            (
                fee.fee_amount
                for fee in await self.monthly_fees.list_for_user_month(user_id, next_month)
                if fee.status == MonthlyFeeStatus.PENDING
            ),
            Decimal("0"),
        )

        card_rows = []
        for card in await self.cards.list_active_cards(user_id):
            latest = await self.monthly_fees.get_latest_for_card(card.id)  # type: ignore[arg-type]
            last_charged = await self.monthly_fees.get_last_charged_for_card(card.id)  # type: ignore[arg-type]
            card_rows.append(
                CardFeeBreakdown(
                    card_id=card.id,  # type: ignore[arg-type]
                    masked_pan=card.masked_pan,
                    nickname=card.nickname,
                    monthly_fee=card.monthly_fee_amount,
                    status=latest.status if latest else None,
                    last_payment_date=last_charged.charged_at if last_charged else None,
                    next_payment_due=(
                        latest.due_date
                        if latest and latest.status == MonthlyFeeStatus.PENDING
                        else None
                    ),
                )
            )

        return MonthlyFeeBreakdown(
            current_month=current,
            next_month=NextMonthSchedule(
                scheduled=scheduled,
                due_date=next_month.replace(day=get_settings().billing_due_day),
            ),
            card_breakdown=card_rows,
        )
