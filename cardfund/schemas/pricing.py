"""Pricing schemas - fee calculations and billing results."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from cardfund.models.monthly_fee import MonthlyFeeStatus


class CardFees(BaseModel):
    """Card fees for a user's tier."""

    creation_fee: Decimal
    monthly_fee: Decimal
    tier_name: str
    tier_level: int
    tier_id: int


class FeeCalculation(BaseModel):
    """Percentage fee applied to a deposit or withdrawal.

    Deposits: net_amount = amount - fee_amount, total_amount = amount.
    Withdrawals: net_amount = amount, total_amount = amount + fee_amount.
    """

    amount: Decimal
    fee_percentage: Decimal
    fee_amount: Decimal
    net_amount: Decimal
    total_amount: Decimal
    description: str


class CreationFeeResult(BaseModel):
    """Outcome of charging a card creation fee."""

    fee_applied: Decimal
    new_balance: Decimal
    ledger_entry_id: int | None = Field(
        default=None, description="None when the ledger write failed after the debit"
    )


class DepositFeeResult(BaseModel):
    """Deposit amounts after the deposit fee."""

    gross_amount: Decimal
    fee_amount: Decimal
    net_amount: Decimal
    fee_percentage: Decimal


class FeeBatchResult(BaseModel):
    """Outcome of processing a user's due monthly fees."""

    processed: int = 0
    failed: int = 0
    total_amount: Decimal = Decimal("0")


class FeeSchedule(BaseModel):
    """The four fee parameters of a tier."""

    card_creation: Decimal
    card_monthly: Decimal
    deposit_percentage: Decimal
    withdrawal_percentage: Decimal


class FeeSummary(BaseModel):
    """Fee overview for a user."""

    current_tier: str
    fees: FeeSchedule
    monthly_fees_owed: Decimal
    total_fees_this_month: Decimal


class CardAtRisk(BaseModel):
    """Card whose next monthly fee is not covered by the balance."""

    card_id: int
    card_token: str
    masked_pan: str
    monthly_fee: Decimal
    current_balance: Decimal


class UpcomingRenewal(BaseModel):
    """Preview of the next monthly renewal."""

    next_renewal_date: date
    days_until_renewal: int
    total_renewal_amount: Decimal
    active_cards_count: int
    per_card_fee: Decimal
    current_balance: Decimal
    sufficient_balance: bool
    balance_shortfall: Decimal
    cards_at_risk: list[CardAtRisk] = Field(default_factory=list)


class CurrentMonthTotals(BaseModel):
    """Fee totals for the current billing month by status."""

    paid: Decimal = Decimal("0")
    pending: Decimal = Decimal("0")
    failed: Decimal = Decimal("0")


class NextMonthSchedule(BaseModel):
    """Fees scheduled for the next billing month."""

    scheduled: Decimal = Decimal("0")
    due_date: date


class CardFeeBreakdown(BaseModel):
    """Monthly fee state of one card."""

    card_id: int
    masked_pan: str
    nickname: str | None = None
    monthly_fee: Decimal
    status: MonthlyFeeStatus | None = None
    last_payment_date: datetime | None = None
    next_payment_due: date | None = None


class MonthlyFeeBreakdown(BaseModel):
    """Detailed monthly fee breakdown for a user."""

    current_month: CurrentMonthTotals
    next_month: NextMonthSchedule
    card_breakdown: list[CardFeeBreakdown] = Field(default_factory=list)
