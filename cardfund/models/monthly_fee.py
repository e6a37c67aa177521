"""CardFund Billing - Card monthly fee model."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from cardfund.utils.dates import utcnow


class MonthlyFeeStatus(str, Enum):
    """Monthly fee status.

    pending -> charged | failed. Both outcomes are terminal.
    """

    PENDING = "pending"  # scheduled, not yet charged
    CHARGED = "charged"  # debited, ledger entry written
    FAILED = "failed"  # insufficient balance or charge error


class CardMonthlyFee(SQLModel, table=True):
    """Scheduled monthly fee for one card and one billing month.

    Attributes:
        id: Auto-increment primary key
        card_id: Card being billed
        user_id: Card holder
        tier_id: Tier the fee was priced from

        fee_amount: Fee locked in at schedule time
        billing_month: First day of the billed month
        due_date: Date from which the fee may be charged

        status: pending/charged/failed
        charged_at: Charge time (charged only)
        balance_ledger_id: Ledger entry of the charge (charged only)
    """

    __tablename__ = "card_monthly_fees"
    __table_args__ = (
        sa.UniqueConstraint("card_id", "billing_month", name="uq_card_monthly_fees_card_month"),
    )

    id: int | None = Field(default=None, primary_key=True)
    card_id: int = Field(foreign_key="virtual_cards.id", index=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    tier_id: int | None = Field(default=None, foreign_key="user_tiers.id")

    fee_amount: Decimal = Field(
        sa_column=sa.Column(sa.DECIMAL(32, 8), nullable=False),
        description="Fee amount locked in at schedule time",
    )
    billing_month: date = Field(index=True)
    due_date: date = Field(index=True)

    status: MonthlyFeeStatus = Field(default=MonthlyFeeStatus.PENDING, index=True)
    charged_at: datetime | None = Field(default=None)
    balance_ledger_id: int | None = Field(
        default=None, foreign_key="balance_ledger_entries.id", description="Charge ledger entry"
    )

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
