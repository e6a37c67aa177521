"""CardFund Billing - Balance ledger model.

Every change to ``User.balance`` is mirrored by one append-only
``BalanceLedgerEntry``. Amounts are signed: credits positive, debits negative.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from cardfund.utils.dates import utcnow


class LedgerTransactionType(str, Enum):
    """Ledger transaction type."""

    # Credits
    DEPOSIT = "deposit"  # crypto deposit credited
    REFUND = "refund"  # refund back to balance

    # Debits
    CARD_FUNDING = "card_funding"  # balance moved onto a card
    WITHDRAWAL = "withdrawal"  # crypto withdrawal
    FEE = "fee"  # generic fee
    CARD_CREATION_FEE = "card_creation_fee"
    CARD_MONTHLY_FEE = "card_monthly_fee"
    DEPOSIT_FEE = "deposit_fee"

    # Either sign
    ADJUSTMENT = "adjustment"  # admin correction


CREDIT_TYPES = frozenset({LedgerTransactionType.DEPOSIT, LedgerTransactionType.REFUND})

DEBIT_TYPES = frozenset(
    {
        LedgerTransactionType.CARD_FUNDING,
        LedgerTransactionType.WITHDRAWAL,
        LedgerTransactionType.FEE,
        LedgerTransactionType.CARD_CREATION_FEE,
        LedgerTransactionType.CARD_MONTHLY_FEE,
        LedgerTransactionType.DEPOSIT_FEE,
    }
)

# Types counted as "fees paid" in fee summaries
FEE_TYPES = frozenset(
    {
        LedgerTransactionType.CARD_CREATION_FEE,
        LedgerTransactionType.CARD_MONTHLY_FEE,
        LedgerTransactionType.DEPOSIT_FEE,
    }
)


class BalanceLedgerEntry(SQLModel, table=True):
    """Balance ledger entry - immutable record of one balance change.

    Attributes:
        id: Auto-increment primary key
        user_id: User whose balance changed

        transaction_type: Type of balance change
        amount: Signed change (positive=credit, negative=debit)
        balance_before: Balance snapshot before the change
        balance_after: Balance snapshot after the change

        reference_type: Originating entity kind (e.g., "card_creation", "monthly_fee")
        reference_id: Originating entity id (e.g., card id)
        description: Human-readable note
        entry_metadata: Free-form key/value map (column "metadata")

        created_at: Record creation time
    """

    __tablename__ = "balance_ledger_entries"

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)

    transaction_type: LedgerTransactionType = Field(index=True)
    amount: Decimal = Field(
        sa_column=sa.Column(sa.DECIMAL(32, 8), nullable=False),
        description="Signed change amount (positive=credit, negative=debit)",
    )
    balance_before: Decimal = Field(
        sa_column=sa.Column(sa.DECIMAL(32, 8), nullable=False),
        description="Balance before change",
    )
    balance_after: Decimal = Field(
        sa_column=sa.Column(sa.DECIMAL(32, 8), nullable=False),
        description="Balance after change",
    )

    reference_type: str | None = Field(default=None, max_length=50, index=True)
    reference_id: str | None = Field(default=None, max_length=64, index=True)
    description: str | None = Field(default=None, max_length=500)
    entry_metadata: dict[str, Any] | None = Field(
        default=None,
        sa_column=sa.Column("metadata", sa.JSON, nullable=True),
    )

    created_at: datetime = Field(default_factory=utcnow, index=True)
