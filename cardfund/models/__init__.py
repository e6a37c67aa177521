"""Models module - SQLModel database entities."""

from cardfund.models.card import CardStatus, VirtualCard
from cardfund.models.ledger import (
    CREDIT_TYPES,
    DEBIT_TYPES,
    FEE_TYPES,
    BalanceLedgerEntry,
    LedgerTransactionType,
)
from cardfund.models.monthly_fee import CardMonthlyFee, MonthlyFeeStatus
from cardfund.models.tier import UserTier
from cardfund.models.user import User

__all__ = [
    # User
    "User",
    # Tier
    "UserTier",
    # Card
    "VirtualCard",
    "CardStatus",
    # Ledger
    "BalanceLedgerEntry",
    "LedgerTransactionType",
    "CREDIT_TYPES",
    "DEBIT_TYPES",
    "FEE_TYPES",
    # Monthly fee
    "CardMonthlyFee",
    "MonthlyFeeStatus",
]
