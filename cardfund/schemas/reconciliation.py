"""Reconciliation schemas."""

from decimal import Decimal

from pydantic import BaseModel, Field


class BalanceDiscrepancy(BaseModel):
    """A user whose stored balance disagrees with the ledger."""

    user_id: int
    stored_balance: Decimal
    ledger_balance: Decimal
    difference: Decimal


class UserReconciliationReport(BaseModel):
    """Result of comparing every user balance with the ledger."""

    checked_users: int = 0
    discrepancies: list[BalanceDiscrepancy] = Field(default_factory=list)


class MasterAccountReport(BaseModel):
    """Result of comparing the issuer master balance with our card balances."""

    provider_balance: Decimal
    calculated_balance: Decimal
    difference: Decimal
    is_balanced: bool
