"""Ledger schemas - DTOs for balance ledger records."""

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import AliasChoices, BaseModel, Field

from cardfund.models.ledger import LedgerTransactionType


class LedgerEntryCreate(BaseModel):
    """Data for appending one ledger entry.

    ``amount`` follows the sign contract: credits positive, debits negative.
    """

    user_id: int
    transaction_type: LedgerTransactionType
    amount: Decimal
    balance_before: Decimal
    balance_after: Decimal
    reference_type: str | None = None
    reference_id: str | None = None
    description: str | None = None
    metadata: dict[str, Any] | None = None


class LedgerEntryResponse(BaseModel):
    """Ledger entry response."""

    id: int
    user_id: int

    transaction_type: LedgerTransactionType
    amount: Decimal
    balance_before: Decimal
    balance_after: Decimal

    reference_type: str | None = None
    reference_id: str | None = None
    description: str | None = None
    metadata: dict[str, Any] | None = Field(
        default=None, validation_alias=AliasChoices("entry_metadata", "metadata")
    )

    created_at: datetime

    class Config:
        from_attributes = True


class LedgerEntryListResponse(BaseModel):
    """Paginated ledger entry list response."""

    items: list[LedgerEntryResponse]
    total: int
    page: int
    page_size: int


class LedgerQueryParams(BaseModel):
    """Query parameters for ledger entries."""

    transaction_type: LedgerTransactionType | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=50, ge=1, le=100)


class LedgerSummary(BaseModel):
    """Aggregate of all ledger entries of one user."""

    total_credits: Decimal = Decimal("0")
    total_debits: Decimal = Decimal("0")
    net_amount: Decimal = Decimal("0")
    transaction_count: int = 0
    last_transaction_at: datetime | None = None


class BalanceValidation(BaseModel):
    """Result of comparing an expected balance with the ledger."""

    is_valid: bool
    actual_balance: Decimal | None = None
    difference: Decimal


class BalanceAdjustRequest(BaseModel):
    """Request to correct a user balance with an adjustment entry."""

    user_id: int
    amount: Decimal = Field(description="Amount to add (positive) or deduct (negative)")
    reason: str = Field(min_length=1, max_length=500, description="Reason for adjustment")
    operator_id: int
