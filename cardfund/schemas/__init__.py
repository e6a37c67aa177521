"""Schemas module - Pydantic DTOs."""

from cardfund.schemas.balance import BalanceChange, BalanceDirection
from cardfund.schemas.ledger import (
    BalanceAdjustRequest,
    BalanceValidation,
    LedgerEntryCreate,
    LedgerEntryListResponse,
    LedgerEntryResponse,
    LedgerQueryParams,
    LedgerSummary,
)
from cardfund.schemas.pricing import (
    CardFees,
    CreationFeeResult,
    DepositFeeResult,
    FeeBatchResult,
    FeeCalculation,
    FeeSummary,
    MonthlyFeeBreakdown,
    UpcomingRenewal,
)
from cardfund.schemas.reconciliation import (
    BalanceDiscrepancy,
    MasterAccountReport,
    UserReconciliationReport,
)
from cardfund.schemas.tier import TierInfo, TierResponse, UserFees

__all__ = [
    # Balance
    "BalanceChange",
    "BalanceDirection",
    # Ledger
    "LedgerEntryCreate",
    "LedgerEntryResponse",
    "LedgerEntryListResponse",
    "LedgerQueryParams",
    "LedgerSummary",
    "BalanceValidation",
    "BalanceAdjustRequest",
    # Pricing
    "CardFees",
    "FeeCalculation",
    "CreationFeeResult",
    "DepositFeeResult",
    "FeeBatchResult",
    "FeeSummary",
    "UpcomingRenewal",
    "MonthlyFeeBreakdown",
    # Reconciliation
    "BalanceDiscrepancy",
    "UserReconciliationReport",
    "MasterAccountReport",
    # Tier
    "TierInfo",
    "UserFees",
    "TierResponse",
]
