"""Services module - Business logic layer."""

from cardfund.services.balance_service import BalanceService
from cardfund.services.billing_scheduler import MonthlyFeeScheduler
from cardfund.services.card_service import CardService
from cardfund.services.ledger_service import LedgerService
from cardfund.services.monthly_fee_service import MonthlyFeeService
from cardfund.services.pricing_service import PricingService
from cardfund.services.reconciliation_service import BalanceReconciliationService
from cardfund.services.tier_service import TierService

__all__ = [
    "BalanceService",
    "BalanceReconciliationService",
    "CardService",
    "LedgerService",
    "MonthlyFeeScheduler",
    "MonthlyFeeService",
    "PricingService",
    "TierService",
]
