"""Balance Reconciliation Service - detects drift between balances and the ledger.

Only reports; corrections are made by an operator through adjustment entries.
"""

import logging
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from cardfund.integrations.card_issuer import CardIssuerClient
from cardfund.models.user import User
from cardfund.schemas.reconciliation import (
    BalanceDiscrepancy,
    MasterAccountReport,
    UserReconciliationReport,
)
from cardfund.services.card_service import CardService
from cardfund.services.ledger_service import LedgerService
from cardfund.utils.amount import amounts_match

logger = logging.getLogger(__name__)


class BalanceReconciliationService:
    """Service for balance reconciliation checks."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.ledger = LedgerService(db)

    async def reconcile_users(self) -> UserReconciliationReport:
        """Compare every user's stored balance with the ledger's latest balance.

        Users without ledger entries are expected to have a zero balance.
        """
        result = await self.db.execute(select(User.id, User.balance).order_by(User.id))
        users = result.all()

        report = UserReconciliationReport(checked_users=len(users))
        for user_id, stored in users:
            ledger_balance = await self.ledger.latest_balance(user_id)
            if ledger_balance is None:
                ledger_balance = Decimal("0")

            if amounts_match(stored, ledger_balance):
                continue

            difference = stored - ledger_balance
            logger.warning(
                f"Balance discrepancy user_id={user_id} stored={stored} "
                f"ledger={ledger_balance} difference={difference}"
            )
            report.discrepancies.append(
                BalanceDiscrepancy(
                    user_id=user_id,
                    stored_balance=stored,
                    ledger_balance=ledger_balance,
                    difference=difference,
                )
            )

        logger.info(
            f"Reconciled {report.checked_users} users, "
            f"{len(report.discrepancies)} discrepancies"
        )
        return report

    async def reconcile_master_account(self, client: CardIssuerClient) -> MasterAccountReport:
        """Compare the issuer master balance with the sum of active card balances.

        Raises:
            CardIssuerError: If the issuer balance cannot be fetched
        """
        provider_balance = await client.get_master_account_balance()
        calculated = await CardService(self.db).sum_active_card_balances()
        difference = abs(provider_balance - calculated)
        is_balanced = amounts_match(provider_balance, calculated)

        if not is_balanced:
            logger.warning(
                f"Master account discrepancy provider={provider_balance} "
                f"calculated={calculated} difference={difference}"
            )

        return MasterAccountReport(
            provider_balance=provider_balance,
            calculated_balance=calculated,
            difference=difference,
            is_balanced=is_balanced,
        )
