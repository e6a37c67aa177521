"""Balance reconciliation tasks."""

import logging

from cardfund.core.config import get_settings
from cardfund.core.exceptions import CardIssuerError
from cardfund.db.engine import close_db, get_session
from cardfund.integrations.card_issuer import CardIssuerClient
from cardfund.services.reconciliation_service import BalanceReconciliationService
from cardfund.tasks.billing import run_async
from cardfund.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(name="reconciliation.reconcile_balances")
def reconcile_balances() -> dict:
    """Compare user balances with the ledger and the issuer master account.

    Returns:
        Dict with discrepancy counts
    """
    return run_async(_reconcile_balances_async())


async def _reconcile_balances_async() -> dict:
    """Async implementation of reconcile_balances."""
    logger.info("[reconcile_balances] start")

    try:
        async with get_session() as db:
            service = BalanceReconciliationService(db)
            report = await service.reconcile_users()
            summary = {
                "success": True,
                "checked_users": report.checked_users,
                "discrepancies": len(report.discrepancies),
                "master_account_balanced": None,
            }

            if get_settings().card_issuer_api_key:
                try:
                    async with CardIssuerClient() as client:
                        master = await service.reconcile_master_account(client)
                    summary["master_account_balanced"] = master.is_balanced
                except CardIssuerError as e:
                    logger.error(f"[reconcile_balances] master account check failed: {e.message}")

        logger.info(f"[reconcile_balances] done {summary}")
        return summary
    except Exception as e:
        logger.exception(f"[reconcile_balances] failed: {e}")
        return {"success": False, "error": str(e)}
    finally:
        await close_db()
