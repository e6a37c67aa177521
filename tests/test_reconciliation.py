"""BalanceReconciliationService: drift detection without corrections."""

from decimal import Decimal

import httpx

from cardfund.integrations.card_issuer import CardIssuerClient
from cardfund.models import User
from cardfund.services.reconciliation_service import BalanceReconciliationService
from tests.factories import make_card, make_ledger_entry, make_user


def issuer_with_balance(balance: str) -> CardIssuerClient:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"Result": {"Balance": balance, "Currency": "USD"}})

    return CardIssuerClient(
        base_url="https://issuer.test/v1",
        api_key="key",
        transport=httpx.MockTransport(handler),
    )


class TestReconcileUsers:
    async def test_reports_only_mismatches(self, db):
        in_sync = await make_user(db, balance="50")
        await make_ledger_entry(db, in_sync, amount="50", balance_before="0")
        drifted = await make_user(db, balance="80")
        await make_ledger_entry(db, drifted, amount="100", balance_before="0")
        no_entries = await make_user(db, balance="0")

        report = await BalanceReconciliationService(db).reconcile_users()

        assert report.checked_users == 3
        assert [d.user_id for d in report.discrepancies] == [drifted.id]
        assert report.discrepancies[0].difference == Decimal("-20")
        assert no_entries.id not in {d.user_id for d in report.discrepancies}

    async def test_user_without_entries_compared_with_zero(self, db):
        user = await make_user(db, balance="10")

        report = await BalanceReconciliationService(db).reconcile_users()

        assert report.discrepancies[0].user_id == user.id
        assert report.discrepancies[0].ledger_balance == Decimal("0")

    async def test_never_writes_corrections(self, db):
        user = await make_user(db, balance="80")
        await make_ledger_entry(db, user, amount="100", balance_before="0")

        await BalanceReconciliationService(db).reconcile_users()

        assert (await db.get(User, user.id, populate_existing=True)).balance == Decimal("80")


class TestReconcileMasterAccount:
    async def test_balanced(self, db):
        user = await make_user(db)
        await make_card(db, user, remaining_balance="60")
        await make_card(db, user, remaining_balance="40")

        async with issuer_with_balance("100.00") as client:
            report = await BalanceReconciliationService(db).reconcile_master_account(client)

        assert report.is_balanced
        assert report.calculated_balance == Decimal("100")

    async def test_mismatch(self, db):
        user = await make_user(db)
        await make_card(db, user, remaining_balance="60")

        async with issuer_with_balance("75") as client:
            report = await BalanceReconciliationService(db).reconcile_master_account(client)

        assert not report.is_balanced
        assert report.difference == Decimal("15")
