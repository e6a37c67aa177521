"""MonthlyFeeService: conditional status transitions and queries."""

from datetime import date
from decimal import Decimal

from cardfund.models import CardMonthlyFee, MonthlyFeeStatus
from cardfund.services.monthly_fee_service import MonthlyFeeService
from tests.factories import make_card, make_ledger_entry, make_monthly_fee, make_user


class TestTransitions:
    async def test_mark_charged_only_once(self, db):
        user = await make_user(db)
        fee = await make_monthly_fee(db, await make_card(db, user))
        ledger_entry = await make_ledger_entry(db, user, amount="5", balance_before="0")
        service = MonthlyFeeService(db)

        assert await service.mark_charged(fee.id, ledger_entry.id) is True
        assert await service.mark_charged(fee.id, ledger_entry.id) is False
        assert await service.mark_failed(fee.id) is False
        await db.commit()

        reloaded = await db.get(CardMonthlyFee, fee.id, populate_existing=True)
        assert reloaded.status == MonthlyFeeStatus.CHARGED
        assert reloaded.balance_ledger_id == ledger_entry.id

    async def test_mark_failed_is_terminal(self, db):
        user = await make_user(db)
        fee = await make_monthly_fee(db, await make_card(db, user))
        service = MonthlyFeeService(db)

        assert await service.mark_failed(fee.id) is True
        assert await service.mark_charged(fee.id, 1) is False


class TestQueries:
    async def test_create_if_absent(self, db):
        user = await make_user(db)
        card = await make_card(db, user)
        service = MonthlyFeeService(db)

        def record():
            return CardMonthlyFee(
                card_id=card.id,
                user_id=user.id,
                fee_amount=Decimal("5"),
                billing_month=date(2026, 3, 1),
                due_date=date(2026, 3, 5),
            )

        assert await service.create_if_absent(record()) is True
        await db.commit()
        assert await service.create_if_absent(record()) is False

    async def test_find_pending_due_orders_by_due_date(self, db):
        user = await make_user(db)
        later = await make_monthly_fee(db, await make_card(db, user), billing_month=date(2026, 2, 1))
        earlier = await make_monthly_fee(
            db, await make_card(db, user), billing_month=date(2026, 1, 1)
        )
        await make_monthly_fee(db, await make_card(db, user), billing_month=date(2026, 3, 1))
        await make_monthly_fee(
            db,
            await make_card(db, user),
            billing_month=date(2026, 1, 1),
            status=MonthlyFeeStatus.CHARGED,
        )
        ids = (earlier.id, later.id)

        due = await MonthlyFeeService(db).find_pending_due(user.id, date(2026, 2, 5))

        assert tuple(fee.id for fee in due) == ids

    async def test_sum_pending_ignores_settled_fees(self, db):
        user = await make_user(db)
        await make_monthly_fee(db, await make_card(db, user), fee_amount="5")
        await make_monthly_fee(db, await make_card(db, user), fee_amount="2.5")
        await make_monthly_fee(
            db, await make_card(db, user), fee_amount="9", status=MonthlyFeeStatus.FAILED
        )

        assert await MonthlyFeeService(db).sum_pending(user.id) == Decimal("7.5")

    async def test_users_with_pending_due(self, db):
        due = await make_user(db)
        not_due = await make_user(db)
        await make_monthly_fee(db, await make_card(db, due), billing_month=date(2026, 1, 1))
        await make_monthly_fee(db, await make_card(db, not_due), billing_month=date(2026, 2, 1))

        users = await MonthlyFeeService(db).users_with_pending_due(date(2026, 1, 31))

        assert users == [due.id]
