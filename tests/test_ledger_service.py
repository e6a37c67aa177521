"""LedgerService: validated appends, summaries and corrections."""

import logging
from decimal import Decimal

import pytest

from cardfund.core.exceptions import InsufficientBalanceError, LedgerIntegrityError
from cardfund.models import LedgerTransactionType, User
from cardfund.schemas.ledger import LedgerEntryCreate, LedgerQueryParams
from cardfund.services.ledger_service import LedgerService
from tests.factories import make_ledger_entry, make_user


def entry(user_id, transaction_type, amount, before, **kwargs):
    amount = Decimal(amount)
    before = Decimal(before)
    return LedgerEntryCreate(
        user_id=user_id,
        transaction_type=transaction_type,
        amount=amount,
        balance_before=before,
        balance_after=before + amount,
        **kwargs,
    )


class TestAppend:
    async def test_consecutive_entries_chain(self, db):
        user = await make_user(db)
        service = LedgerService(db)

        await service.append(entry(user.id, LedgerTransactionType.DEPOSIT, "100", "0"))
        await service.append(entry(user.id, LedgerTransactionType.CARD_FUNDING, "-30", "100"))
        await service.append(entry(user.id, LedgerTransactionType.FEE, "-2.5", "70"))
        await db.commit()

        entries, total = await service.list_entries(user.id, LedgerQueryParams())
        entries.reverse()
        assert total == 3
        for previous, current in zip(entries, entries[1:]):
            assert previous.balance_after == current.balance_before
        assert await service.latest_balance(user.id) == Decimal("67.5")

    async def test_stores_metadata_and_reference(self, db):
        user = await make_user(db)
        service = LedgerService(db)

        created = await service.append(
            entry(
                user.id,
                LedgerTransactionType.DEPOSIT,
                "10",
                "0",
                reference_type="deposit",
                reference_id="tx-1",
                metadata={"network": "TRON"},
            )
        )
        await db.commit()

        assert created.id is not None
        found = await service.find_by_reference("deposit", "tx-1")
        assert [e.id for e in found] == [created.id]
        assert found[0].entry_metadata == {"network": "TRON"}

    async def test_debit_with_positive_amount_rejected(self, db):
        user = await make_user(db)

        with pytest.raises(LedgerIntegrityError):
            await LedgerService(db).append(
                entry(user.id, LedgerTransactionType.CARD_MONTHLY_FEE, "5", "0")
            )

    async def test_credit_with_negative_amount_rejected(self, db):
        user = await make_user(db)

        with pytest.raises(LedgerIntegrityError):
            await LedgerService(db).append(
                entry(user.id, LedgerTransactionType.DEPOSIT, "-5", "10")
            )

    async def test_adjustment_accepts_either_sign(self, db):
        user = await make_user(db)
        service = LedgerService(db)

        await service.append(entry(user.id, LedgerTransactionType.ADJUSTMENT, "10", "0"))
        await service.append(entry(user.id, LedgerTransactionType.ADJUSTMENT, "-4", "10"))

        assert await service.latest_balance(user.id) == Decimal("6")

    async def test_snapshots_must_match_amount(self, db):
        user = await make_user(db)

        with pytest.raises(LedgerIntegrityError):
            await LedgerService(db).append(
                LedgerEntryCreate(
                    user_id=user.id,
                    transaction_type=LedgerTransactionType.DEPOSIT,
                    amount=Decimal("10"),
                    balance_before=Decimal("0"),
                    balance_after=Decimal("12"),
                )
            )

    async def test_rounding_within_tolerance_accepted(self, db):
        user = await make_user(db)

        await LedgerService(db).append(
            LedgerEntryCreate(
                user_id=user.id,
                transaction_type=LedgerTransactionType.DEPOSIT,
                amount=Decimal("10"),
                balance_before=Decimal("0"),
                balance_after=Decimal("10.005"),
            )
        )

    async def test_gap_with_previous_entry_is_logged_and_kept(self, db, caplog):
        user = await make_user(db)
        service = LedgerService(db)
        await service.append(entry(user.id, LedgerTransactionType.DEPOSIT, "100", "0"))

        with caplog.at_level(logging.WARNING, logger="cardfund.services.ledger_service"):
            stored = await service.append(entry(user.id, LedgerTransactionType.FEE, "-10", "90"))

        assert stored.id is not None
        assert stored.balance_after == Decimal("80")
        assert await service.latest_balance(user.id) == Decimal("80")
        assert "Ledger gap" in caplog.text


class TestSummarize:
    async def test_credits_debits_and_net(self, db):
        user = await make_user(db)
        service = LedgerService(db)
        await service.append(entry(user.id, LedgerTransactionType.DEPOSIT, "100", "0"))
        await service.append(entry(user.id, LedgerTransactionType.CARD_FUNDING, "-30", "100"))
        await service.append(entry(user.id, LedgerTransactionType.DEPOSIT, "50", "70"))
        await db.commit()

        summary = await service.summarize(user.id)

        assert summary.total_credits == Decimal("150")
        assert summary.total_debits == Decimal("30")
        assert summary.net_amount == Decimal("120")
        assert summary.transaction_count == 3
        assert summary.last_transaction_at is not None

    async def test_no_entries(self, db):
        user = await make_user(db)

        summary = await LedgerService(db).summarize(user.id)

        assert summary.transaction_count == 0
        assert summary.net_amount == Decimal("0")
        assert summary.last_transaction_at is None

    async def test_latest_balance_without_entries(self, db):
        user = await make_user(db)

        assert await LedgerService(db).latest_balance(user.id) is None


class TestQueries:
    async def test_list_entries_paginates_newest_first(self, db):
        user = await make_user(db)
        service = LedgerService(db)
        balance = Decimal("0")
        for _ in range(5):
            await service.append(entry(user.id, LedgerTransactionType.DEPOSIT, "1", balance))
            balance += 1
        await db.commit()

        page, total = await service.list_entries(user.id, LedgerQueryParams(page=2, page_size=2))

        assert total == 5
        assert [e.balance_after for e in page] == [Decimal("3"), Decimal("2")]

    async def test_list_entries_filters_by_type(self, db):
        user = await make_user(db)
        service = LedgerService(db)
        await service.append(entry(user.id, LedgerTransactionType.DEPOSIT, "10", "0"))
        await service.append(entry(user.id, LedgerTransactionType.FEE, "-1", "10"))
        await db.commit()

        items, total = await service.list_entries(
            user.id, LedgerQueryParams(transaction_type=LedgerTransactionType.FEE)
        )

        assert total == 1
        assert items[0].amount == Decimal("-1")

    async def test_validate_balance(self, db):
        user = await make_user(db)
        service = LedgerService(db)
        await service.append(entry(user.id, LedgerTransactionType.DEPOSIT, "10", "0"))

        valid = await service.validate_balance(user.id, Decimal("10"))
        invalid = await service.validate_balance(user.id, Decimal("12"))

        assert valid.is_valid
        assert not invalid.is_valid
        assert invalid.difference == Decimal("2")

    async def test_validate_balance_without_entries(self, db):
        user = await make_user(db)
        service = LedgerService(db)

        assert (await service.validate_balance(user.id, Decimal("0"))).is_valid
        assert not (await service.validate_balance(user.id, Decimal("1"))).is_valid

    async def test_recalculate_balance(self, db):
        user = await make_user(db)
        service = LedgerService(db)
        await service.append(entry(user.id, LedgerTransactionType.DEPOSIT, "100", "0"))
        await service.append(entry(user.id, LedgerTransactionType.WITHDRAWAL, "-40", "100"))

        assert await service.recalculate_balance(user.id) == Decimal("60")


class TestCorrections:
    async def test_create_adjustment_entry_closes_gap(self, db):
        user = await make_user(db, balance="90")
        await make_ledger_entry(db, user, amount="50", balance_before="0")
        service = LedgerService(db)

        correction = await service.create_adjustment_entry(
            user.id, Decimal("40"), "missing card creation fee entry", operator_id=7
        )

        assert correction.transaction_type == LedgerTransactionType.ADJUSTMENT
        assert correction.balance_before == Decimal("50")
        assert correction.reference_type == "admin_adjustment"
        assert correction.reference_id == "7"
        assert await service.latest_balance(user.id) == Decimal("90")
        # Stored balance is untouched
        assert (await db.get(User, user.id, populate_existing=True)).balance == Decimal("90")

    async def test_manual_balance_adjust_credits(self, db):
        user = await make_user(db, balance="20")
        await make_ledger_entry(db, user, amount="20", balance_before="0")
        service = LedgerService(db)

        adjusted = await service.manual_balance_adjust(
            user.id, Decimal("5"), "goodwill", operator_id=1
        )

        assert adjusted.balance_before == Decimal("20")
        assert adjusted.balance_after == Decimal("25")
        assert (await db.get(User, user.id, populate_existing=True)).balance == Decimal("25")

    async def test_manual_balance_adjust_debit_beyond_balance(self, db):
        user = await make_user(db, balance="3")
        user_id = user.id

        with pytest.raises(InsufficientBalanceError):
            await LedgerService(db).manual_balance_adjust(
                user_id, Decimal("-5"), "chargeback", operator_id=1
            )

        assert (await db.get(User, user_id, populate_existing=True)).balance == Decimal("3")

    async def test_manual_balance_adjust_rejects_zero(self, db):
        user = await make_user(db)

        with pytest.raises(ValueError):
            await LedgerService(db).manual_balance_adjust(
                user.id, Decimal("0"), "noop", operator_id=1
            )
