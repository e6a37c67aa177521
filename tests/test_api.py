"""Internal API: token auth and pricing/ledger endpoints."""

from contextlib import asynccontextmanager
from decimal import Decimal

import httpx
import pytest
import pytest_asyncio

from cardfund.api.deps import get_user_lock_factory
from cardfund.db.engine import get_db
from cardfund.main import create_app
from tests.factories import make_ledger_entry, make_tier, make_user

AUTH = {"Authorization": "Bearer test-internal-token"}


@pytest.fixture
def lock_events():
    return []


@pytest_asyncio.fixture
async def client(session_factory, lock_events):
    app = create_app()

    @asynccontextmanager
    async def recording_lock(user_id):
        lock_events.append(("acquire", user_id))
        yield
        lock_events.append(("release", user_id))

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_user_lock_factory] = lambda: recording_lock
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


class TestAuth:
    async def test_health_is_public(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    async def test_missing_token(self, client):
        response = await client.get("/internal/users/1/fees/summary")

        assert response.status_code == 401

    async def test_wrong_token(self, client):
        response = await client.get(
            "/internal/users/1/fees/summary",
            headers={"Authorization": "Bearer nope"},
        )

        assert response.status_code == 401


class TestPricingEndpoints:
    async def test_fee_summary(self, client, db):
        tier = await make_tier(db, display_name="Verified")
        user = await make_user(db, tier=tier, balance="100")

        response = await client.get(f"/internal/users/{user.id}/fees/summary", headers=AUTH)

        assert response.status_code == 200
        body = response.json()
        assert body["current_tier"] == "Verified"
        assert Decimal(body["monthly_fees_owed"]) == Decimal("0")

    async def test_fee_summary_unknown_user(self, client):
        response = await client.get("/internal/users/999/fees/summary", headers=AUTH)

        assert response.status_code == 404

    async def test_deposit_quote(self, client, db):
        tier = await make_tier(db, deposit_fee_percentage="2")
        user = await make_user(db, tier=tier)

        response = await client.get(
            f"/internal/users/{user.id}/fees/deposit-quote",
            params={"amount": "1000"},
            headers=AUTH,
        )

        assert response.status_code == 200
        body = response.json()
        assert Decimal(body["fee_amount"]) == Decimal("20")
        assert Decimal(body["net_amount"]) == Decimal("980")

    async def test_withdrawal_quote_rejects_non_positive_amount(self, client, db):
        user = await make_user(db)

        response = await client.get(
            f"/internal/users/{user.id}/fees/withdrawal-quote",
            params={"amount": "0"},
            headers=AUTH,
        )

        assert response.status_code == 422

    async def test_upcoming_renewal(self, client, db):
        tier = await make_tier(db)
        user = await make_user(db, tier=tier, balance="3")

        response = await client.get(
            f"/internal/users/{user.id}/fees/upcoming-renewal", headers=AUTH
        )

        assert response.status_code == 200
        assert response.json()["active_cards_count"] == 0

    async def test_card_creation_fee_holds_user_lock(self, client, db, lock_events):
        tier = await make_tier(db, card_creation_fee="10")
        user = await make_user(db, tier=tier, balance="25")

        response = await client.post(f"/internal/users/{user.id}/fees/card-creation", headers=AUTH)

        assert response.status_code == 200
        body = response.json()
        assert Decimal(body["fee_applied"]) == Decimal("10")
        assert Decimal(body["new_balance"]) == Decimal("15")
        assert body["ledger_entry_id"] is not None
        assert lock_events == [("acquire", user.id), ("release", user.id)]

    async def test_card_creation_fee_insufficient_balance(self, client, db):
        tier = await make_tier(db, card_creation_fee="10")
        user = await make_user(db, tier=tier, balance="5")

        response = await client.post(f"/internal/users/{user.id}/fees/card-creation", headers=AUTH)

        assert response.status_code == 400


class TestLedgerEndpoints:
    async def test_list_entries(self, client, db):
        user = await make_user(db, balance="30")
        await make_ledger_entry(db, user, amount="10", balance_before="0")
        await make_ledger_entry(db, user, amount="20", balance_before="10")

        response = await client.get(
            f"/internal/users/{user.id}/ledger", params={"page_size": 1}, headers=AUTH
        )

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 2
        assert len(body["items"]) == 1
        assert Decimal(body["items"][0]["balance_after"]) == Decimal("30")

    async def test_summary(self, client, db):
        user = await make_user(db, balance="30")
        await make_ledger_entry(db, user, amount="30", balance_before="0")

        response = await client.get(f"/internal/users/{user.id}/ledger/summary", headers=AUTH)

        assert response.status_code == 200
        assert Decimal(response.json()["total_credits"]) == Decimal("30")

    async def test_balance_adjust(self, client, db):
        user = await make_user(db, balance="10")
        await make_ledger_entry(db, user, amount="10", balance_before="0")

        response = await client.post(
            "/internal/ledger/balance-adjust",
            json={"user_id": user.id, "amount": "-4", "reason": "chargeback", "operator_id": 3},
            headers=AUTH,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["transaction_type"] == "adjustment"
        assert Decimal(body["balance_after"]) == Decimal("6")

    async def test_balance_adjust_insufficient(self, client, db):
        user = await make_user(db, balance="1")

        response = await client.post(
            "/internal/ledger/balance-adjust",
            json={"user_id": user.id, "amount": "-4", "reason": "chargeback", "operator_id": 3},
            headers=AUTH,
        )

        assert response.status_code == 400


class TestTierEndpoints:
    async def test_list_tiers(self, client, db):
        await make_tier(db, tier_level=1, display_name="Verified")
        await make_tier(db, tier_level=0, display_name="Basic")

        response = await client.get("/internal/tiers", headers=AUTH)

        assert response.status_code == 200
        assert [t["display_name"] for t in response.json()] == ["Basic", "Verified"]
