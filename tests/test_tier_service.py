"""TierService: tier lookup and fee resolution."""

from decimal import Decimal

from cardfund.services.tier_service import DEFAULT_FEES, TierService
from tests.factories import make_tier, make_user


class TestTierInfo:
    async def test_user_with_tier(self, db):
        tier = await make_tier(db, tier_level=2, display_name="Premium", card_monthly_fee="3")
        user = await make_user(db, tier=tier)

        info = await TierService(db).get_user_tier_info(user.id)

        assert info.tier_id == tier.id
        assert info.tier_level == 2
        assert info.tier_display_name == "Premium"
        assert info.card_monthly_fee == Decimal("3")

    async def test_user_without_tier(self, db):
        user = await make_user(db)

        assert await TierService(db).get_user_tier_info(user.id) is None

    async def test_unknown_user(self, db):
        assert await TierService(db).get_user_tier_info(404) is None

    async def test_list_tiers_ordered_by_level(self, db):
        await make_tier(db, tier_level=2)
        await make_tier(db, tier_level=0)
        await make_tier(db, tier_level=1)

        tiers = await TierService(db).list_tiers()

        assert [t.tier_level for t in tiers] == [0, 1, 2]


class TestCalculateUserFees:
    async def test_uses_own_withdrawal_percentage(self, db):
        tier = await make_tier(db, deposit_fee_percentage="2", withdrawal_fee_percentage="1.5")
        user = await make_user(db, tier=tier)

        fees = await TierService(db).calculate_user_fees(user.id)

        assert fees.deposit_fee_percentage == Decimal("2")
        assert fees.withdrawal_fee_percentage == Decimal("1.5")

    async def test_falls_back_to_level_zero(self, db):
        await make_tier(db, tier_level=0, card_creation_fee="25", deposit_fee_percentage="3")
        user = await make_user(db)

        fees = await TierService(db).calculate_user_fees(user.id)

        assert fees.card_creation_fee == Decimal("25")
        assert fees.deposit_fee_percentage == Decimal("3")

    async def test_falls_back_to_defaults(self, db):
        user = await make_user(db)

        fees = await TierService(db).calculate_user_fees(user.id)

        assert fees == DEFAULT_FEES
