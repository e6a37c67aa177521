"""Tier Service - Business logic for user tiers and fee schedules."""

import logging
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from cardfund.models.tier import UserTier
from cardfund.models.user import User
from cardfund.schemas.tier import TierInfo, UserFees

logger = logging.getLogger(__name__)

# Used when neither the user's tier nor a level 0 tier exists
DEFAULT_FEES = UserFees(
    card_creation_fee=Decimal("50"),
    card_monthly_fee=Decimal("0"),
    deposit_fee_percentage=Decimal("5"),
    withdrawal_fee_percentage=Decimal("5"),
)


class TierService:
    """Service for tier lookups and fee resolution."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_tiers(self) -> list[UserTier]:
        """List all active tiers.

        Returns:
            Active tiers ordered by level
        """
        result = await self.db.execute(
            select(UserTier)
            .where(UserTier.is_active == True)  # noqa: E712
            .order_by(UserTier.tier_level)
        )
        return list(result.scalars().all())

    async def get_tier(self, tier_id: int) -> UserTier | None:
        """Get tier by ID."""
        return await self.db.get(UserTier, tier_id)

    async def get_tier_by_level(self, level: int) -> UserTier | None:
        """Get an active tier by level.

        Args:
            level: Tier level

        Returns:
            Tier or None
        """
        result = await self.db.execute(
            select(UserTier).where(
                UserTier.tier_level == level,
                UserTier.is_active == True,  # noqa: E712
            )
        )
        return result.scalar_one_or_none()

    async def get_user_tier_info(self, user_id: int) -> TierInfo | None:
        """Get a user's current tier information.

        Args:
            user_id: User ID

        Returns:
            TierInfo, or None if the user does not exist or has no tier
        """
        result = await self.db.execute(
            select(User.id, UserTier)
            .join(UserTier, User.tier_id == UserTier.id)
            .where(User.id == user_id)
        )
        row = result.first()
        if row is None:
            return None

        tier: UserTier = row[1]
        return TierInfo(
            user_id=user_id,
            tier_id=tier.id,  # type: ignore[arg-type]
            tier_level=tier.tier_level,
            tier_name=tier.name,
            tier_display_name=tier.display_name,
            card_creation_fee=tier.card_creation_fee,
            card_monthly_fee=tier.card_monthly_fee,
            deposit_fee_percentage=tier.deposit_fee_percentage,
            withdrawal_fee_percentage=tier.withdrawal_fee_percentage,
        )

    async def calculate_user_fees(self, user_id: int) -> UserFees:
        """Resolve the fee parameters applying to a user.

        Users without a tier get the level 0 tier's fees, or the built-in
        defaults when no level 0 tier exists.

        Args:
            user_id: User ID

        Returns:
            Fee parameters
        """
        tier_info = await self.get_user_tier_info(user_id)
        if tier_info is not None:
            return UserFees(
                card_creation_fee=tier_info.card_creation_fee,
                card_monthly_fee=tier_info.card_monthly_fee,
                deposit_fee_percentage=tier_info.deposit_fee_percentage,
                withdrawal_fee_percentage=tier_info.withdrawal_fee_percentage,
            )

        default_tier = await self.get_tier_by_level(0)
        if default_tier is None:
            logger.warning(f"No tier for user {user_id} and no level 0 tier, using defaults")
            return DEFAULT_FEES

        return UserFees(
            card_creation_fee=default_tier.card_creation_fee,
            card_monthly_fee=default_tier.card_monthly_fee,
            deposit_fee_percentage=default_tier.deposit_fee_percentage,
            withdrawal_fee_percentage=default_tier.withdrawal_fee_percentage,
        )
