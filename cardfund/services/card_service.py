"""Card Service - read access to users' virtual cards."""

from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from cardfund.models.card import CardStatus, VirtualCard


class CardService:
    """Service for virtual card queries."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_card(self, card_id: int) -> VirtualCard | None:
        """Get card by ID."""
        return await self.db.get(VirtualCard, card_id)

    async def list_active_cards(self, user_id: int) -> list[VirtualCard]:
        """List a user's active cards in id order."""
        result = await self.db.execute(
            select(VirtualCard)
            .where(
                VirtualCard.user_id == user_id,
                VirtualCard.status == CardStatus.ACTIVE,
            )
            .order_by(VirtualCard.id)
        )
        return list(result.scalars().all())

    async def list_fee_bearing_cards(self, user_id: int | None = None) -> list[VirtualCard]:
        """List active cards carrying a monthly fee.

        These are the cards the monthly scheduler bills. Without ``user_id``
        the cards of all users are returned.
        """
        query = select(VirtualCard).where(
            VirtualCard.status == CardStatus.ACTIVE,
            VirtualCard.monthly_fee_amount > 0,
        )
        if user_id is not None:
            query = query.where(VirtualCard.user_id == user_id)

        result = await self.db.execute(query.order_by(VirtualCard.user_id, VirtualCard.id))
        return list(result.scalars().all())

    async def sum_active_card_balances(self) -> Decimal:
        """Total funds loaded onto active cards."""
        result = await self.db.execute(
            select(VirtualCard.remaining_balance).where(VirtualCard.status == CardStatus.ACTIVE)
        )
        return sum(result.scalars().all(), Decimal("0"))
