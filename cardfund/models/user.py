"""CardFund Billing - User model."""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlmodel import Field, Relationship, SQLModel

from cardfund.utils.dates import utcnow

if TYPE_CHECKING:
    from cardfund.models.tier import UserTier


class User(SQLModel, table=True):
    """Card holder account.

    Attributes:
        id: Auto-increment primary key
        email: User email address (indexed)
        balance: Denormalized running balance, mutated only through
            BalanceService.adjust_balance
        tier_id: Current fee tier
        is_active: Account status
    """

    __tablename__ = "users"

    id: int | None = Field(default=None, primary_key=True)
    email: str = Field(max_length=255, unique=True, index=True)
    balance: Decimal = Field(
        default=Decimal("0"),
        sa_column=sa.Column(sa.DECIMAL(32, 8), nullable=False, default=Decimal("0")),
    )
    tier_id: int | None = Field(default=None, foreign_key="user_tiers.id", index=True)
    is_active: bool = Field(default=True)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    # Relationships - selectin to avoid async lazy-load issues
    tier: Optional["UserTier"] = Relationship(
        back_populates="users",
        sa_relationship_kwargs={"lazy": "selectin"},
    )
