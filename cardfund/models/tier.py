"""CardFund Billing - User tier (fee schedule) model."""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

import sqlalchemy as sa
from sqlmodel import Field, Relationship, SQLModel

from cardfund.utils.dates import utcnow

if TYPE_CHECKING:
    from cardfund.models.user import User


class UserTier(SQLModel, table=True):
    """Fee schedule tied to a user's verification / volume level.

    Fee calculation:
    - Card creation fee: flat, charged once per issued card
    - Card monthly fee: flat, charged per card per billing month
    - Deposit fee: amount * deposit_fee_percentage / 100 (subtracted)
    - Withdrawal fee: amount * withdrawal_fee_percentage / 100 (added on top)

    Attributes:
        id: Primary key
        tier_level: Ordering level, 0 is the entry tier
        name: Machine name (e.g., "unverified", "verified", "premium")
        display_name: Name shown to users
        max_cards: Card limit for the tier (None = unlimited)
        is_active: Whether the tier can be assigned
    """

    __tablename__ = "user_tiers"

    id: int | None = Field(default=None, primary_key=True)
    tier_level: int = Field(index=True, unique=True)
    name: str = Field(max_length=50, unique=True)
    display_name: str = Field(max_length=100)

    card_creation_fee: Decimal = Field(
        default=Decimal("0"),
        sa_column=sa.Column(sa.DECIMAL(32, 8), nullable=False, default=Decimal("0")),
    )
    card_monthly_fee: Decimal = Field(
        default=Decimal("0"),
        sa_column=sa.Column(sa.DECIMAL(32, 8), nullable=False, default=Decimal("0")),
    )
    deposit_fee_percentage: Decimal = Field(
        default=Decimal("0"),
        sa_column=sa.Column(sa.DECIMAL(10, 4), nullable=False, default=Decimal("0")),
    )
    withdrawal_fee_percentage: Decimal = Field(
        default=Decimal("0"),
        sa_column=sa.Column(sa.DECIMAL(10, 4), nullable=False, default=Decimal("0")),
    )

    max_cards: int | None = Field(default=None)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    # Relationships
    users: list["User"] = Relationship(back_populates="tier")
