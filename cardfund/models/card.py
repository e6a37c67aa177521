"""CardFund Billing - Virtual card model."""

from datetime import datetime
from decimal import Decimal
from enum import Enum

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from cardfund.utils.dates import utcnow


class CardStatus(str, Enum):
    """Virtual card status."""

    ACTIVE = "active"
    FROZEN = "frozen"
    DELETED = "deleted"


class VirtualCard(SQLModel, table=True):
    """Virtual card issued through the card issuing API.

    Attributes:
        id: Auto-increment primary key
        user_id: Card holder
        card_token: Issuer-side card identifier
        masked_pan: Masked card number (e.g., "4111********1234")
        nickname: Optional label chosen by the user
        status: active/frozen/deleted
        monthly_fee_amount: Monthly fee locked in when the card was issued
        remaining_balance: Funds loaded onto the card
    """

    __tablename__ = "virtual_cards"

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    card_token: str = Field(max_length=64, unique=True, index=True)
    masked_pan: str = Field(max_length=32)
    nickname: str | None = Field(default=None, max_length=100)
    status: CardStatus = Field(default=CardStatus.ACTIVE, index=True)

    monthly_fee_amount: Decimal = Field(
        default=Decimal("0"),
        sa_column=sa.Column(sa.DECIMAL(32, 8), nullable=False, default=Decimal("0")),
    )
    remaining_balance: Decimal = Field(
        default=Decimal("0"),
        sa_column=sa.Column(sa.DECIMAL(32, 8), nullable=False, default=Decimal("0")),
    )

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
