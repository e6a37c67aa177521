"""Tier schemas."""

from decimal import Decimal

from pydantic import BaseModel


class TierInfo(BaseModel):
    """A user's current tier and fee schedule."""

    user_id: int
    tier_id: int
    tier_level: int
    tier_name: str
    tier_display_name: str
    card_creation_fee: Decimal
    card_monthly_fee: Decimal
    deposit_fee_percentage: Decimal
    withdrawal_fee_percentage: Decimal


class UserFees(BaseModel):
    """Fee parameters applying to a user."""

    card_creation_fee: Decimal
    card_monthly_fee: Decimal
    deposit_fee_percentage: Decimal
    withdrawal_fee_percentage: Decimal


class TierResponse(BaseModel):
    """Tier response."""

    id: int
    tier_level: int
    name: str
    display_name: str
    card_creation_fee: Decimal
    card_monthly_fee: Decimal
    deposit_fee_percentage: Decimal
    withdrawal_fee_percentage: Decimal
    max_cards: int | None = None

    class Config:
        from_attributes = True
