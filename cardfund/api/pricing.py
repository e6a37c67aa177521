"""Pricing API - fee quotes, card creation fees and monthly fee overviews."""

from decimal import Decimal

from fastapi import APIRouter, HTTPException, Query

from cardfund.api.deps import Billing, InternalAuth, Pricing
from cardfund.core.exceptions import InsufficientBalanceError, UserNotFoundError
from cardfund.schemas.pricing import (
    CreationFeeResult,
    FeeCalculation,
    FeeSummary,
    MonthlyFeeBreakdown,
    UpcomingRenewal,
)

router = APIRouter(
    prefix="/internal/users/{user_id}/fees",
    tags=["Pricing"],
    dependencies=[InternalAuth],
)


@router.get("/summary", response_model=FeeSummary)
async def get_fee_summary(user_id: int, service: Pricing) -> FeeSummary:
    """Get tier, fee schedule, fees owed and fees paid this month."""
    try:
        return await service.get_user_fee_summary(user_id)
    except UserNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.get("/upcoming-renewal", response_model=UpcomingRenewal)
async def get_upcoming_renewal(user_id: int, service: Pricing) -> UpcomingRenewal:
    """Preview the next monthly renewal against the current balance."""
    try:
        return await service.get_upcoming_renewal(user_id)
    except UserNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.get("/breakdown", response_model=MonthlyFeeBreakdown)
async def get_monthly_fee_breakdown(user_id: int, service: Pricing) -> MonthlyFeeBreakdown:
    """Get monthly fee totals by month and per card."""
    try:
        return await service.get_monthly_fee_breakdown(user_id)
    except UserNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.get("/deposit-quote", response_model=FeeCalculation)
async def quote_deposit_fee(
    user_id: int,
    service: Pricing,
    amount: Decimal = Query(..., gt=0, description="Deposit amount"),
) -> FeeCalculation:
    """Quote the fee deducted from a deposit."""
    return await service.calculate_deposit_fee(user_id, amount)


@router.get("/withdrawal-quote", response_model=FeeCalculation)
async def quote_withdrawal_fee(
    user_id: int,
    service: Pricing,
    amount: Decimal = Query(..., gt=0, description="Withdrawal amount"),
) -> FeeCalculation:
    """Quote the fee added on top of a withdrawal."""
    return await service.calculate_withdrawal_fee(user_id, amount)


@router.post("/card-creation", response_model=CreationFeeResult)
async def charge_card_creation_fee(user_id: int, service: Billing) -> CreationFeeResult:
    """Charge the card creation fee before a card is issued."""
    try:
        return await service.apply_card_creation_fee(user_id)
    except UserNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except InsufficientBalanceError as e:
        raise HTTPException(status_code=400, detail=e.message)
