"""Tiers API - fee schedules."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from cardfund.api.deps import InternalAuth
from cardfund.db.engine import get_db
from cardfund.schemas.tier import TierResponse
from cardfund.services.tier_service import TierService

router = APIRouter(prefix="/internal/tiers", tags=["Tiers"], dependencies=[InternalAuth])


@router.get("", response_model=list[TierResponse])
async def list_tiers(db: Annotated[AsyncSession, Depends(get_db)]) -> list[TierResponse]:
    """List active tiers ordered by level."""
    tiers = await TierService(db).list_tiers()
    return [TierResponse.model_validate(tier) for tier in tiers]
