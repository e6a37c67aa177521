"""Ledger API - Balance ledger endpoints."""

from datetime import datetime

from fastapi import APIRouter, HTTPException, Query

from cardfund.api.deps import InternalAuth, Ledger
from cardfund.core.exceptions import (
    InsufficientBalanceError,
    LedgerIntegrityError,
    UserNotFoundError,
)
from cardfund.models.ledger import LedgerTransactionType
from cardfund.schemas.ledger import (
    BalanceAdjustRequest,
    LedgerEntryListResponse,
    LedgerEntryResponse,
    LedgerQueryParams,
    LedgerSummary,
)

router = APIRouter(prefix="/internal", tags=["Ledger"], dependencies=[InternalAuth])


@router.get("/users/{user_id}/ledger", response_model=LedgerEntryListResponse)
async def list_ledger_entries(
    user_id: int,
    service: Ledger,
    transaction_type: LedgerTransactionType | None = Query(None, description="Filter by type"),
    start_date: datetime | None = Query(None, description="Filter by start date"),
    end_date: datetime | None = Query(None, description="Filter by end date"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Page size"),
) -> LedgerEntryListResponse:
    """List a user's ledger entries, newest first."""
    params = LedgerQueryParams(
        transaction_type=transaction_type,
        start_date=start_date,
        end_date=end_date,
        page=page,
        page_size=page_size,
    )

    items, total = await service.list_entries(user_id, params)

    return LedgerEntryListResponse(
        items=[LedgerEntryResponse.model_validate(item) for item in items],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/users/{user_id}/ledger/summary", response_model=LedgerSummary)
async def get_ledger_summary(user_id: int, service: Ledger) -> LedgerSummary:
    """Aggregate a user's ledger entries."""
    return await service.summarize(user_id)


@router.post("/ledger/balance-adjust", response_model=LedgerEntryResponse)
async def manual_balance_adjust(
    data: BalanceAdjustRequest,
    service: Ledger,
) -> LedgerEntryResponse:
    """Manually adjust a user balance.

    Use positive amount to add, negative amount to deduct.
    """
    try:
        entry = await service.manual_balance_adjust(
            user_id=data.user_id,
            amount=data.amount,
            reason=data.reason,
            operator_id=data.operator_id,
        )
    except UserNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except (ValueError, InsufficientBalanceError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except LedgerIntegrityError as e:
        raise HTTPException(status_code=409, detail=e.message)

    return LedgerEntryResponse.model_validate(entry)
