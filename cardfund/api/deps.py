"""Common FastAPI dependencies for API endpoints."""

import hmac
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from cardfund.core.config import get_settings
from cardfund.core.redis import UserLockFactory, user_lock
from cardfund.db.engine import get_db
from cardfund.services.ledger_service import LedgerService
from cardfund.services.pricing_service import PricingService

bearer_scheme = HTTPBearer(auto_error=False)


async def verify_internal_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> None:
    """Require the internal API bearer token.

    Raises:
        HTTPException: 401 if the token is missing or wrong
    """
    expected = get_settings().internal_api_token
    if (
        credentials is None
        or not expected
        or not hmac.compare_digest(credentials.credentials.encode(), expected.encode())
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing internal API token",
            headers={"WWW-Authenticate": "Bearer"},
        )


def get_pricing_service(db: Annotated[AsyncSession, Depends(get_db)]) -> PricingService:
    """Get pricing service instance."""
    return PricingService(db)


def get_user_lock_factory() -> UserLockFactory:
    """Get the per-user billing lock used around balance debits."""
    return user_lock


def get_billing_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    lock_factory: Annotated[UserLockFactory, Depends(get_user_lock_factory)],
) -> PricingService:
    """Get pricing service instance that locks the user while charging."""
    return PricingService(db, lock_factory=lock_factory)


def get_ledger_service(db: Annotated[AsyncSession, Depends(get_db)]) -> LedgerService:
    """Get ledger service instance."""
    return LedgerService(db)


InternalAuth = Depends(verify_internal_token)
Pricing = Annotated[PricingService, Depends(get_pricing_service)]
Billing = Annotated[PricingService, Depends(get_billing_service)]
Ledger = Annotated[LedgerService, Depends(get_ledger_service)]
