"""CardFund Billing - Custom exceptions."""

from decimal import Decimal
from typing import Any


class CardFundError(Exception):
    """Base exception for all CardFund errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class UserNotFoundError(CardFundError):
    """User (or the user's tier information) does not exist."""

    def __init__(self, user_id: int | None = None, message: str = "User not found") -> None:
        details = {"user_id": user_id} if user_id is not None else {}
        super().__init__(message, details)


class InsufficientBalanceError(CardFundError):
    """User balance does not cover the requested debit."""

    def __init__(
        self,
        required: Decimal | None = None,
        available: Decimal | None = None,
        message: str = "Insufficient balance",
    ) -> None:
        details = {}
        if required is not None:
            details["required"] = str(required)
        if available is not None:
            details["available"] = str(available)
        super().__init__(message, details)


class PersistenceError(CardFundError):
    """A ledger or balance write could not be stored."""

    pass


class LedgerIntegrityError(CardFundError):
    """Ledger entry has the wrong sign or inconsistent before/after balances."""

    pass


class CardIssuerError(CardFundError):
    """Card issuing API returned an error or an unexpected payload."""

    pass
