"""Core module - configuration, exceptions, and Redis."""

from cardfund.core.config import Settings, get_settings
from cardfund.core.exceptions import (
    CardFundError,
    CardIssuerError,
    InsufficientBalanceError,
    LedgerIntegrityError,
    PersistenceError,
    UserNotFoundError,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Exceptions
    "CardFundError",
    "UserNotFoundError",
    "InsufficientBalanceError",
    "PersistenceError",
    "LedgerIntegrityError",
    "CardIssuerError",
]
