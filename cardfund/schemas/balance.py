"""Balance schemas."""

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel


class BalanceDirection(str, Enum):
    """Direction of an atomic balance adjustment."""

    ADD = "add"
    SUBTRACT = "subtract"


class BalanceChange(BaseModel):
    """Balance snapshots around one atomic adjustment."""

    user_id: int
    balance_before: Decimal
    balance_after: Decimal

    @property
    def delta(self) -> Decimal:
        """Signed change applied to the balance."""
        return self.balance_after - self.balance_before
