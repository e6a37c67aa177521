"""External API clients."""

from cardfund.integrations.card_issuer import (
    CardIssuerClient,
    CardSnapshot,
    IssuerAccountBalance,
    IssuerCard,
)

__all__ = ["CardIssuerClient", "CardSnapshot", "IssuerAccountBalance", "IssuerCard"]
