"""Card issuing API client.

Responses are validated into pydantic models and converted to plain
snapshots here; raw JSON does not leave this module.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from cardfund.core.config import get_settings
from cardfund.core.exceptions import CardIssuerError

logger = logging.getLogger(__name__)


class IssuerCard(BaseModel):
    """Card as returned by the issuer."""

    model_config = ConfigDict(populate_by_name=True)

    card_id: int = Field(alias="CardID")
    last4: str = Field(alias="Last4")
    status: str = Field(alias="Status")
    balance: Decimal = Field(alias="Balance")
    spend_limit: Decimal | None = Field(default=None, alias="SpendLimit")


class IssuerAccountBalance(BaseModel):
    """Master account balance as returned by the issuer."""

    model_config = ConfigDict(populate_by_name=True)

    balance: Decimal = Field(alias="Balance")
    currency: str = Field(default="USD", alias="Currency")


@dataclass(frozen=True)
class CardSnapshot:
    """Issuer-side state of one card."""

    card_token: str
    last_four: str
    status: str
    balance: Decimal


class CardIssuerClient:
    """Async client for the card issuing API.

    Usage:
        async with CardIssuerClient() as client:
            balance = await client.get_master_account_balance()
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = get_settings()
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.card_issuer_base_url,
            headers={"Authorization": f"Bearer {api_key or settings.card_issuer_api_key}"},
            timeout=timeout or settings.card_issuer_timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> "CardIssuerClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get_card(self, card_token: str) -> CardSnapshot:
        """Fetch one card.

        Raises:
            CardIssuerError: On HTTP errors or an unexpected payload
        """
        data = await self._get(f"/cards/{card_token}")
        try:
            card = IssuerCard.model_validate(data)
        except ValidationError as e:
            raise CardIssuerError("Invalid card payload", {"card_token": card_token}) from e

        return CardSnapshot(
            card_token=str(card.card_id),
            last_four=card.last4,
            status=card.status.lower(),
            balance=card.balance,
        )

    async def get_master_account_balance(self) -> Decimal:
        """Fetch the issuer master account balance.

        Raises:
            CardIssuerError: On HTTP errors or an unexpected payload
        """
        data = await self._get("/account/balance")
        try:
            return IssuerAccountBalance.model_validate(data).balance
        except ValidationError as e:
            raise CardIssuerError("Invalid account balance payload") from e

    async def _get(self, path: str) -> Any:
        try:
            response = await self._client.get(path)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Card issuer {path} returned {e.response.status_code}")
            raise CardIssuerError(
                f"Card issuer returned HTTP {e.response.status_code}",
                {"path": path, "status_code": e.response.status_code},
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Card issuer request {path} failed: {e}")
            raise CardIssuerError("Card issuer request failed", {"path": path}) from e

        if not isinstance(payload, dict) or "Result" not in payload:
            raise CardIssuerError("Unexpected card issuer response", {"path": path})
        return payload["Result"]
