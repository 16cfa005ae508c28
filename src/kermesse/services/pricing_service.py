"""Server-held ticket pricing.

Client-supplied prices are never trusted: the charged amount is always
derived from this table plus a fixed service fee.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from kermesse.config import config
from kermesse.errors import ValidationError

logger = logging.getLogger(__name__)


class TicketTier(BaseModel):
    label: str = Field(min_length=1)
    price: int = Field(ge=0)  # Minor currency units


@dataclass
class PriceQuote:
    tier: Optional[str]
    label: str
    base_amount: int
    charged_amount: int
    currency: str


class PriceTable(BaseModel):
    """Tiered price table, or a single unit price when no tiers are set.

    - tiers: tier key -> label and price in minor units
    - unit_price: single price in minor units, used only without tiers
    - service_fee_percent: surcharge applied on top of the table price
    """

    tiers: Dict[str, TicketTier] = Field(default_factory=dict)
    unit_price: Optional[int] = Field(default=None, ge=0)
    unit_label: str = "General"
    service_fee_percent: Decimal = Field(default=Decimal("0"), ge=0)
    currency: str = "mxn"

    @field_validator("currency")
    @classmethod
    def _normalize_currency(cls, v: str) -> str:
        return v.strip().lower()

    @model_validator(mode="after")
    def _require_prices(self) -> "PriceTable":
        if not self.tiers and self.unit_price is None:
            raise ValueError("Either ticket tiers or a unit price must be configured")
        return self

    @property
    def is_tiered(self) -> bool:
        return bool(self.tiers)

    def charged_amount(self, base_amount: int) -> int:
        """Apply the service fee, rounding half-up to the smallest currency unit"""
        multiplier = (Decimal(100) + self.service_fee_percent) / Decimal(100)
        return int(
            (Decimal(base_amount) * multiplier).quantize(
                Decimal(1), rounding=ROUND_HALF_UP
            )
        )

    def quote(self, tier: Optional[str] = None) -> PriceQuote:
        """Resolve the amount to charge for a tier key.

        Raises:
            ValidationError: If tiers are configured and the key is unknown
        """
        if not self.is_tiered:
            return PriceQuote(
                tier=None,
                label=self.unit_label,
                base_amount=self.unit_price,
                charged_amount=self.charged_amount(self.unit_price),
                currency=self.currency,
            )

        key = (tier or "").strip()
        if not key:
            raise ValidationError("Ticket type is required.")
        tier_data = self.tiers.get(key)
        if tier_data is None:
            raise ValidationError("Invalid ticket type.")

        return PriceQuote(
            tier=key,
            label=tier_data.label,
            base_amount=tier_data.price,
            charged_amount=self.charged_amount(tier_data.price),
            currency=self.currency,
        )

    @classmethod
    def from_config(cls, app_config: dict) -> "PriceTable":
        """Build the table from TICKET_TIERS / TICKET_UNIT_PRICE settings"""
        raw_tiers = app_config.get("ticket_tiers")
        tiers = json.loads(raw_tiers) if raw_tiers else {}
        raw_unit_price = app_config.get("ticket_unit_price")

        return cls(
            tiers=tiers,
            unit_price=int(raw_unit_price) if raw_unit_price else None,
            service_fee_percent=Decimal(app_config.get("service_fee_percent") or "0"),
            currency=app_config.get("currency") or "mxn",
        )


# Global price table, parsed on first use
_price_table = None


def get_price_table() -> PriceTable:
    """Get or create the global price table"""
    global _price_table
    if _price_table is None:
        _price_table = PriceTable.from_config(config)
        logger.info(
            f"Loaded price table: tiers={sorted(_price_table.tiers)} "
            f"unit_price={_price_table.unit_price} "
            f"fee={_price_table.service_fee_percent}%"
        )
    return _price_table
