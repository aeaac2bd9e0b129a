"""Region-aware rounding and USD conversion."""

from __future__ import annotations

import logging
import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Mapping, Optional, Set

logger = logging.getLogger(__name__)

USD = "USD"
DEFAULT_ROUNDING_INCREMENT = 100
DEFAULT_FX_RATE = 1.0


class CurrencyRounder:
    """Round currency fields to the region's increment and convert to USD.

    Rounding uses half-up to the nearest multiple of the increment (India
    rounds to 1,000; US and UK to 100) and is idempotent. USD conversion
    re-rounds only rows already denominated in USD; rows from other
    currencies keep their local rounding and are converted exactly.
    """

    def __init__(
        self,
        increments: Optional[Mapping[str, int]] = None,
        fx_rates: Optional[Mapping[str, float]] = None,
        currencies: Optional[Mapping[str, str]] = None,
        default_increment: int = DEFAULT_ROUNDING_INCREMENT,
    ):
        self.increments: Dict[str, int] = dict(increments or {})
        self.fx_rates: Dict[str, float] = dict(fx_rates or {})
        self.currencies: Dict[str, str] = {k: v.upper() for k, v in (currencies or {}).items()}
        self.default_increment = default_increment
        self.unmapped_fx_regions: Set[str] = set()

    def increment(self, region: str) -> int:
        return self.increments.get(region, self.default_increment)

    def round(self, value: Optional[float], region: str) -> Optional[float]:
        if value is None or not math.isfinite(value):
            return None
        step = Decimal(self.increment(region))
        rounded = (Decimal(str(value)) / step).quantize(Decimal("1"), rounding=ROUND_HALF_UP) * step
        return float(rounded)

    def currency(self, region: str) -> str:
        return self.currencies.get(region, USD)

    def is_usd(self, region: str) -> bool:
        return self.currency(region) == USD

    def fx_rate(self, region: str) -> float:
        rate = self.fx_rates.get(region)
        if rate is None:
            if region not in self.unmapped_fx_regions:
                logger.warning("No FX rate for region %s; using %.1f", region, DEFAULT_FX_RATE)
                self.unmapped_fx_regions.add(region)
            return DEFAULT_FX_RATE
        return rate

    def to_usd(self, value: Optional[float], region: str) -> Optional[float]:
        if value is None:
            return None
        converted = value * self.fx_rate(region)
        if self.is_usd(region):
            return self.round(converted, region)
        return converted
