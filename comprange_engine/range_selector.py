"""Category-specific percentile fallback chains."""

from __future__ import annotations

from typing import Dict, Mapping, Optional, Sequence, Tuple

from .exceptions import InvalidCategoryError
from .models import MarketRange, PercentileSet

CATEGORY_A = "A"
CATEGORY_B = "B"

# (range_start chain, range_mid chain, range_end chain)
FALLBACK_CHAINS: Dict[str, Tuple[Sequence[str], Sequence[str], Sequence[str]]] = {
    # Concentrated / high-end roles: no fallback for range_end
    CATEGORY_A: (("p25", "p40", "p50"), ("p625", "p75", "p90"), ("p90",)),
    # Broad / general roles
    CATEGORY_B: (("p10", "p25", "p40"), ("p40", "p50", "p625"), ("p625", "p75", "p90")),
}

# Category labels used in the vendor workbook
DEFAULT_CATEGORY_ALIASES: Dict[str, str] = {
    "X0": CATEGORY_A,
    "X1": CATEGORY_A,
    "Y1": CATEGORY_B,
}


def normalize_category(value: str, aliases: Optional[Mapping[str, str]] = None) -> str:
    """Map a raw category label onto A or B.

    Raises:
        InvalidCategoryError: label is neither a category nor a known alias
    """
    label = str(value or "").strip().upper()
    if label in FALLBACK_CHAINS:
        return label
    table = {k.upper(): v for k, v in (aliases if aliases is not None else DEFAULT_CATEGORY_ALIASES).items()}
    resolved = table.get(label)
    if resolved is None or resolved.upper() not in FALLBACK_CHAINS:
        raise InvalidCategoryError(value)
    return resolved.upper()


def first_present(percentiles: PercentileSet, chain: Sequence[str]) -> Optional[float]:
    for name in chain:
        value = getattr(percentiles, name)
        if value is not None:
            return value
    return None


class RangeSelector:
    """Turn a percentile set into a start/mid/end range."""

    def select(self, percentiles: Optional[PercentileSet], category: str) -> MarketRange:
        chains = FALLBACK_CHAINS.get(category)
        if chains is None:
            raise InvalidCategoryError(category)
        if percentiles is None:
            return MarketRange()
        start_chain, mid_chain, end_chain = chains
        return MarketRange(
            range_start=first_present(percentiles, start_chain),
            range_mid=first_present(percentiles, mid_chain),
            range_end=first_present(percentiles, end_chain),
        )
