"""Synthetic percentile sets for half-levels absent from vendor data."""

from __future__ import annotations

from typing import Optional

from .levels import is_half_level
from .models import PERCENTILE_FIELDS, PercentileSet

DEFAULT_HALF_LEVEL_UPLIFT = 1.2


class HalfLevelInterpolator:
    """Interpolate a half-level from its whole-level neighbors.

    Each percentile is handled independently: the mean when both neighbors
    are present, ``lower * uplift`` when only the lower level exists, the
    upper value when only the upper level exists, otherwise absent.
    """

    def __init__(self, uplift: float = DEFAULT_HALF_LEVEL_UPLIFT):
        self.uplift = uplift

    def interpolate(
        self,
        level: str,
        lower: Optional[PercentileSet],
        upper: Optional[PercentileSet],
    ) -> PercentileSet:
        if not is_half_level(level):
            raise ValueError(f"Interpolation requires a half-level label, got {level!r}")
        values = {
            name: self._interpolate_field(
                getattr(lower, name) if lower is not None else None,
                getattr(upper, name) if upper is not None else None,
            )
            for name in PERCENTILE_FIELDS
        }
        return PercentileSet(**values)

    def _interpolate_field(self, low: Optional[float], high: Optional[float]) -> Optional[float]:
        if low is not None and high is not None:
            return (low + high) / 2
        if low is not None:
            return low * self.uplift
        return high
