"""Typed records for the range build.

Vendor rows and employee records are validated with pydantic at the
ingestion boundary; the build-internal value types are frozen dataclasses.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, fields
from datetime import date
from enum import Enum
from typing import Any, Dict, Iterator, NamedTuple, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .levels import normalize_level

PERCENTILE_FIELDS: Tuple[str, ...] = ("p10", "p25", "p40", "p50", "p625", "p75", "p90")


def _clean_number(value: Any) -> Optional[float]:
    """Coerce a raw cell into a float, mapping blanks, NaN and infinities to None."""
    if value is None:
        return None
    if isinstance(value, str):
        value = value.replace(",", "").replace("$", "").strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


# =============================================================================
# Build-internal value types
# =============================================================================

@dataclass(frozen=True)
class PercentileSet:
    """The seven market percentiles for one (region, family, level)."""
    p10: Optional[float] = None
    p25: Optional[float] = None
    p40: Optional[float] = None
    p50: Optional[float] = None
    p625: Optional[float] = None
    p75: Optional[float] = None
    p90: Optional[float] = None

    def items(self) -> Iterator[Tuple[str, Optional[float]]]:
        for name in PERCENTILE_FIELDS:
            yield name, getattr(self, name)

    def is_empty(self) -> bool:
        return all(value is None for _, value in self.items())

    def to_dict(self) -> Dict[str, Optional[float]]:
        return dict(self.items())


class CombinationKey(NamedTuple):
    """Universal addressing tuple: (region, family code, level)."""
    region: str
    family_code: str
    level: str

    def join_key(self, family_name: str) -> str:
        """Serialize the consumer join key.

        Downstream range calculators concatenate family display name, level
        and region in exactly this order with no separator.
        """
        return f"{family_name}{self.level}{self.region}"


@dataclass(frozen=True)
class MarketRange:
    range_start: Optional[float] = None
    range_mid: Optional[float] = None
    range_end: Optional[float] = None


@dataclass(frozen=True)
class InternalStats:
    """Salary distribution of active employees for one key."""
    min: Optional[float] = None
    median: Optional[float] = None
    max: Optional[float] = None
    count: int = 0


EMPTY_INTERNAL_STATS = InternalStats()


@dataclass(frozen=True)
class CompaRatioStats:
    """Mean salary / range midpoint per cohort."""
    avg: Optional[float] = None
    top_talent: Optional[float] = None
    new_hire: Optional[float] = None
    bottom_tier: Optional[float] = None

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))


EMPTY_COMPA_RATIO = CompaRatioStats()


# =============================================================================
# Ingestion boundary records
# =============================================================================

class ApprovalStatus(str, Enum):
    APPROVED = "Approved"
    LEGACY = "Legacy"
    OTHER = "Other"

    @classmethod
    def parse(cls, value: Any) -> "ApprovalStatus":
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower()
        for member in cls:
            if member.value.lower() == text:
                return member
        return cls.OTHER


class PerformanceTier(str, Enum):
    TOP = "Top"
    BOTTOM = "Bottom"
    NORMAL = "Normal"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, value: Any) -> "PerformanceTier":
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower()
        for member in cls:
            if member.value.lower() == text:
                return member
        return cls.UNKNOWN


class VendorRow(BaseModel):
    """One market vendor row: a job code and its percentile figures."""

    model_config = ConfigDict(frozen=True)

    region: str = Field(..., min_length=1)
    job_code: str
    p10: Optional[float] = None
    p25: Optional[float] = None
    p40: Optional[float] = None
    p50: Optional[float] = None
    p625: Optional[float] = None
    p75: Optional[float] = None
    p90: Optional[float] = None

    @field_validator("job_code", mode="before")
    @classmethod
    def strip_job_code(cls, v: Any) -> str:
        return "" if v is None else str(v).strip()

    @field_validator(*PERCENTILE_FIELDS, mode="before")
    @classmethod
    def clean_percentile(cls, v: Any) -> Optional[float]:
        return _clean_number(v)

    def percentiles(self) -> PercentileSet:
        return PercentileSet(**{name: getattr(self, name) for name in PERCENTILE_FIELDS})


class EmployeeRecord(BaseModel):
    """One employee from the directory extract."""

    model_config = ConfigDict(frozen=True)

    employee_id: str
    region: str
    family_code: str
    level: str
    salary: Optional[float] = None
    active: bool = False
    approval_status: ApprovalStatus = ApprovalStatus.OTHER
    start_date: Optional[date] = None
    performance_tier: PerformanceTier = PerformanceTier.UNKNOWN

    @field_validator("employee_id", "region", "family_code", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> str:
        return "" if v is None else str(v).strip()

    @field_validator("level", mode="before")
    @classmethod
    def canonical_level(cls, v: Any) -> str:
        """Directory labels like "l5  ic" join on the canonical "L5 IC"."""
        raw = "" if v is None else str(v).strip()
        return normalize_level(raw) or raw

    @field_validator("salary", mode="before")
    @classmethod
    def clean_salary(cls, v: Any) -> Optional[float]:
        return _clean_number(v)

    @field_validator("approval_status", mode="before")
    @classmethod
    def parse_approval(cls, v: Any) -> ApprovalStatus:
        return ApprovalStatus.parse(v)

    @field_validator("performance_tier", mode="before")
    @classmethod
    def parse_tier(cls, v: Any) -> PerformanceTier:
        return PerformanceTier.parse(v)

    @property
    def key(self) -> CombinationKey:
        return CombinationKey(self.region, self.family_code, self.level)


# =============================================================================
# Output
# =============================================================================

OUTPUT_COLUMNS: Tuple[str, ...] = (
    "join_key",
    "region",
    "family_code",
    "family_name",
    "level",
    "category",
    *PERCENTILE_FIELDS,
    "range_start",
    "range_mid",
    "range_end",
    "internal_min",
    "internal_median",
    "internal_max",
    "internal_count",
    "cr_avg",
    "cr_top_talent",
    "cr_new_hire",
    "cr_bottom_tier",
    "percentile_source",
)

CURRENCY_COLUMNS: Tuple[str, ...] = (
    *PERCENTILE_FIELDS,
    "range_start",
    "range_mid",
    "range_end",
    "internal_min",
    "internal_median",
    "internal_max",
)


class PercentileSource(str, Enum):
    DIRECT = "direct"
    ROLLUP = "rollup"
    INTERPOLATED = "interpolated"
    NONE = "none"


class OutputRow(BaseModel):
    """Flattened FullList row addressable by its join key."""

    model_config = ConfigDict(frozen=True)

    join_key: str
    region: str
    family_code: str
    family_name: str
    level: str
    category: str

    p10: Optional[float] = None
    p25: Optional[float] = None
    p40: Optional[float] = None
    p50: Optional[float] = None
    p625: Optional[float] = None
    p75: Optional[float] = None
    p90: Optional[float] = None

    range_start: Optional[float] = None
    range_mid: Optional[float] = None
    range_end: Optional[float] = None

    internal_min: Optional[float] = None
    internal_median: Optional[float] = None
    internal_max: Optional[float] = None
    internal_count: int = 0

    cr_avg: Optional[float] = None
    cr_top_talent: Optional[float] = None
    cr_new_hire: Optional[float] = None
    cr_bottom_tier: Optional[float] = None

    percentile_source: PercentileSource = PercentileSource.NONE

    @property
    def key(self) -> CombinationKey:
        return CombinationKey(self.region, self.family_code, self.level)

    @property
    def percentiles(self) -> PercentileSet:
        return PercentileSet(**{name: getattr(self, name) for name in PERCENTILE_FIELDS})

    @property
    def market_range(self) -> MarketRange:
        return MarketRange(self.range_start, self.range_mid, self.range_end)

    @property
    def internal_stats(self) -> InternalStats:
        return InternalStats(
            self.internal_min, self.internal_median, self.internal_max, self.internal_count
        )

    @property
    def compa_ratio(self) -> CompaRatioStats:
        return CompaRatioStats(
            self.cr_avg, self.cr_top_talent, self.cr_new_hire, self.cr_bottom_tier
        )

    def to_record(self) -> Dict[str, Any]:
        """Flat dict in OUTPUT_COLUMNS order."""
        data = self.model_dump()
        data["percentile_source"] = self.percentile_source.value
        return {column: data[column] for column in OUTPUT_COLUMNS}
