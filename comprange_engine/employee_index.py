"""Single-pass grouping of employee records for internal stats and compa-ratios.

Both groupings share one eligibility predicate so that the compa-ratio
cohort of a key is always a subset of the internal-statistics population.
"""

from __future__ import annotations

import logging
import math
import statistics
from dataclasses import asdict, dataclass
from datetime import date, timedelta
from typing import Dict, FrozenSet, Iterable, List, Optional

from .models import (
    EMPTY_COMPA_RATIO,
    EMPTY_INTERNAL_STATS,
    ApprovalStatus,
    CombinationKey,
    CompaRatioStats,
    EmployeeRecord,
    InternalStats,
    PerformanceTier,
)

logger = logging.getLogger(__name__)

DEFAULT_NEW_HIRE_WINDOW_DAYS = 365
DEFAULT_ELIGIBLE_APPROVALS: FrozenSet[ApprovalStatus] = frozenset(
    {ApprovalStatus.APPROVED, ApprovalStatus.LEGACY}
)


def is_active(record: EmployeeRecord) -> bool:
    """The one active predicate used by every grouping."""
    return record.active


def has_valid_salary(record: EmployeeRecord) -> bool:
    salary = record.salary
    return salary is not None and math.isfinite(salary) and salary > 0


@dataclass
class EmployeeIndexStats:
    records_read: int = 0
    invalid_salary: int = 0
    inactive: int = 0
    not_approved: int = 0
    indexed: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


@dataclass
class CompaRatioBuckets:
    all: List[float]
    top_talent: List[float]
    new_hire: List[float]
    bottom_tier: List[float]

    @classmethod
    def empty(cls) -> "CompaRatioBuckets":
        return cls([], [], [], [])


def reduce_salaries(salaries: List[float]) -> InternalStats:
    if not salaries:
        return EMPTY_INTERNAL_STATS
    return InternalStats(
        min=min(salaries),
        median=statistics.median(salaries),
        max=max(salaries),
        count=len(salaries),
    )


def mean_ratio(salaries: List[float], range_mid: float) -> Optional[float]:
    if not salaries:
        return None
    return sum(salary / range_mid for salary in salaries) / len(salaries)


class EmployeeIndex:
    """Internal-statistics and compa-ratio groupings keyed by CombinationKey."""

    def __init__(
        self,
        *,
        as_of: Optional[date] = None,
        new_hire_window_days: int = DEFAULT_NEW_HIRE_WINDOW_DAYS,
        eligible_approvals: Iterable[ApprovalStatus] = DEFAULT_ELIGIBLE_APPROVALS,
    ):
        self.as_of = as_of or date.today()
        self.new_hire_window = timedelta(days=new_hire_window_days)
        self.eligible_approvals = frozenset(eligible_approvals)
        self._salaries: Dict[CombinationKey, List[float]] = {}
        self._cr_buckets: Dict[CombinationKey, CompaRatioBuckets] = {}
        self._internal_cache: Dict[CombinationKey, InternalStats] = {}
        self.stats = EmployeeIndexStats()

    @classmethod
    def build(cls, records: Iterable[EmployeeRecord], **kwargs) -> "EmployeeIndex":
        index = cls(**kwargs)
        for record in records:
            index.add(record)
        logger.info(
            "Employee index built: %d records, %d indexed, %d invalid salary, %d inactive, %d not approved",
            index.stats.records_read,
            index.stats.indexed,
            index.stats.invalid_salary,
            index.stats.inactive,
            index.stats.not_approved,
        )
        return index

    def is_new_hire(self, record: EmployeeRecord) -> bool:
        if record.start_date is None:
            return False
        return record.start_date <= self.as_of and self.as_of - record.start_date <= self.new_hire_window

    def add(self, record: EmployeeRecord) -> None:
        self.stats.records_read += 1
        if not has_valid_salary(record):
            self.stats.invalid_salary += 1
            return
        if not is_active(record):
            self.stats.inactive += 1
            return

        key = record.key
        salary = float(record.salary)
        self._salaries.setdefault(key, []).append(salary)
        self._internal_cache.pop(key, None)
        self.stats.indexed += 1

        if record.approval_status not in self.eligible_approvals:
            self.stats.not_approved += 1
            return

        buckets = self._cr_buckets.setdefault(key, CompaRatioBuckets.empty())
        buckets.all.append(salary)
        if record.performance_tier is PerformanceTier.TOP:
            buckets.top_talent.append(salary)
        elif record.performance_tier is PerformanceTier.BOTTOM:
            buckets.bottom_tier.append(salary)
        if self.is_new_hire(record):
            buckets.new_hire.append(salary)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def internal_stats(self, key: CombinationKey) -> InternalStats:
        cached = self._internal_cache.get(key)
        if cached is None:
            cached = reduce_salaries(sorted(self._salaries.get(key, [])))
            self._internal_cache[key] = cached
        return cached

    def compa_ratio_buckets(self, key: CombinationKey) -> CompaRatioBuckets:
        return self._cr_buckets.get(key) or CompaRatioBuckets.empty()

    def compa_ratio(self, key: CombinationKey, range_mid: Optional[float]) -> CompaRatioStats:
        """Mean salary / range_mid per cohort; absent without a usable midpoint."""
        if not range_mid:
            return EMPTY_COMPA_RATIO
        buckets = self._cr_buckets.get(key)
        if buckets is None:
            return EMPTY_COMPA_RATIO
        return CompaRatioStats(
            avg=mean_ratio(buckets.all, range_mid),
            top_talent=mean_ratio(buckets.top_talent, range_mid),
            new_hire=mean_ratio(buckets.new_hire, range_mid),
            bottom_tier=mean_ratio(buckets.bottom_tier, range_mid),
        )

    def has_key(self, key: CombinationKey) -> bool:
        return key in self._salaries

    def keys(self) -> List[CombinationKey]:
        return list(self._salaries)

    def __len__(self) -> int:
        return len(self._salaries)
