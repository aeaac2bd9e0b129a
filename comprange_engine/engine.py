#!/usr/bin/env python3
"""
Aggregation Engine

Builds the FullList and FullListUSD range tables from market vendor
percentiles and employee directory records. A build is a pure function of
its inputs: every index lives in a BuildContext created for that call and
discarded afterwards.

Per (region, family, level) in the cross-product of configured regions,
categorized families and canonical levels:

1. Resolve percentiles: direct lookup, rollup lookup, then half-level
   interpolation from the whole-level neighbors
2. Select the start/mid/end range with the family's category chain
3. Look up internal statistics and compa-ratio cohorts
4. Compute compa-ratios against the range midpoint
5. Round currency fields for the region
6. Emit an OutputRow addressed by its join key
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from .cache import RangeCache
from .config import RangeBuildConfig
from .currency import CurrencyRounder
from .employee_index import EmployeeIndex
from .exceptions import ExecutionContext, MarketDataMissingError
from .interpolation import HalfLevelInterpolator
from .levels import LevelTokenCodec, is_half_level, neighbor_levels
from .market_index import MarketDataIndex
from .models import (
    CURRENCY_COLUMNS,
    OUTPUT_COLUMNS,
    CombinationKey,
    EmployeeRecord,
    OutputRow,
    PercentileSet,
    PercentileSource,
    VendorRow,
)
from .range_selector import RangeSelector

logger = logging.getLogger(__name__)


@dataclass
class BuildMetadata:
    """Counts and diagnostics reported alongside the output tables."""

    run_id: str
    as_of: date
    started_at: datetime = field(default_factory=datetime.now)
    duration_seconds: Optional[float] = None
    rows_emitted: int = 0
    combinations_considered: int = 0
    combinations_skipped: int = 0
    regions_missing_market_data: List[str] = field(default_factory=list)
    unconfigured_market_regions: List[str] = field(default_factory=list)
    unmapped_fx_regions: List[str] = field(default_factory=list)
    unmapped_family_employees: int = 0
    unmapped_families: List[str] = field(default_factory=list)
    unlisted_level_employees: int = 0
    percentile_sources: Dict[str, int] = field(default_factory=dict)
    market: Dict[str, object] = field(default_factory=dict)
    employees: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, object]:
        data = asdict(self)
        data["as_of"] = self.as_of.isoformat()
        data["started_at"] = self.started_at.isoformat()
        if self.duration_seconds is not None:
            data["duration_seconds"] = round(self.duration_seconds, 3)
        return data


@dataclass
class BuildContext:
    """Build-scoped state handed to every step of the aggregation."""

    config: RangeBuildConfig
    market_index: MarketDataIndex
    employee_index: EmployeeIndex
    rounder: CurrencyRounder
    selector: RangeSelector
    interpolator: HalfLevelInterpolator
    as_of: date
    run_id: str
    cache: Optional[RangeCache] = None


@dataclass
class BuildResult:
    full_list: List[OutputRow]
    full_list_usd: List[OutputRow]
    metadata: BuildMetadata
    _by_join_key: Dict[str, OutputRow] = field(default_factory=dict, repr=False)
    _usd_by_join_key: Dict[str, OutputRow] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        self._by_join_key = {row.join_key: row for row in self.full_list}
        self._usd_by_join_key = {row.join_key: row for row in self.full_list_usd}

    def lookup(self, join_key: str) -> Optional[OutputRow]:
        return self._by_join_key.get(join_key)

    def lookup_usd(self, join_key: str) -> Optional[OutputRow]:
        return self._usd_by_join_key.get(join_key)

    def to_frame(self, usd: bool = False) -> pd.DataFrame:
        rows = self.full_list_usd if usd else self.full_list
        return pd.DataFrame([row.to_record() for row in rows], columns=list(OUTPUT_COLUMNS))


class AggregationEngine:
    """Orchestrates index construction and FullList emission."""

    def __init__(
        self,
        config: RangeBuildConfig,
        *,
        cache: Optional[RangeCache] = None,
        codec: Optional[LevelTokenCodec] = None,
    ):
        self.config = config
        self.cache = cache
        self.codec = codec or LevelTokenCodec()

    # ------------------------------------------------------------------
    # Context
    # ------------------------------------------------------------------

    def prepare(
        self,
        market_rows: Mapping[str, Iterable[VendorRow]],
        employees: Iterable[EmployeeRecord],
        *,
        as_of: Optional[date] = None,
        run_id: Optional[str] = None,
    ) -> BuildContext:
        """Build the market and employee indices for one run.

        Raises:
            MarketDataMissingError: no configured region has any market rows
        """
        as_of = as_of or date.today()
        run_id = run_id or str(uuid.uuid4())[:8]
        regions = self.config.region_names
        market_rows = {region: list(rows or ()) for region, rows in market_rows.items()}

        missing = [r for r in regions if not market_rows.get(r)]
        if len(missing) == len(regions):
            raise MarketDataMissingError(
                missing,
                context=ExecutionContext(run_id=run_id, build_stage="market_index"),
            )
        if missing:
            logger.warning("No market data for regions: %s", ", ".join(missing))

        market_index = MarketDataIndex.build(market_rows, regions, codec=self.codec)
        employee_index = EmployeeIndex.build(
            employees,
            as_of=as_of,
            new_hire_window_days=self.config.engine.new_hire_window_days,
            eligible_approvals=self.config.engine.eligible_approval_statuses,
        )
        return BuildContext(
            config=self.config,
            market_index=market_index,
            employee_index=employee_index,
            rounder=self.config.build_rounder(),
            selector=RangeSelector(),
            interpolator=HalfLevelInterpolator(self.config.engine.half_level_uplift),
            as_of=as_of,
            run_id=run_id,
            cache=self.cache,
        )

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    def build(
        self,
        market_rows: Mapping[str, Iterable[VendorRow]],
        employees: Iterable[EmployeeRecord],
        *,
        as_of: Optional[date] = None,
        run_id: Optional[str] = None,
    ) -> BuildResult:
        start = time.perf_counter()
        market_rows = {region: list(rows or ()) for region, rows in market_rows.items()}
        context = self.prepare(market_rows, employees, as_of=as_of, run_id=run_id)
        metadata = BuildMetadata(run_id=context.run_id, as_of=context.as_of)
        logger.info(
            "Starting range build %s (as_of=%s, regions=%s, families=%d, levels=%d)",
            context.run_id,
            context.as_of.isoformat(),
            ",".join(self.config.region_names),
            len(self.config.categories),
            len(self.config.levels),
        )

        full_list: List[OutputRow] = []
        sources: Dict[str, int] = {source.value: 0 for source in PercentileSource}
        for key in self.iter_combinations():
            metadata.combinations_considered += 1
            row = self.compute_row(context, key)
            if row is None:
                metadata.combinations_skipped += 1
                continue
            sources[row.percentile_source.value] += 1
            full_list.append(row)

        full_list_usd = [self.to_usd_row(context, row) for row in full_list]

        self._fill_metadata(metadata, context, market_rows)
        metadata.rows_emitted = len(full_list)
        metadata.percentile_sources = sources
        metadata.duration_seconds = time.perf_counter() - start
        logger.info(
            "Range build %s complete: %d rows in %.2fs",
            context.run_id,
            metadata.rows_emitted,
            metadata.duration_seconds,
        )
        return BuildResult(full_list=full_list, full_list_usd=full_list_usd, metadata=metadata)

    def iter_combinations(self) -> Iterable[CombinationKey]:
        """Fixed-order cross-product: regions x categorized families x levels."""
        for region in self.config.region_names:
            for family in self.config.categories:
                for level in self.config.levels:
                    yield CombinationKey(region, family, level)

    # ------------------------------------------------------------------
    # Row computation
    # ------------------------------------------------------------------

    def resolve_percentiles(
        self, context: BuildContext, key: CombinationKey
    ) -> Tuple[Optional[PercentileSet], PercentileSource]:
        percentiles, from_rollup = context.market_index.resolve(*key)
        if percentiles is not None:
            return percentiles, PercentileSource.ROLLUP if from_rollup else PercentileSource.DIRECT
        if not is_half_level(key.level):
            return None, PercentileSource.NONE

        # Neighbors are whole levels, resolved by direct/rollup lookup only
        lower_level, upper_level = neighbor_levels(key.level)
        lower, _ = context.market_index.resolve(key.region, key.family_code, lower_level)
        upper, _ = context.market_index.resolve(key.region, key.family_code, upper_level)
        if lower is None and upper is None:
            return None, PercentileSource.NONE
        return (
            context.interpolator.interpolate(key.level, lower, upper),
            PercentileSource.INTERPOLATED,
        )

    def compute_row(self, context: BuildContext, key: CombinationKey) -> Optional[OutputRow]:
        """Local-currency row for one key, or None when it has no data at all."""
        category = self.config.categories.get(key.family_code)
        if category is None:
            return None

        percentiles, source = self.resolve_percentiles(context, key)
        internal = context.employee_index.internal_stats(key)
        if percentiles is None and internal.count == 0:
            return None

        market_range = context.selector.select(percentiles, category)
        compa_ratio = context.employee_index.compa_ratio(key, market_range.range_mid)

        rnd = context.rounder.round
        region = key.region
        values = percentiles.to_dict() if percentiles is not None else {}
        return OutputRow(
            join_key=key.join_key(self.config.family_name(key.family_code)),
            region=region,
            family_code=key.family_code,
            family_name=self.config.family_name(key.family_code),
            level=key.level,
            category=category,
            **{name: rnd(value, region) for name, value in values.items()},
            range_start=rnd(market_range.range_start, region),
            range_mid=rnd(market_range.range_mid, region),
            range_end=rnd(market_range.range_end, region),
            internal_min=rnd(internal.min, region),
            internal_median=rnd(internal.median, region),
            internal_max=rnd(internal.max, region),
            internal_count=internal.count,
            cr_avg=compa_ratio.avg,
            cr_top_talent=compa_ratio.top_talent,
            cr_new_hire=compa_ratio.new_hire,
            cr_bottom_tier=compa_ratio.bottom_tier,
            percentile_source=source,
        )

    def to_usd_row(self, context: BuildContext, row: OutputRow) -> OutputRow:
        """FX-convert every currency field of a local-currency row."""
        update = {
            column: context.rounder.to_usd(getattr(row, column), row.region)
            for column in CURRENCY_COLUMNS
        }
        return row.model_copy(update=update)

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    def _fill_metadata(
        self,
        metadata: BuildMetadata,
        context: BuildContext,
        market_rows: Mapping[str, Sequence[VendorRow]],
    ) -> None:
        regions = self.config.region_names
        metadata.regions_missing_market_data = [
            r for r in regions if not context.market_index.has_region(r)
        ]
        metadata.unconfigured_market_regions = [r for r in market_rows if r not in regions]
        if metadata.unconfigured_market_regions:
            logger.warning(
                "Ignoring market data for unconfigured regions: %s",
                ", ".join(metadata.unconfigured_market_regions),
            )
        metadata.unmapped_fx_regions = sorted(context.rounder.unmapped_fx_regions)

        levels = set(self.config.levels)
        unmapped_families = []
        for key in context.employee_index.keys():
            count = context.employee_index.internal_stats(key).count
            if key.family_code not in self.config.categories:
                metadata.unmapped_family_employees += count
                if key.family_code not in unmapped_families:
                    unmapped_families.append(key.family_code)
            elif key.level not in levels:
                metadata.unlisted_level_employees += count
        metadata.unmapped_families = unmapped_families
        metadata.market = context.market_index.stats.to_dict()
        metadata.employees = context.employee_index.stats.to_dict()
