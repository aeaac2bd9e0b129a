"""Point lookups against a build context, read through the TTL cache."""

from __future__ import annotations

import logging
from typing import Optional

from .cache import RangeCache, TTLRangeCache
from .engine import AggregationEngine, BuildContext
from .levels import normalize_level
from .models import CombinationKey, OutputRow

logger = logging.getLogger(__name__)


class RangeCalculator:
    """Answer single-key range queries without re-running the bulk build.

    Rows are computed on demand from the context's indices; results are
    cached by lookup parameters when a cache is available.
    """

    def __init__(
        self,
        engine: AggregationEngine,
        context: BuildContext,
        cache: Optional[RangeCache] = None,
    ):
        self.engine = engine
        self.context = context
        if cache is None:
            cache = context.cache
        if cache is None and engine.config.cache.enabled:
            cache = TTLRangeCache(ttl_seconds=engine.config.cache.ttl_seconds)
        self.cache = cache

    def lookup(
        self,
        region: str,
        family_code: str,
        level: str,
        *,
        usd: bool = False,
    ) -> Optional[OutputRow]:
        label = normalize_level(level) or level
        params = {
            "run_id": self.context.run_id,
            "region": region,
            "family_code": family_code,
            "level": label,
            "usd": usd,
        }
        if self.cache is not None:
            cached = self.cache.get(params)
            if cached is not None:
                return cached

        row = self.engine.compute_row(self.context, CombinationKey(region, family_code, label))
        if row is not None and usd:
            row = self.engine.to_usd_row(self.context, row)
        if row is None:
            logger.debug("No range for %s / %s / %s", region, family_code, label)
        elif self.cache is not None:
            self.cache.put(params, row)
        return row

    def flush(self) -> None:
        if self.cache is not None:
            self.cache.flush()
