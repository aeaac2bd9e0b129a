"""Per-(region, family, level) index of market vendor percentiles."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .levels import LevelTokenCodec, whole_level_number
from .models import CombinationKey, PercentileSet, VendorRow

logger = logging.getLogger(__name__)

# Number of malformed job codes echoed into the build metadata
MAX_SAMPLES = 20


@dataclass
class MarketIndexStats:
    rows_read: int = 0
    rows_stored: int = 0
    rollup_rows: int = 0
    malformed_job_codes: int = 0
    unmapped_tokens: int = 0
    duplicate_keys: int = 0
    malformed_samples: List[str] = field(default_factory=list)
    unmapped_samples: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


def split_job_code(job_code: str) -> Optional[Tuple[str, str]]:
    """Split ``"<family>.<token>"`` at the last separator.

    Returns None when the code has no separator, or an empty family or token.
    """
    code = (job_code or "").strip()
    family, sep, token = code.rpartition(".")
    family, token = family.strip(), token.strip()
    if not sep or not family or not token:
        return None
    return family, token


class MarketDataIndex:
    """Lookup of raw vendor percentile sets built once per run.

    Rollup rows (``<family>.R<n>``) are stored under the rollup family for
    both the IC and Mgr track at level ``n`` and in a separate rollup table
    consulted when a direct lookup misses. Duplicate keys follow a
    last-row-wins policy.
    """

    def __init__(self, codec: Optional[LevelTokenCodec] = None):
        self.codec = codec or LevelTokenCodec()
        self._entries: Dict[CombinationKey, PercentileSet] = {}
        self._rollups: Dict[Tuple[str, str, int], PercentileSet] = {}
        self._rows_by_region: Dict[str, int] = {}
        self.stats = MarketIndexStats()

    @classmethod
    def build(
        cls,
        rows_by_region: Mapping[str, Iterable[VendorRow]],
        regions: Optional[Sequence[str]] = None,
        codec: Optional[LevelTokenCodec] = None,
    ) -> "MarketDataIndex":
        """Index vendor rows for each region.

        Args:
            rows_by_region: Ordered vendor rows keyed by region
            regions: Region iteration order (defaults to mapping order)
            codec: Level token codec override

        Returns:
            Populated MarketDataIndex
        """
        index = cls(codec)
        for region in regions if regions is not None else list(rows_by_region):
            for row in rows_by_region.get(region, ()) or ():
                index.add(region, row)
        logger.info(
            "Market index built: %d rows read, %d stored, %d malformed, %d unmapped, %d duplicates",
            index.stats.rows_read,
            index.stats.rows_stored,
            index.stats.malformed_job_codes,
            index.stats.unmapped_tokens,
            index.stats.duplicate_keys,
        )
        return index

    def add(self, region: str, row: VendorRow) -> None:
        self.stats.rows_read += 1
        self._rows_by_region[region] = self._rows_by_region.get(region, 0) + 1

        parts = split_job_code(row.job_code)
        if parts is None:
            self.stats.malformed_job_codes += 1
            if len(self.stats.malformed_samples) < MAX_SAMPLES:
                self.stats.malformed_samples.append(f"{region}:{row.job_code}")
            logger.warning("Skipping malformed job code %r in region %s", row.job_code, region)
            return
        family, token = parts
        percentiles = row.percentiles()

        rollup_number = self.codec.parse_rollup_token(token)
        if rollup_number is not None:
            rollup_family = f"{family}.{token.upper()}"
            for level in self.codec.rollup_levels(rollup_number):
                self._store(CombinationKey(region, rollup_family, level), percentiles)
            self._rollups[(region, family, rollup_number)] = percentiles
            self.stats.rollup_rows += 1
            return

        level = self.codec.token_to_level(token)
        if level is None:
            self.stats.unmapped_tokens += 1
            if len(self.stats.unmapped_samples) < MAX_SAMPLES:
                self.stats.unmapped_samples.append(f"{region}:{row.job_code}")
            logger.debug("No level mapping for token %r (%s)", token, row.job_code)
            return
        self._store(CombinationKey(region, family, level), percentiles)

    def _store(self, key: CombinationKey, percentiles: PercentileSet) -> None:
        if key in self._entries:
            self.stats.duplicate_keys += 1
            logger.debug("Duplicate market key %s; later row wins", key)
        else:
            self.stats.rows_stored += 1
        self._entries[key] = percentiles

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get(self, region: str, family_code: str, level: str) -> Optional[PercentileSet]:
        return self._entries.get(CombinationKey(region, family_code, level))

    def get_rollup(self, region: str, family_code: str, level_number: int) -> Optional[PercentileSet]:
        return self._rollups.get((region, family_code, level_number))

    def resolve(self, region: str, family_code: str, level: str) -> Tuple[Optional[PercentileSet], bool]:
        """Direct lookup, then rollup by whole level number.

        Returns:
            (percentiles, from_rollup)
        """
        direct = self.get(region, family_code, level)
        if direct is not None:
            return direct, False
        number = whole_level_number(level)
        if number is None:
            return None, False
        rollup = self.get_rollup(region, family_code, number)
        return rollup, rollup is not None

    def has_region(self, region: str) -> bool:
        return self._rows_by_region.get(region, 0) > 0

    def regions_with_data(self) -> List[str]:
        return [region for region, count in self._rows_by_region.items() if count > 0]

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
