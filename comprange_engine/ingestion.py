"""Boundary adapters from tabular extracts to typed records.

Header names are matched here, once, against alias tables; everything past
this module works with VendorRow and EmployeeRecord only.
"""

from __future__ import annotations

import logging
import re
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

import pandas as pd
from pydantic import ValidationError

from .config import IngestionSettings, RangeBuildConfig
from .exceptions import IngestionError
from .models import EmployeeRecord, PerformanceTier, VendorRow

logger = logging.getLogger(__name__)

MAX_SKIPPED_SAMPLES = 20

_PERCENTILE_LABELS: Dict[str, Tuple[str, ...]] = {
    "p10": ("10",),
    "p25": ("25",),
    "p40": ("40",),
    "p50": ("50",),
    "p625": ("62.5", "625"),
    "p75": ("75",),
    "p90": ("90",),
}

MARKET_ALIASES: Dict[str, Tuple[str, ...]] = {
    "job_code": ("jobcode", "aonjobcode", "code", "jobcodeaon"),
    **{
        name: tuple(
            variant
            for n in numbers
            for variant in (f"p{n}", f"{n}th", f"{n}thpercentile", f"percentile{n}", f"basep{n}", f"basesalaryp{n}")
        )
        for name, numbers in _PERCENTILE_LABELS.items()
    },
}

EMPLOYEE_ALIASES: Dict[str, Tuple[str, ...]] = {
    "employee_id": ("employeeid", "empid", "id", "employeenumber"),
    "region": ("region", "site", "location", "workregion"),
    "family_code": ("jobfamilycode", "familycode", "jobfamily", "family"),
    "level": ("level", "joblevel", "mappedlevel"),
    "salary": ("basesalary", "salary", "annualsalary", "basepay"),
    "active": ("active", "isactive"),
    "status": ("status", "employmentstatus", "lifecyclestatus"),
    "employment_type": ("employmenttype", "emptype", "workertype"),
    "approval_status": ("approvalstatus", "mappingstatus", "approval"),
    "start_date": ("startdate", "hiredate", "originalstartdate"),
    "performance": ("performancerating", "performance", "rating", "performancetier"),
}

REQUIRED_EMPLOYEE_COLUMNS = ("employee_id", "region", "family_code", "level", "salary")

_HEADER_NOISE = re.compile(r"[\s_\-:()/]+")


def normalize_header(header: object) -> str:
    return _HEADER_NOISE.sub("", str(header).strip().lower())


def match_columns(columns: Iterable[object], aliases: Mapping[str, Tuple[str, ...]]) -> Dict[str, object]:
    """Map canonical field names onto the frame's actual column labels.

    The first column matching an alias wins.
    """
    normalized = [(normalize_header(col), col) for col in columns]
    mapping: Dict[str, object] = {}
    for field_name, names in aliases.items():
        candidates = {normalize_header(field_name), *names}
        for norm, original in normalized:
            if norm in candidates:
                mapping[field_name] = original
                break
    return mapping


def _cell(row: Mapping[object, object], column: Optional[object]) -> Optional[object]:
    if column is None:
        return None
    value = row.get(column)
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return value


@dataclass
class IngestionReport:
    source: str
    rows_read: int = 0
    rows_loaded: int = 0
    rows_skipped: int = 0
    skipped_samples: List[str] = field(default_factory=list)

    def skip(self, reason: str) -> None:
        self.rows_skipped += 1
        if len(self.skipped_samples) < MAX_SKIPPED_SAMPLES:
            self.skipped_samples.append(reason)

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


# =============================================================================
# Market data
# =============================================================================

def market_rows_from_frame(df: pd.DataFrame, region: str, source: str = "<frame>") -> List[VendorRow]:
    """Convert a vendor percentile table into VendorRows for one region."""
    columns = match_columns(df.columns, MARKET_ALIASES)
    if "job_code" not in columns:
        raise IngestionError(
            "Market data has no job code column",
            source_path=source,
            missing_columns=["job_code"],
        )
    rows: List[VendorRow] = []
    for record in df.to_dict(orient="records"):
        job_code = _cell(record, columns["job_code"])
        if job_code is None:
            continue
        rows.append(
            VendorRow(
                region=region,
                job_code=str(job_code),
                **{name: _cell(record, columns.get(name)) for name in _PERCENTILE_LABELS},
            )
        )
    logger.info("Loaded %d market rows for %s from %s", len(rows), region, source)
    return rows


def read_market_csv(path: Path | str, region: str) -> List[VendorRow]:
    p = Path(path)
    try:
        df = pd.read_csv(p, dtype=str)
    except (OSError, pd.errors.ParserError) as e:
        raise IngestionError("Unable to read market data", source_path=str(p), original_exception=e) from e
    return market_rows_from_frame(df, region, source=str(p))


def load_market_sources(config: RangeBuildConfig, market_path: Path | str) -> Dict[str, List[VendorRow]]:
    """Load every configured region's market source.

    ``market_path`` is either a workbook with one tab per region (tab named
    by ``market_source``) or a directory of ``<market_source>.csv`` files.
    A region whose source is missing maps to an empty list.
    """
    base = Path(market_path)
    result: Dict[str, List[VendorRow]] = {}

    if base.is_file() and base.suffix.lower() in {".xlsx", ".xlsm"}:
        try:
            sheets = pd.read_excel(base, sheet_name=None, dtype=str, engine="openpyxl")
        except (OSError, ValueError) as e:
            raise IngestionError("Unable to read market workbook", source_path=str(base), original_exception=e) from e
        for region in config.regions:
            tab = region.market_source or region.name
            if tab not in sheets:
                logger.warning("Market tab %r for region %s not found in %s", tab, region.name, base)
                result[region.name] = []
                continue
            result[region.name] = market_rows_from_frame(sheets[tab], region.name, source=f"{base}:{tab}")
        return result

    for region in config.regions:
        candidates = [base / f"{region.market_source}.csv"] if region.market_source else []
        candidates.append(base / f"{region.name}.csv")
        path = next((c for c in candidates if c.exists()), None)
        if path is None:
            logger.warning("No market file for region %s under %s", region.name, base)
            result[region.name] = []
            continue
        result[region.name] = read_market_csv(path, region.name)
    return result


# =============================================================================
# Employee directory
# =============================================================================

def _is_truthy(value: object) -> bool:
    return str(value).strip().lower() in {"true", "yes", "y", "1", "active"}


class EmployeeRowParser:
    """Interpret one directory row using the ingestion settings."""

    def __init__(self, settings: IngestionSettings, columns: Mapping[str, object]):
        self.settings = settings
        self.columns = columns
        self._allowed_types = {t.strip().lower() for t in settings.allowed_employment_types}
        self._active_statuses = {s.strip().lower() for s in settings.active_statuses}
        self._tiers = {k.strip().lower(): v for k, v in settings.performance_tier_map.items()}

    def value(self, row: Mapping[object, object], name: str) -> Optional[object]:
        return _cell(row, self.columns.get(name))

    def is_active(self, row: Mapping[object, object]) -> bool:
        explicit = self.value(row, "active")
        if explicit is not None:
            return _is_truthy(explicit)
        status = self.value(row, "status")
        if status is not None and str(status).strip().lower() not in self._active_statuses:
            return False
        emp_type = self.value(row, "employment_type")
        if emp_type is not None and str(emp_type).strip().lower() not in self._allowed_types:
            return False
        return True

    def performance_tier(self, row: Mapping[object, object]) -> PerformanceTier:
        rating = self.value(row, "performance")
        if rating is None:
            return PerformanceTier.UNKNOWN
        mapped = self._tiers.get(str(rating).strip().lower())
        return mapped if mapped is not None else PerformanceTier.parse(rating)

    def start_date(self, row: Mapping[object, object]):
        raw = self.value(row, "start_date")
        if raw is None:
            return None
        parsed = pd.to_datetime(raw, format=self.settings.date_format, errors="coerce")
        if pd.isna(parsed):
            return None
        return parsed.date()

    def parse(self, row: Mapping[object, object]) -> EmployeeRecord:
        return EmployeeRecord(
            employee_id=self.value(row, "employee_id"),
            region=self.value(row, "region"),
            family_code=self.value(row, "family_code"),
            level=self.value(row, "level"),
            salary=self.value(row, "salary"),
            active=self.is_active(row),
            approval_status=self.value(row, "approval_status"),
            start_date=self.start_date(row),
            performance_tier=self.performance_tier(row),
        )


def employees_from_frame(
    df: pd.DataFrame,
    settings: IngestionSettings,
    source: str = "<frame>",
) -> Tuple[List[EmployeeRecord], IngestionReport]:
    columns = match_columns(df.columns, EMPLOYEE_ALIASES)
    missing = [name for name in REQUIRED_EMPLOYEE_COLUMNS if name not in columns]
    if missing:
        raise IngestionError(
            f"Employee directory is missing required columns: {', '.join(missing)}",
            source_path=source,
            missing_columns=missing,
        )

    parser = EmployeeRowParser(settings, columns)
    report = IngestionReport(source=source)
    records: List[EmployeeRecord] = []
    for position, row in enumerate(df.to_dict(orient="records"), start=1):
        report.rows_read += 1
        try:
            record = parser.parse(row)
        except ValidationError as e:
            report.skip(f"row {position}: {e.errors()[0]['msg']}")
            continue
        if not record.employee_id or not record.region or not record.family_code or not record.level:
            report.skip(f"row {position}: missing identifier, region, family or level")
            continue
        records.append(record)
    report.rows_loaded = len(records)
    if report.rows_skipped:
        logger.warning("Skipped %d of %d employee rows from %s", report.rows_skipped, report.rows_read, source)
    logger.info("Loaded %d employee records from %s", report.rows_loaded, source)
    return records, report


def read_employee_csv(
    path: Path | str,
    settings: Optional[IngestionSettings] = None,
) -> Tuple[List[EmployeeRecord], IngestionReport]:
    p = Path(path)
    try:
        df = pd.read_csv(p, dtype=str)
    except (OSError, pd.errors.ParserError) as e:
        raise IngestionError("Unable to read employee directory", source_path=str(p), original_exception=e) from e
    return employees_from_frame(df, settings or IngestionSettings(), source=str(p))
