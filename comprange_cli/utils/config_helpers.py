"""
Configuration helper utilities for the CompRange CLI

Functions to find configuration files and load build inputs.
"""

from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from comprange_engine.config import RangeBuildConfig, load_range_config
from comprange_engine.ingestion import IngestionReport, load_market_sources, read_employee_csv
from comprange_engine.models import EmployeeRecord, VendorRow


def find_default_config() -> Path:
    """Find the default range configuration file."""
    default_paths = [
        Path("config/range_config.yaml"),
        Path("range_config.yaml"),
        Path("config.yaml"),
    ]

    for config_path in default_paths:
        if config_path.exists():
            return config_path

    # Return the most likely path even if it doesn't exist
    return Path("config/range_config.yaml")


def resolve_config(config: Optional[str]) -> Tuple[Path, RangeBuildConfig]:
    config_path = Path(config) if config else find_default_config()
    return config_path, load_range_config(config_path)


def parse_as_of(value: Optional[str]) -> Optional[date]:
    """Parse an ISO date (YYYY-MM-DD) option.

    Raises:
        ValueError: If the format is invalid
    """
    if not value:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise ValueError(f"Invalid --as-of date '{value}'. Use YYYY-MM-DD")


def load_inputs(
    cfg: RangeBuildConfig,
    market: str,
    employees: Optional[str],
) -> Tuple[Dict[str, List[VendorRow]], List[EmployeeRecord], Optional[IngestionReport]]:
    """Load market sources and (optionally) the employee directory."""
    market_rows = load_market_sources(cfg, market)
    if not employees:
        return market_rows, [], None
    records, report = read_employee_csv(employees, cfg.ingestion)
    return market_rows, records, report
