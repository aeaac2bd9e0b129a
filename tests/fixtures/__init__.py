"""
Shared Test Fixtures for the CompRange Engine

- config.py: RangeBuildConfig fixtures
- market_data.py: Vendor percentile rows per region
- workforce_data.py: Employee directory records
"""

from .config import (
    minimal_config,
    three_region_config,
)
from .market_data import (
    make_vendor_row,
    us_market_rows,
    three_region_market_rows,
)
from .workforce_data import (
    AS_OF,
    make_employee,
    sample_employees,
)

__all__ = [
    # Configuration fixtures
    "minimal_config",
    "three_region_config",
    # Market data fixtures
    "make_vendor_row",
    "us_market_rows",
    "three_region_market_rows",
    # Workforce data fixtures
    "AS_OF",
    "make_employee",
    "sample_employees",
]
