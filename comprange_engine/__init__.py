"""
CompRange Engine core package.

Builds the FullList salary range reference table from market vendor
percentiles and employee directory records.
"""

from _version import __version__, get_full_version, get_version_dict

from .cache import RangeCache, TTLRangeCache
from .config import RangeBuildConfig, load_range_config
from .currency import CurrencyRounder
from .employee_index import EmployeeIndex
from .engine import AggregationEngine, BuildContext, BuildMetadata, BuildResult
from .exceptions import (
    ConfigurationError,
    DataQualityError,
    IngestionError,
    InvalidCategoryError,
    InvalidConfigurationError,
    MarketDataMissingError,
    RangeEngineError,
)
from .exporter import TableExporter
from .interpolation import HalfLevelInterpolator
from .levels import DEFAULT_LEVELS, LevelTokenCodec
from .logger import JSONFormatter, ProductionLogger, get_logger
from .lookup import RangeCalculator
from .market_index import MarketDataIndex
from .models import (
    ApprovalStatus,
    CombinationKey,
    CompaRatioStats,
    EmployeeRecord,
    InternalStats,
    MarketRange,
    OutputRow,
    PercentileSet,
    PerformanceTier,
    VendorRow,
)
from .range_selector import RangeSelector

__all__ = [
    # Version
    "__version__",
    "get_full_version",
    "get_version_dict",
    # Config
    "RangeBuildConfig",
    "load_range_config",
    # Models
    "ApprovalStatus",
    "CombinationKey",
    "CompaRatioStats",
    "EmployeeRecord",
    "InternalStats",
    "MarketRange",
    "OutputRow",
    "PercentileSet",
    "PerformanceTier",
    "VendorRow",
    # Components
    "LevelTokenCodec",
    "DEFAULT_LEVELS",
    "MarketDataIndex",
    "HalfLevelInterpolator",
    "RangeSelector",
    "EmployeeIndex",
    "CurrencyRounder",
    "AggregationEngine",
    "BuildContext",
    "BuildMetadata",
    "BuildResult",
    "RangeCalculator",
    "RangeCache",
    "TTLRangeCache",
    "TableExporter",
    # Logging
    "JSONFormatter",
    "ProductionLogger",
    "get_logger",
    # Exceptions
    "RangeEngineError",
    "ConfigurationError",
    "InvalidConfigurationError",
    "InvalidCategoryError",
    "DataQualityError",
    "MarketDataMissingError",
    "IngestionError",
]
