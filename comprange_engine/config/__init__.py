"""Configuration module for the CompRange Engine.

Submodules:
    - settings: Region, engine, cache and ingestion settings
    - loader: RangeBuildConfig and config loading
"""

from .settings import (
    RegionSettings,
    EngineSettings,
    CacheSettings,
    IngestionSettings,
)

from .loader import (
    DEFAULT_CONFIG_PATH,
    RangeBuildConfig,
    load_range_config,
)

__all__ = [
    # Settings
    "RegionSettings",
    "EngineSettings",
    "CacheSettings",
    "IngestionSettings",
    # Loader
    "DEFAULT_CONFIG_PATH",
    "RangeBuildConfig",
    "load_range_config",
]
