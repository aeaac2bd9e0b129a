"""Configuration loading and RangeBuildConfig model."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from ..currency import CurrencyRounder
from ..exceptions import (
    ExecutionContext,
    InvalidCategoryError,
    InvalidConfigurationError,
    MissingConfigurationError,
)
from ..levels import DEFAULT_LEVELS, normalize_level
from ..range_selector import DEFAULT_CATEGORY_ALIASES, normalize_category
from .settings import CacheSettings, EngineSettings, IngestionSettings, RegionSettings

DEFAULT_CONFIG_PATH = Path("config/range_config.yaml")


def _default_regions() -> List[RegionSettings]:
    return [
        RegionSettings(name="US", currency="USD", rounding_increment=100, fx_to_usd=1.0,
                       market_source="Aon US Premium - 2025"),
        RegionSettings(name="UK", currency="GBP", rounding_increment=100,
                       market_source="Aon UK London - 2025"),
        RegionSettings(name="India", currency="INR", rounding_increment=1000,
                       market_source="Aon India - 2025"),
    ]


class RangeBuildConfig(BaseModel):
    """Top-level build configuration with extras allowed."""

    model_config = ConfigDict(extra="allow")

    regions: List[RegionSettings] = Field(default_factory=_default_regions)
    # family code -> category; order drives output row order
    categories: Dict[str, str] = Field(default_factory=dict)
    category_aliases: Dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_CATEGORY_ALIASES))
    family_names: Dict[str, str] = Field(default_factory=dict)
    levels: List[str] = Field(default_factory=lambda: list(DEFAULT_LEVELS))

    engine: EngineSettings = Field(default_factory=EngineSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    ingestion: IngestionSettings = Field(default_factory=IngestionSettings)

    @field_validator("regions")
    @classmethod
    def unique_regions(cls, v: List[RegionSettings]) -> List[RegionSettings]:
        names = [r.name for r in v]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate region names: {duplicates}")
        if not v:
            raise ValueError("At least one region is required")
        return v

    @field_validator("levels")
    @classmethod
    def normalize_levels(cls, v: List[str]) -> List[str]:
        normalized = []
        for level in v:
            label = normalize_level(level)
            if label is None:
                raise ValueError(f"Unrecognized level label: {level!r}")
            if label not in normalized:
                normalized.append(label)
        return normalized

    @model_validator(mode="after")
    def normalize_categories(self) -> "RangeBuildConfig":
        normalized: Dict[str, str] = {}
        for family, category in self.categories.items():
            try:
                normalized[str(family)] = normalize_category(category, self.category_aliases)
            except InvalidCategoryError as e:
                raise ValueError(f"{e.message} (family: {family})") from e
        self.categories = normalized
        return self

    @model_validator(mode="after")
    def unique_family_names(self) -> "RangeBuildConfig":
        # Display names are part of the join key
        owners: Dict[str, str] = {}
        for family in self.categories:
            name = self.family_name(family)
            if name in owners:
                raise ValueError(
                    f"Families {owners[name]!r} and {family!r} share display name {name!r}"
                )
            owners[name] = family
        return self

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def region_names(self) -> List[str]:
        return [r.name for r in self.regions]

    def region(self, name: str) -> Optional[RegionSettings]:
        for region in self.regions:
            if region.name == name:
                return region
        return None

    def family_name(self, family_code: str) -> str:
        return self.family_names.get(family_code, family_code)

    def fx_rates(self) -> Dict[str, float]:
        return {r.name: r.fx_to_usd for r in self.regions if r.fx_to_usd is not None}

    def build_rounder(self) -> CurrencyRounder:
        return CurrencyRounder(
            increments={r.name: r.rounding_increment for r in self.regions},
            fx_rates=self.fx_rates(),
            currencies={r.name: r.currency for r in self.regions},
        )


def _lower_keys(d: Dict[str, Any]) -> Dict[str, Any]:
    """Normalize dictionary keys to lowercase."""
    return {k.lower(): v for k, v in d.items()}


def _apply_env_overrides(cfg: Dict[str, Any], env: Dict[str, str], prefix: str) -> None:
    """Apply simple env overrides using DOUBLE-UNDERSCORE path syntax.

    Example: CR_ENGINE__HALF_LEVEL_UPLIFT=1.15 overrides engine.half_level_uplift
    """
    plen = len(prefix)
    for key, value in env.items():
        if not key.startswith(prefix):
            continue
        path = key[plen:].lower().split("__")
        cur: Any = cfg
        for part in path[:-1]:
            if part not in cur or not isinstance(cur[part], dict):
                cur[part] = {}
            cur = cur[part]
        # Basic type coercion for ints/bools/floats
        leaf = path[-1]
        if value.lower() in {"true", "false"}:
            cur[leaf] = value.lower() == "true"
        else:
            try:
                if "." in value:
                    cur[leaf] = float(value)
                else:
                    cur[leaf] = int(value)
            except ValueError:
                cur[leaf] = value


def load_range_config(
    path: Path | str = DEFAULT_CONFIG_PATH,
    *,
    env_overrides: bool = True,
    env: Optional[Dict[str, str]] = None,
    env_prefix: str = "CR_",
) -> RangeBuildConfig:
    """Load YAML config and return a typed `RangeBuildConfig`.

    - Allows extra keys so older config files keep loading
    - Requires a `categories` section (raises MissingConfigurationError)
    - Optionally applies environment variable overrides
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config file not found: {p}")

    with open(p, "r") as fh:
        raw = yaml.safe_load(fh) or {}

    data = _lower_keys(raw)
    if "categories" not in data:
        # Without a family map the build has nothing to emit
        raise MissingConfigurationError(
            "categories", context=ExecutionContext(config_path=str(p), build_stage="config")
        )

    if env_overrides:
        _apply_env_overrides(data, env if env is not None else dict(os.environ), env_prefix)

    try:
        return RangeBuildConfig(**data)
    except ValidationError as e:
        raise InvalidConfigurationError(
            f"Invalid range configuration: {e}", config_path=str(p), original_exception=e
        ) from e
