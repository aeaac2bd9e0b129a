"""Region, engine, cache and ingestion settings models."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from ..employee_index import DEFAULT_NEW_HIRE_WINDOW_DAYS
from ..interpolation import DEFAULT_HALF_LEVEL_UPLIFT
from ..models import ApprovalStatus, PerformanceTier


class RegionSettings(BaseModel):
    """One region of the build: currency, rounding and FX."""
    name: str = Field(..., min_length=1)
    currency: str = Field(default="USD", min_length=3, max_length=3, description="ISO 4217 code")
    rounding_increment: int = Field(default=100, gt=0, description="Round currency fields to this multiple")
    fx_to_usd: Optional[float] = Field(default=None, gt=0, description="Local currency -> USD multiplier")
    market_source: Optional[str] = Field(default=None, description="Market data file or tab for this region")

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()


# =============================================================================
# Engine Settings
# =============================================================================

class EngineSettings(BaseModel):
    """Aggregation policy parameters."""
    half_level_uplift: float = Field(default=DEFAULT_HALF_LEVEL_UPLIFT, gt=0, le=3)
    new_hire_window_days: int = Field(default=DEFAULT_NEW_HIRE_WINDOW_DAYS, ge=0)
    eligible_approval_statuses: List[ApprovalStatus] = Field(
        default_factory=lambda: [ApprovalStatus.APPROVED, ApprovalStatus.LEGACY]
    )

    @field_validator("eligible_approval_statuses", mode="before")
    @classmethod
    def parse_statuses(cls, v):
        if v is None:
            return v
        return [ApprovalStatus.parse(item) for item in v]


class CacheSettings(BaseModel):
    """Point-lookup cache settings."""
    enabled: bool = True
    ttl_seconds: int = Field(default=600, ge=0)


# =============================================================================
# Ingestion Settings
# =============================================================================

class IngestionSettings(BaseModel):
    """Directory extract interpretation."""
    allowed_employment_types: List[str] = Field(
        default_factory=lambda: ["Permanent", "Regular Full-Time"]
    )
    active_statuses: List[str] = Field(default_factory=lambda: ["Active"])
    performance_tier_map: Dict[str, PerformanceTier] = Field(
        default_factory=lambda: {
            "Exceeds Expectations": PerformanceTier.TOP,
            "Top Talent": PerformanceTier.TOP,
            "Meets Expectations": PerformanceTier.NORMAL,
            "Below Expectations": PerformanceTier.BOTTOM,
            "Needs Improvement": PerformanceTier.BOTTOM,
        }
    )
    date_format: Optional[str] = Field(default=None, description="strftime format; inferred when unset")

    @field_validator("performance_tier_map", mode="before")
    @classmethod
    def parse_tiers(cls, v):
        if not isinstance(v, dict):
            return v
        return {str(k): PerformanceTier.parse(t) for k, t in v.items()}
