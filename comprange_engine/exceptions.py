"""
Structured exception hierarchy with build context for the CompRange Engine.

All exceptions include:
- correlation_id: Trace errors back to a single build run
- execution_context: Region, family, level, build stage
- resolution_hints: Actionable suggestions for common issues
- severity: CRITICAL, ERROR, RECOVERABLE, WARNING

Recoverable data problems (malformed job codes, invalid salaries, unmapped
FX regions) are counted in BuildMetadata and never raised.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence
import uuid


class ErrorSeverity(str, Enum):
    """Error severity levels for triage"""
    CRITICAL = "critical"      # Build cannot produce a meaningful table
    ERROR = "error"            # Invalid input or configuration, requires intervention
    RECOVERABLE = "recoverable"  # Retry possible after fixing an input file
    WARNING = "warning"        # Non-blocking issue, may degrade quality


class ErrorCategory(str, Enum):
    """Error categories for diagnostics and resolution routing"""
    CONFIGURATION = "configuration"    # Invalid config, missing parameters
    MARKET_DATA = "market_data"        # Vendor percentile sources
    DATA_QUALITY = "data_quality"      # Validation errors
    INGESTION = "ingestion"            # Unreadable files, missing columns
    STATE = "state"                    # Build context inconsistency


@dataclass
class ExecutionContext:
    """Build context attached to an error for diagnosis"""

    # Primary context
    build_stage: Optional[str] = None
    region: Optional[str] = None
    family_code: Optional[str] = None
    level: Optional[str] = None

    # Run context
    correlation_id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    run_id: Optional[str] = None
    config_path: Optional[str] = None

    # Timing context
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())
    elapsed_seconds: Optional[float] = None

    # Additional metadata
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize context for logging and storage"""
        return {
            k: v for k, v in self.__dict__.items()
            if v is not None and not k.startswith('_')
        }

    def format_summary(self) -> str:
        """Human-readable one-line summary"""
        parts = []
        if self.build_stage:
            parts.append(f"stage={self.build_stage}")
        if self.region:
            parts.append(f"region={self.region}")
        if self.family_code:
            parts.append(f"family={self.family_code}")
        if self.level:
            parts.append(f"level={self.level}")
        if self.correlation_id:
            parts.append(f"correlation_id={self.correlation_id}")
        return " | ".join(parts)


@dataclass
class ResolutionHint:
    """Actionable resolution guidance for common error patterns"""

    title: str
    description: str
    steps: List[str]
    documentation_url: Optional[str] = None
    estimated_resolution_time: Optional[str] = None


class RangeEngineError(Exception):
    """
    Base exception for the CompRange Engine with structured context.

    All engine exceptions inherit from this class so callers can catch one
    type and still get consistent diagnostic information.
    """

    def __init__(
        self,
        message: str,
        *,
        context: Optional[ExecutionContext] = None,
        category: ErrorCategory = ErrorCategory.STATE,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        resolution_hints: Optional[List[ResolutionHint]] = None,
        original_exception: Optional[Exception] = None,
        **kwargs
    ):
        super().__init__(message)
        self.message = message
        self.context = context or ExecutionContext()
        self.category = category
        self.severity = severity
        self.resolution_hints = resolution_hints or []
        self.original_exception = original_exception
        self.additional_data = kwargs

    def format_diagnostic_message(self) -> str:
        """
        Format diagnostic message for logs and console display.

        Returns multi-line formatted error with message and severity,
        build context, resolution hints and the original exception.
        """
        lines = [
            f"{'='*80}",
            f"ERROR: {self.message}",
            f"Severity: {self.severity.value.upper()} | Category: {self.category.value}",
            f"{'='*80}",
            "",
            "BUILD CONTEXT:",
        ]

        context_dict = self.context.to_dict()
        for key, value in context_dict.items():
            if key == 'metadata' and isinstance(value, dict):
                for meta_key, meta_value in value.items():
                    lines.append(f"  {meta_key}: {meta_value}")
            else:
                lines.append(f"  {key}: {value}")

        if self.resolution_hints:
            lines.append("")
            lines.append("RESOLUTION HINTS:")
            for i, hint in enumerate(self.resolution_hints, 1):
                lines.append(f"\n{i}. {hint.title}")
                lines.append(f"   {hint.description}")
                if hint.steps:
                    lines.append("   Steps:")
                    for step in hint.steps:
                        lines.append(f"     - {step}")
                if hint.documentation_url:
                    lines.append(f"   Docs: {hint.documentation_url}")
                if hint.estimated_resolution_time:
                    lines.append(f"   Est. Time: {hint.estimated_resolution_time}")

        if self.original_exception:
            lines.append("")
            lines.append("ORIGINAL EXCEPTION:")
            lines.append(f"  {type(self.original_exception).__name__}: {str(self.original_exception)}")

        lines.append("")
        lines.append(f"{'='*80}")

        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for structured logging"""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "context": self.context.to_dict(),
            "resolution_hints": [
                {
                    "title": hint.title,
                    "description": hint.description,
                    "steps": hint.steps,
                    "documentation_url": hint.documentation_url,
                    "estimated_time": hint.estimated_resolution_time
                }
                for hint in self.resolution_hints
            ],
            "original_exception": str(self.original_exception) if self.original_exception else None,
            **self.additional_data
        }


# Configuration Errors
class ConfigurationError(RangeEngineError):
    """Configuration-related errors"""
    def __init__(self, message: str, **kwargs):
        super().__init__(message, category=ErrorCategory.CONFIGURATION, **kwargs)


class InvalidConfigurationError(ConfigurationError):
    """Invalid configuration parameter or structure"""
    def __init__(
        self,
        message: str,
        config_path: Optional[str] = None,
        invalid_value: Optional[Any] = None,
        **kwargs
    ):
        if config_path:
            message = f"{message} (config_path: {config_path})"
        if invalid_value is not None:
            message = f"{message} (value: {invalid_value})"
        super().__init__(message, severity=ErrorSeverity.ERROR, **kwargs)


class MissingConfigurationError(ConfigurationError):
    """Required configuration parameter not found"""
    def __init__(self, parameter_name: str, **kwargs):
        message = f"Required configuration parameter missing: {parameter_name}"
        if "resolution_hints" not in kwargs:
            kwargs["resolution_hints"] = [
                ResolutionHint(
                    title="Add Missing Configuration",
                    description=f"The parameter '{parameter_name}' must be defined",
                    steps=[
                        "Open config/range_config.yaml",
                        f"Add {parameter_name} with appropriate value",
                        "Validate config: comprange validate",
                        "Retry the build",
                    ],
                    estimated_resolution_time="5 minutes"
                )
            ]
        super().__init__(message, severity=ErrorSeverity.ERROR, **kwargs)


class InvalidCategoryError(ConfigurationError):
    """Range category outside the supported set"""
    def __init__(self, category: str, family_code: Optional[str] = None, **kwargs):
        message = f"Unknown range category: {category!r}"
        if family_code:
            message = f"{message} (family: {family_code})"
        super().__init__(message, severity=ErrorSeverity.ERROR, **kwargs)


# Data Quality Errors
class DataQualityError(RangeEngineError):
    """Data quality and validation errors"""
    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("category", ErrorCategory.DATA_QUALITY)
        super().__init__(message, **kwargs)


class MarketDataMissingError(DataQualityError):
    """No market percentile data available for any configured region"""
    def __init__(self, missing_regions: Sequence[str], **kwargs):
        self.missing_regions = list(missing_regions)
        message = (
            "Market data is empty or missing for every region: "
            + ", ".join(self.missing_regions)
        )
        if "resolution_hints" not in kwargs:
            kwargs["resolution_hints"] = [
                ResolutionHint(
                    title="Load Market Percentile Sources",
                    description="Without market data the range table is meaningless and is not emitted",
                    steps=[
                        "Check regions[].market_source in config/range_config.yaml",
                        "Verify the market directory contains one file per region",
                        "Confirm each file has a job code column and percentile columns",
                        "Retry the build",
                    ],
                    estimated_resolution_time="5-10 minutes"
                )
            ]
        kwargs["metadata"] = kwargs.get("metadata", {})
        kwargs["metadata"]["missing_regions"] = self.missing_regions
        super().__init__(
            message,
            category=ErrorCategory.MARKET_DATA,
            severity=ErrorSeverity.CRITICAL,
            **kwargs,
        )


# Ingestion Errors
class IngestionError(RangeEngineError):
    """Input file cannot be read or lacks required columns"""
    def __init__(
        self,
        message: str,
        source_path: Optional[str] = None,
        missing_columns: Optional[List[str]] = None,
        **kwargs
    ):
        if source_path:
            message = f"{message} (source: {source_path})"
        if missing_columns:
            kwargs["metadata"] = kwargs.get("metadata", {})
            kwargs["metadata"]["missing_columns"] = missing_columns
        super().__init__(
            message,
            category=ErrorCategory.INGESTION,
            severity=ErrorSeverity.RECOVERABLE,
            **kwargs,
        )
