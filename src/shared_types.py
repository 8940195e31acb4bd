"""Shared enums and types for the skills gap engine."""

from enum import StrEnum


class GapSeverity(StrEnum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"


class GapType(StrEnum):
    MISSING = "missing"
    LOW_COVERAGE = "low_coverage"
    LOW_PROFICIENCY = "low_proficiency"
    MARKET_TREND = "market_trend"
    LOW_COVERAGE_TREND = "low_coverage_trend"
    OVERSUPPLY = "oversupply"


class Priority(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class InsightSource(StrEnum):
    PROVIDER = "provider"
    RULES = "rules"


class TimeRange(StrEnum):
    ONE_MONTH = "1month"
    THREE_MONTHS = "3months"
    SIX_MONTHS = "6months"
    ONE_YEAR = "1year"
