"""Skills gap analysis: coverage vs. project demand vs. market trends."""

from .analyzer import SkillsGapAnalyzer
from .calculator import compute_gaps, compute_resource_gaps
from .errors import (
    DataUnavailable,
    InvalidArgument,
    ProviderError,
    SkillsGapError,
    StorageError,
    StorageUnreachable,
)
from .fallback import fallback_envelope, fallback_resource_envelope
from .models import AnalysisEnvelope, AnalysisOptions, GapThresholds, ResourceEnvelope
from .narrator import InsightNarrator, Narration, parse_insight_response
from .recommendations import build_recommendations
from .repository import SkillsRepository

__all__ = [
    "SkillsGapAnalyzer",
    "SkillsRepository",
    "InsightNarrator",
    "Narration",
    "AnalysisOptions",
    "AnalysisEnvelope",
    "ResourceEnvelope",
    "GapThresholds",
    "compute_gaps",
    "compute_resource_gaps",
    "build_recommendations",
    "parse_insight_response",
    "fallback_envelope",
    "fallback_resource_envelope",
    "SkillsGapError",
    "DataUnavailable",
    "InvalidArgument",
    "ProviderError",
    "StorageError",
    "StorageUnreachable",
]
