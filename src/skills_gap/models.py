"""Data model for skills gap analysis."""

import calendar
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shared_types import GapSeverity, GapType, InsightSource, Priority, TimeRange

DEFAULT_CATEGORY = "Uncategorized"
DEFAULT_TIME_RANGE = TimeRange.SIX_MONTHS.value

_TIME_RANGE_MONTHS = {
    TimeRange.ONE_MONTH: 1,
    TimeRange.THREE_MONTHS: 3,
    TimeRange.SIX_MONTHS: 6,
    TimeRange.ONE_YEAR: 12,
}


class GapThresholds(BaseModel):
    """Classification cut-offs. Defaults are the historical hard-coded values."""

    model_config = ConfigDict(frozen=True)

    # immediate gaps
    low_coverage_pct: float = 20.0
    high_demand_pct: float = 30.0
    low_proficiency: float = 3.0
    high_importance: float = 3.5
    # emerging gaps
    trend_window: int = 10
    trend_missing_score: float = 7.5
    trend_high_score: float = 8.5
    trend_low_coverage_pct: float = 15.0
    trend_low_coverage_score: float = 8.0
    # oversupply
    oversupply_unrequired_pct: float = 30.0
    oversupply_high_pct: float = 60.0
    oversupply_coverage_pct: float = 70.0
    oversupply_low_demand_pct: float = 20.0
    # category score
    coverage_weight: float = 0.7
    proficiency_weight: float = 0.3
    category_focus_score: float = 0.5
    # narration
    significant_overall_gap: float = 0.3
    notable_category_gap: float = 0.4


@dataclass(frozen=True)
class TimeWindow:
    """Inclusive analysis window as ISO dates."""

    start_date: str
    end_date: str


def _add_months(day: date, months: int) -> date:
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return day.replace(year=year, month=month, day=min(day.day, last_day))


def time_range_window(time_range: str | None, today: Optional[date] = None) -> TimeWindow:
    """Convert a time-range token into [today, today + N months].

    Unknown or missing tokens fall back to six months.
    """
    today = today or date.today()
    try:
        months = _TIME_RANGE_MONTHS[TimeRange(time_range)]
    except ValueError:
        months = _TIME_RANGE_MONTHS[TimeRange.SIX_MONTHS]
    return TimeWindow(
        start_date=today.isoformat(),
        end_date=_add_months(today, months).isoformat(),
    )


@dataclass
class SkillCoverage:
    """How many resources hold a skill, and how well."""

    skill_id: Optional[int]
    name: str
    category: str = DEFAULT_CATEGORY
    resource_count: int = 0
    coverage_percentage: float = 0.0
    avg_proficiency: float = 0.0
    certified_count: int = 0
    certification_percentage: float = 0.0


@dataclass
class SkillDemand:
    """How many in-window projects require a skill, and how strongly."""

    skill_id: Optional[int]
    skill_name: str
    category: str = DEFAULT_CATEGORY
    project_count: int = 0
    demand_percentage: float = 0.0
    avg_importance: float = 0.0


@dataclass
class MarketTrend:
    skill_name: str
    category: str = DEFAULT_CATEGORY
    demand_score: float = 0.0
    growth_rate: int = 0
    trend_date: Optional[str] = None


@dataclass
class CoverageDataset:
    skills: list[SkillCoverage] = field(default_factory=list)
    total_resources: int = 0


@dataclass
class DemandDataset:
    requirements: list[SkillDemand] = field(default_factory=list)
    total_projects: int = 0
    window: Optional[TimeWindow] = None


@dataclass
class TrendDataset:
    trends: list[MarketTrend] = field(default_factory=list)
    baseline: bool = False

    @property
    def top_trends(self) -> list[MarketTrend]:
        return self.trends[:10]


@dataclass
class GapEntry:
    """A classified mismatch between coverage and demand."""

    skill_name: str
    category: str
    gap_severity: GapSeverity
    gap_type: GapType
    skill_id: Optional[int] = None
    demand_percentage: Optional[float] = None
    coverage_percentage: Optional[float] = None
    avg_importance: Optional[float] = None
    avg_proficiency: Optional[float] = None
    demand_score: Optional[float] = None
    growth_rate: Optional[int] = None
    resource_count: Optional[int] = None

    def to_dict(self) -> dict:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class CategoryGapScore:
    gap_score: float
    required_skills: int
    available_skills: int
    missing_category: bool = False
    oversupply: bool = False
    avg_demand: Optional[float] = None
    avg_coverage: Optional[float] = None
    avg_importance: Optional[float] = None
    avg_proficiency: Optional[float] = None

    def to_dict(self) -> dict:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class GapAnalysisResult:
    immediate_gaps: list[GapEntry] = field(default_factory=list)
    emerging_gaps: list[GapEntry] = field(default_factory=list)
    oversupply: list[GapEntry] = field(default_factory=list)
    category_gap_scores: dict[str, CategoryGapScore] = field(default_factory=dict)
    overall_gap_score: float = 0.0

    def by_severity(self, severity: GapSeverity) -> list[GapEntry]:
        return [g for g in self.immediate_gaps if g.gap_severity == severity]

    def to_dict(self) -> dict:
        return {
            "immediate_gaps": [g.to_dict() for g in self.immediate_gaps],
            "emerging_gaps": [g.to_dict() for g in self.emerging_gaps],
            "oversupply": [g.to_dict() for g in self.oversupply],
            "category_gap_scores": {
                name: score.to_dict() for name, score in self.category_gap_scores.items()
            },
            "overall_gap_score": self.overall_gap_score,
        }


@dataclass
class Recommendation:
    type: str
    priority: Priority
    description: str
    details: str = ""
    skills: list[dict] = field(default_factory=list)
    categories: list[dict] = field(default_factory=list)
    metadata: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return asdict(self)


class AnalysisOptions(BaseModel):
    """Caller options for an organization or department analysis."""

    department_id: Optional[int | str] = None
    include_ai_insights: bool = True
    time_range: str = DEFAULT_TIME_RANGE
    skill_categories: list[str] = Field(default_factory=list)
    force_fallback: bool = False

    @field_validator("time_range", mode="before")
    @classmethod
    def normalize_time_range(cls, v: Any) -> str:
        if v in {t.value for t in TimeRange}:
            return v
        return DEFAULT_TIME_RANGE

    @field_validator("skill_categories", mode="before")
    @classmethod
    def split_categories(cls, v: Any) -> list[str]:
        if v is None:
            return []
        if isinstance(v, str):
            return [c.strip() for c in v.split(",") if c.strip()]
        return v


def _now_iso() -> str:
    return datetime.now().isoformat()


@dataclass
class AnalysisEnvelope:
    """Everything an organization or department analysis returns."""

    organization_skills: dict
    project_requirements: dict
    gap_analysis: GapAnalysisResult
    recommendations: list[Recommendation]
    ai_insights: Optional[list[str]]
    market_trends: list[MarketTrend]
    analyzed_at: str = field(default_factory=_now_iso)
    using_fallback_data: bool = False
    insight_source: Optional[InsightSource] = None

    def to_dict(self) -> dict:
        return {
            "organization_skills": self.organization_skills,
            "project_requirements": self.project_requirements,
            "gap_analysis": self.gap_analysis.to_dict(),
            "recommendations": [r.to_dict() for r in self.recommendations],
            "ai_insights": self.ai_insights,
            "market_trends": [asdict(t) for t in self.market_trends],
            "analyzed_at": self.analyzed_at,
            "using_fallback_data": self.using_fallback_data,
            "insight_source": self.insight_source,
        }


@dataclass
class ResourceGapAnalysis:
    role_gaps: list[dict] = field(default_factory=list)
    project_gaps: list[dict] = field(default_factory=list)
    strengths: list[dict] = field(default_factory=list)
    development_needs: list[dict] = field(default_factory=list)


@dataclass
class ResourceEnvelope:
    resource_id: int | str
    resource_name: Optional[str]
    department: Optional[str]
    role: Optional[str]
    current_skills: list[dict]
    gap_analysis: ResourceGapAnalysis
    recommendations: list[Recommendation]
    ai_insights: Optional[list[str]]
    analyzed_at: str = field(default_factory=_now_iso)
    using_fallback_data: bool = False
    insight_source: Optional[InsightSource] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["recommendations"] = [r.to_dict() for r in self.recommendations]
        return data
