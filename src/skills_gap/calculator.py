"""Gap calculator: classifies coverage/demand mismatches and scores categories.

Everything here is pure: same inputs, same output, no I/O.
"""

from collections.abc import Iterable, Sequence
from typing import Optional

from shared_types import GapSeverity, GapType

from .models import (
    CategoryGapScore,
    CoverageDataset,
    DemandDataset,
    GapAnalysisResult,
    GapEntry,
    GapThresholds,
    MarketTrend,
    ResourceGapAnalysis,
    SkillCoverage,
    SkillDemand,
)

DEFAULT_THRESHOLDS = GapThresholds()


def average(values: Iterable[Optional[float]]) -> float:
    """Arithmetic mean treating None as 0; 0 for an empty input."""
    items = [v or 0 for v in values]
    if not items:
        return 0.0
    return sum(items) / len(items)


def _group_by_category(items, key: str = "category") -> dict[str, list]:
    groups: dict[str, list] = {}
    for item in items:
        groups.setdefault(getattr(item, key), []).append(item)
    return groups


def summarize_coverage_by_category(skills: Sequence[SkillCoverage]) -> dict[str, dict]:
    """Per-category skill count, mean coverage, mean proficiency, top skills."""
    return {
        category: {
            "total_skills": len(group),
            "avg_coverage": average(s.coverage_percentage for s in group),
            "avg_proficiency": average(s.avg_proficiency for s in group),
            "top_skills": [s.name for s in group[:5]],
        }
        for category, group in _group_by_category(skills).items()
    }


def summarize_demand_by_category(requirements: Sequence[SkillDemand]) -> dict[str, dict]:
    """Per-category requirement count, mean demand, mean importance, top skills."""
    return {
        category: {
            "total_skills": len(group),
            "avg_demand": average(r.demand_percentage for r in group),
            "avg_importance": average(r.avg_importance for r in group),
            "top_skills": [r.skill_name for r in group[:5]],
        }
        for category, group in _group_by_category(requirements).items()
    }


def coverage_summary(dataset: CoverageDataset) -> dict:
    """Envelope-level summary of organization skills."""
    total = dataset.total_resources
    held = sum(s.resource_count for s in dataset.skills)
    return {
        "total_skills": len(dataset.skills),
        "total_resources": total,
        "avg_skills_per_resource": held / total if total else 0.0,
        "skill_categories": summarize_coverage_by_category(dataset.skills),
        "top_skills": [s.name for s in dataset.skills[:10]],
    }


def demand_summary(dataset: DemandDataset) -> dict:
    """Envelope-level summary of project requirements."""
    window = dataset.window
    return {
        "total_requirements": len(dataset.requirements),
        "total_projects": dataset.total_projects,
        "time_range": {
            "start_date": window.start_date if window else None,
            "end_date": window.end_date if window else None,
        },
        "skill_categories": summarize_demand_by_category(dataset.requirements),
        "top_requirements": [r.skill_name for r in dataset.requirements[:10]],
    }


class _CoverageIndex:
    """Looks up coverage by skill id, falling back to case-insensitive name."""

    def __init__(self, skills: Sequence[SkillCoverage]):
        self._by_id = {s.skill_id: s for s in skills if s.skill_id is not None}
        self._by_name = {}
        for s in skills:
            self._by_name.setdefault(s.name.lower(), s)

    def find(self, skill_id, name: str) -> Optional[SkillCoverage]:
        if skill_id is not None and skill_id in self._by_id:
            return self._by_id[skill_id]
        return self._by_name.get(name.lower())

    def find_by_name(self, name: str) -> Optional[SkillCoverage]:
        return self._by_name.get(name.lower())


def _classify_immediate(
    req: SkillDemand, skill: Optional[SkillCoverage], t: GapThresholds
) -> Optional[GapEntry]:
    if skill is None:
        return GapEntry(
            skill_id=req.skill_id,
            skill_name=req.skill_name,
            category=req.category,
            demand_percentage=req.demand_percentage,
            avg_importance=req.avg_importance,
            gap_severity=GapSeverity.CRITICAL,
            gap_type=GapType.MISSING,
        )

    if skill.coverage_percentage < t.low_coverage_pct and req.demand_percentage > t.high_demand_pct:
        severity, gap_type = GapSeverity.HIGH, GapType.LOW_COVERAGE
    elif skill.avg_proficiency < t.low_proficiency and req.avg_importance > t.high_importance:
        severity, gap_type = GapSeverity.MEDIUM, GapType.LOW_PROFICIENCY
    else:
        return None

    return GapEntry(
        skill_id=req.skill_id,
        skill_name=req.skill_name,
        category=req.category,
        demand_percentage=req.demand_percentage,
        coverage_percentage=skill.coverage_percentage,
        avg_importance=req.avg_importance,
        avg_proficiency=skill.avg_proficiency,
        gap_severity=severity,
        gap_type=gap_type,
    )


def _classify_trend(
    trend: MarketTrend, skill: Optional[SkillCoverage], t: GapThresholds
) -> Optional[GapEntry]:
    if skill is None:
        if trend.demand_score <= t.trend_missing_score:
            return None
        return GapEntry(
            skill_name=trend.skill_name,
            category=trend.category,
            demand_score=trend.demand_score,
            growth_rate=trend.growth_rate,
            gap_severity=(
                GapSeverity.HIGH if trend.demand_score > t.trend_high_score else GapSeverity.MEDIUM
            ),
            gap_type=GapType.MARKET_TREND,
        )

    if (
        skill.coverage_percentage < t.trend_low_coverage_pct
        and trend.demand_score > t.trend_low_coverage_score
    ):
        return GapEntry(
            skill_id=skill.skill_id,
            skill_name=trend.skill_name,
            category=trend.category,
            demand_score=trend.demand_score,
            growth_rate=trend.growth_rate,
            coverage_percentage=skill.coverage_percentage,
            avg_proficiency=skill.avg_proficiency,
            gap_severity=GapSeverity.MEDIUM,
            gap_type=GapType.LOW_COVERAGE_TREND,
        )
    return None


def _classify_oversupply(
    skill: SkillCoverage, req: Optional[SkillDemand], t: GapThresholds
) -> Optional[GapEntry]:
    if req is None:
        if skill.coverage_percentage <= t.oversupply_unrequired_pct:
            return None
        severity = (
            GapSeverity.HIGH
            if skill.coverage_percentage > t.oversupply_high_pct
            else GapSeverity.MEDIUM
        )
        demand = None
    elif (
        skill.coverage_percentage > t.oversupply_coverage_pct
        and req.demand_percentage < t.oversupply_low_demand_pct
    ):
        severity = GapSeverity.MEDIUM
        demand = req.demand_percentage
    else:
        return None

    return GapEntry(
        skill_id=skill.skill_id,
        skill_name=skill.name,
        category=skill.category,
        coverage_percentage=skill.coverage_percentage,
        demand_percentage=demand,
        resource_count=skill.resource_count,
        avg_proficiency=skill.avg_proficiency,
        gap_severity=severity,
        gap_type=GapType.OVERSUPPLY,
    )


def category_gap_score(
    avg_demand: float,
    avg_coverage: float,
    avg_importance: float,
    avg_proficiency: float,
    thresholds: Optional[GapThresholds] = None,
) -> float:
    """Weighted coverage and proficiency shortfall of one category, in [0, 1]."""
    t = thresholds or DEFAULT_THRESHOLDS
    coverage_gap = max(0.0, avg_demand - avg_coverage) / 100
    proficiency_gap = max(0.0, avg_importance / 5 - avg_proficiency / 5)
    return min(1.0, coverage_gap * t.coverage_weight + proficiency_gap * t.proficiency_weight)


def _category_scores(
    coverage: Sequence[SkillCoverage],
    demand: Sequence[SkillDemand],
    t: GapThresholds,
) -> dict[str, CategoryGapScore]:
    current = summarize_coverage_by_category(coverage)
    required = summarize_demand_by_category(demand)

    scores: dict[str, CategoryGapScore] = {}
    for category in list(dict.fromkeys([*current, *required])):
        cur = current.get(category)
        req = required.get(category)

        if req and not cur:
            scores[category] = CategoryGapScore(
                gap_score=1.0,
                missing_category=True,
                required_skills=req["total_skills"],
                available_skills=0,
                avg_demand=req["avg_demand"],
                avg_importance=req["avg_importance"],
            )
        elif req and cur:
            scores[category] = CategoryGapScore(
                gap_score=category_gap_score(
                    req["avg_demand"],
                    cur["avg_coverage"],
                    req["avg_importance"],
                    cur["avg_proficiency"],
                    t,
                ),
                required_skills=req["total_skills"],
                available_skills=cur["total_skills"],
                avg_demand=req["avg_demand"],
                avg_coverage=cur["avg_coverage"],
                avg_importance=req["avg_importance"],
                avg_proficiency=cur["avg_proficiency"],
            )
        else:
            scores[category] = CategoryGapScore(
                gap_score=0.0,
                oversupply=True,
                required_skills=0,
                available_skills=cur["total_skills"],
                avg_coverage=cur["avg_coverage"],
                avg_proficiency=cur["avg_proficiency"],
            )
    return scores


def compute_gaps(
    coverage: Sequence[SkillCoverage],
    demand: Sequence[SkillDemand],
    trends: Sequence[MarketTrend],
    thresholds: Optional[GapThresholds] = None,
) -> GapAnalysisResult:
    """Build the gap analysis from the three aggregate datasets.

    Args:
        coverage: Organization skill coverage, one row per known skill
        demand: Skill demand across in-window projects
        trends: Market trend rows, most recent first

    Returns:
        Immediate, emerging and oversupply gaps plus category scores
    """
    t = thresholds or DEFAULT_THRESHOLDS
    index = _CoverageIndex(coverage)

    immediate = []
    demand_index: dict = {}
    for req in demand:
        if req.skill_id is not None:
            demand_index.setdefault(("id", req.skill_id), req)
        demand_index.setdefault(("name", req.skill_name.lower()), req)

        gap = _classify_immediate(req, index.find(req.skill_id, req.skill_name), t)
        if gap:
            immediate.append(gap)

    top_trends = sorted(trends, key=lambda tr: tr.demand_score, reverse=True)[: t.trend_window]
    emerging = []
    for trend in top_trends:
        gap = _classify_trend(trend, index.find_by_name(trend.skill_name), t)
        if gap:
            emerging.append(gap)

    oversupply = []
    for skill in coverage:
        req = None
        if skill.skill_id is not None:
            req = demand_index.get(("id", skill.skill_id))
        if req is None:
            req = demand_index.get(("name", skill.name.lower()))
        entry = _classify_oversupply(skill, req, t)
        if entry:
            oversupply.append(entry)

    category_scores = _category_scores(coverage, demand, t)
    overall = average(s.gap_score for s in category_scores.values() if not s.oversupply)

    return GapAnalysisResult(
        immediate_gaps=immediate,
        emerging_gaps=emerging,
        oversupply=oversupply,
        category_gap_scores=category_scores,
        overall_gap_score=overall,
    )


def _resource_skill_lookup(skills: Sequence[dict]):
    by_id = {s["skill_id"]: s for s in skills if s.get("skill_id") is not None}
    by_name = {s["skill_name"].lower(): s for s in skills}

    def find(required: dict) -> Optional[dict]:
        held = by_id.get(required.get("skill_id"))
        return held or by_name.get(required["skill_name"].lower())

    return find


def _required_gap(required: dict, held: Optional[dict], min_importance: int, t: GapThresholds):
    importance = required.get("importance_level") or 0
    if held is None:
        gap_type, current = GapType.MISSING, None
    elif held["proficiency_level"] < t.low_proficiency and importance >= min_importance:
        gap_type, current = GapType.LOW_PROFICIENCY, held["proficiency_level"]
    else:
        return None
    return {
        "skill_id": required.get("skill_id"),
        "skill_name": required["skill_name"],
        "category": required.get("category"),
        "importance_level": importance,
        "current_level": current,
        "gap_type": gap_type,
    }


def compute_resource_gaps(
    skills: Sequence[dict],
    role_skills: Sequence[dict],
    project_skills: Sequence[dict],
    thresholds: Optional[GapThresholds] = None,
) -> ResourceGapAnalysis:
    """Compare one resource's skills with their role and project requirements.

    Role gaps count when the skill is missing or weak on an importance >= 4
    requirement; project gaps use importance >= 3. Development needs merge
    both by skill, keeping the highest importance and every source.
    """
    t = thresholds or DEFAULT_THRESHOLDS
    find = _resource_skill_lookup(skills)

    role_gaps = []
    for required in role_skills:
        gap = _required_gap(required, find(required), 4, t)
        if gap:
            role_gaps.append(gap)

    project_gaps = []
    for required in project_skills:
        gap = _required_gap(required, find(required), 3, t)
        if gap:
            gap["project_id"] = required.get("project_id")
            gap["project_name"] = required.get("project_name")
            project_gaps.append(gap)

    strengths = [
        {
            "skill_id": s.get("skill_id"),
            "skill_name": s["skill_name"],
            "category": s.get("category"),
            "proficiency_level": s["proficiency_level"],
            "is_certified": bool(s.get("is_certified")),
            "experience_years": s.get("experience_years"),
        }
        for s in skills
        if s["proficiency_level"] >= 4
    ]

    needs: dict = {}
    for gap, source in [(g, "Role requirement") for g in role_gaps] + [
        (g, f"Project: {g['project_name']}") for g in project_gaps
    ]:
        key = gap["skill_id"] if gap["skill_id"] is not None else gap["skill_name"].lower()
        need = needs.setdefault(
            key,
            {
                "skill_id": gap["skill_id"],
                "skill_name": gap["skill_name"],
                "category": gap["category"],
                "current_level": gap["current_level"] or 0,
                "importance": 0,
                "sources": [],
            },
        )
        need["importance"] = max(need["importance"], gap["importance_level"] or 3)
        if source not in need["sources"]:
            need["sources"].append(source)

    development_needs = sorted(needs.values(), key=lambda n: n["importance"], reverse=True)

    return ResourceGapAnalysis(
        role_gaps=role_gaps,
        project_gaps=project_gaps,
        strengths=strengths,
        development_needs=development_needs,
    )
