"""Rule-based recommendations and plan views derived from a gap analysis."""

from typing import Optional

from shared_types import GapSeverity, GapType, InsightSource, Priority

from .models import (
    AnalysisEnvelope,
    GapAnalysisResult,
    GapThresholds,
    Recommendation,
    ResourceGapAnalysis,
)

DEFAULT_THRESHOLDS = GapThresholds()


def _pct(value: Optional[float]) -> str:
    return f"{round(value or 0)}%"


def _names(gaps) -> str:
    return ", ".join(g.skill_name for g in gaps)


def high_gap_categories(
    gap_analysis: GapAnalysisResult, cutoff: float
) -> list[tuple[str, float]]:
    """Non-oversupplied categories above cutoff, largest gap first."""
    ranked = [
        (category, score.gap_score)
        for category, score in gap_analysis.category_gap_scores.items()
        if score.gap_score > cutoff and not score.oversupply
    ]
    return sorted(ranked, key=lambda item: item[1], reverse=True)


def build_recommendations(
    gap_analysis: GapAnalysisResult, thresholds: Optional[GapThresholds] = None
) -> list[Recommendation]:
    """Prioritized recommendations from a gap analysis, no external calls."""
    t = thresholds or DEFAULT_THRESHOLDS
    recommendations: list[Recommendation] = []

    critical = gap_analysis.by_severity(GapSeverity.CRITICAL)
    high = gap_analysis.by_severity(GapSeverity.HIGH)

    if critical:
        recommendations.append(
            Recommendation(
                type="critical_gap",
                priority=Priority.HIGH,
                description=(
                    f"Address critical skill gaps in {len(critical)} skills "
                    "needed for current projects."
                ),
                details=f"Missing skills: {_names(critical)}",
                skills=[{"name": g.skill_name, "category": g.category} for g in critical],
            )
        )
        for gap in critical:
            recommendations.append(
                Recommendation(
                    type="skill_acquisition",
                    priority=Priority.HIGH,
                    description=f"Acquire {gap.skill_name} capability through hiring or training.",
                    details=(
                        f"This skill is required by {_pct(gap.demand_percentage)} of projects "
                        "but is not present in the organization."
                    ),
                    skills=[{"name": gap.skill_name, "category": gap.category}],
                )
            )

    if high:
        recommendations.append(
            Recommendation(
                type="high_gap",
                priority=Priority.MEDIUM,
                description=(
                    f"Increase coverage of {len(high)} skills with low coverage but high demand."
                ),
                details=f"Skills with coverage gaps: {_names(high)}",
                skills=[
                    {
                        "name": g.skill_name,
                        "category": g.category,
                        "coverage": _pct(g.coverage_percentage),
                        "demand": _pct(g.demand_percentage),
                    }
                    for g in high
                ],
            )
        )

    emerging_high = [g for g in gap_analysis.emerging_gaps if g.gap_severity == GapSeverity.HIGH]
    if emerging_high:
        recommendations.append(
            Recommendation(
                type="emerging_trend",
                priority=Priority.MEDIUM,
                description=(
                    f"Develop capabilities in {len(emerging_high)} high-demand market skills."
                ),
                details=f"Emerging skills: {_names(emerging_high)}",
                skills=[
                    {
                        "name": g.skill_name,
                        "category": g.category,
                        "demand_score": g.demand_score,
                        "growth_rate": f"{g.growth_rate}%",
                    }
                    for g in emerging_high
                ],
            )
        )

    oversupply_high = [g for g in gap_analysis.oversupply if g.gap_severity == GapSeverity.HIGH]
    if oversupply_high:
        recommendations.append(
            Recommendation(
                type="skill_oversupply",
                priority=Priority.LOW,
                description=(
                    f"Review resource allocation for {len(oversupply_high)} skills "
                    "with high coverage but low demand."
                ),
                details=f"Oversupplied skills: {_names(oversupply_high)}",
                skills=[
                    {
                        "name": g.skill_name,
                        "category": g.category,
                        "coverage": _pct(g.coverage_percentage),
                        "demand": (
                            _pct(g.demand_percentage)
                            if g.demand_percentage is not None
                            else "Not required"
                        ),
                    }
                    for g in oversupply_high
                ],
            )
        )

    for category, score in high_gap_categories(gap_analysis, t.category_focus_score):
        detail = gap_analysis.category_gap_scores[category]
        recommendations.append(
            Recommendation(
                type="category_focus",
                priority=Priority.HIGH,
                description=f"Focus on building capabilities in {category}.",
                details=(
                    "This category has a significant gap between required skills "
                    "and current capabilities."
                ),
                categories=[
                    {
                        "name": category,
                        "gap_score": _pct(score * 100),
                        "required": detail.required_skills,
                        "available": detail.available_skills,
                    }
                ],
            )
        )

    return recommendations


def build_resource_recommendations(gaps: ResourceGapAnalysis) -> list[Recommendation]:
    """Development recommendations for one resource."""
    recommendations: list[Recommendation] = []

    missing = [g for g in gaps.role_gaps if g["gap_type"] == GapType.MISSING]
    weak = [g for g in gaps.role_gaps if g["gap_type"] == GapType.LOW_PROFICIENCY]

    if missing:
        recommendations.append(
            Recommendation(
                type="role_skill_acquisition",
                priority=Priority.HIGH,
                description=f"Acquire {len(missing)} missing skills required for current role.",
                details="Role requires: " + ", ".join(g["skill_name"] for g in missing),
                skills=[
                    {
                        "name": g["skill_name"],
                        "category": g["category"],
                        "importance": g["importance_level"],
                    }
                    for g in missing
                ],
            )
        )

    if weak:
        recommendations.append(
            Recommendation(
                type="role_skill_improvement",
                priority=Priority.MEDIUM,
                description=f"Improve proficiency in {len(weak)} important role skills.",
                details="Skills to improve: " + ", ".join(g["skill_name"] for g in weak),
                skills=[
                    {
                        "name": g["skill_name"],
                        "category": g["category"],
                        "current_level": g.get("current_level"),
                        "importance": g["importance_level"],
                    }
                    for g in weak
                ],
            )
        )

    by_project: dict[str, list[dict]] = {}
    for gap in gaps.project_gaps:
        by_project.setdefault(gap["project_name"], []).append(gap)

    for project_name, project_gaps in by_project.items():
        recommendations.append(
            Recommendation(
                type="project_skill_gaps",
                priority=Priority.HIGH,
                description=f"Address {len(project_gaps)} skill gaps for project: {project_name}",
                details="Project requires: " + ", ".join(g["skill_name"] for g in project_gaps),
                skills=[
                    {
                        "name": g["skill_name"],
                        "category": g["category"],
                        "gap_type": g["gap_type"],
                        "current_level": g.get("current_level"),
                        "importance": g["importance_level"],
                    }
                    for g in project_gaps
                ],
                metadata={"project_name": project_name},
            )
        )

    if gaps.development_needs:
        top_needs = gaps.development_needs[:3]
        recommendations.append(
            Recommendation(
                type="development_path",
                priority=Priority.HIGH,
                description="Prioritize development of "
                + ", ".join(n["skill_name"] for n in top_needs),
                details="These skills are high priority based on role and project requirements.",
                metadata={
                    "development_path": [
                        {
                            "name": n["skill_name"],
                            "category": n["category"],
                            "current_level": n["current_level"],
                            "target_level": min(5, n["current_level"] + 2),
                            "importance": n["importance"],
                            "sources": n["sources"],
                        }
                        for n in top_needs
                    ]
                },
            )
        )

    if gaps.strengths:
        top_strengths = gaps.strengths[:3]
        recommendations.append(
            Recommendation(
                type="leverage_strengths",
                priority=Priority.MEDIUM,
                description="Leverage expertise in "
                + ", ".join(s["skill_name"] for s in top_strengths),
                details=(
                    "These strengths can be utilized for mentoring, knowledge sharing, "
                    "or specialized projects."
                ),
                metadata={"strengths": top_strengths},
            )
        )

    return recommendations


def build_dashboard_summary(envelope: AnalysisEnvelope) -> dict:
    """Flattened view of an envelope for dashboard rendering."""
    gaps = envelope.gap_analysis
    return {
        "summary": {
            "overall_gap_score": gaps.overall_gap_score,
            "critical_gaps_count": len(gaps.by_severity(GapSeverity.CRITICAL)),
            "high_gaps_count": len(gaps.by_severity(GapSeverity.HIGH)),
            "emerging_gaps_count": len(gaps.emerging_gaps),
            "total_skills": envelope.organization_skills.get("total_skills", 0),
            "total_resources": envelope.organization_skills.get("total_resources", 0),
        },
        "critical_gaps": [g.to_dict() for g in gaps.by_severity(GapSeverity.CRITICAL)],
        "high_gaps": [g.to_dict() for g in gaps.by_severity(GapSeverity.HIGH)],
        "emerging_gaps": [g.to_dict() for g in gaps.emerging_gaps],
        "skills_by_category": envelope.organization_skills.get("skill_categories", {}),
        "recommendations": [r.to_dict() for r in envelope.recommendations],
        "ai_insights": envelope.ai_insights,
        "analyzed_at": envelope.analyzed_at,
        "using_fallback_data": envelope.using_fallback_data,
    }


def _rule_recommendations(
    envelope: AnalysisEnvelope, thresholds: Optional[GapThresholds]
) -> list[Recommendation]:
    # provider-written recommendations are all typed "ai"; plans filter by rule type
    if envelope.insight_source == InsightSource.PROVIDER:
        return build_recommendations(envelope.gap_analysis, thresholds)
    return envelope.recommendations


def build_training_plan(
    envelope: AnalysisEnvelope, thresholds: Optional[GapThresholds] = None
) -> dict:
    """Training priorities: what to teach, to whom, how urgently."""
    gaps = envelope.gap_analysis
    urgent = [
        g
        for g in gaps.immediate_gaps
        if g.gap_severity in (GapSeverity.CRITICAL, GapSeverity.HIGH)
    ][:5]

    return {
        "critical_skills": [
            {
                "skill_name": g.skill_name,
                "category": g.category,
                "gap_severity": g.gap_severity,
                "demand_percentage": g.demand_percentage,
                "current_coverage": g.coverage_percentage or 0,
                "recommended_training_type": (
                    "New Skill Acquisition" if g.gap_type == GapType.MISSING else "Skill Enhancement"
                ),
                "recommended_participants": (
                    "Multiple Teams" if g.gap_type == GapType.MISSING else "Selected Resources"
                ),
                "priority": "High" if g.gap_severity == GapSeverity.CRITICAL else "Medium",
            }
            for g in urgent
        ],
        "emerging_skills": [
            {
                "skill_name": g.skill_name,
                "category": g.category,
                "demand_score": g.demand_score,
                "growth_rate": g.growth_rate,
                "recommended_training_type": "Future Readiness",
                "recommended_participants": "Select High-Potential Resources",
                "priority": "Medium" if g.gap_severity == GapSeverity.HIGH else "Low",
            }
            for g in gaps.emerging_gaps[:3]
        ],
        "recommendations": [
            {
                "description": r.description,
                "details": r.details,
                "priority": r.priority,
                "skills": r.skills,
            }
            for r in _rule_recommendations(envelope, thresholds)
            if r.type in ("critical_gap", "high_gap", "emerging_trend")
        ],
        "ai_insights": envelope.ai_insights,
        "analyzed_at": envelope.analyzed_at,
        "using_fallback_data": envelope.using_fallback_data,
    }


def build_hiring_plan(
    envelope: AnalysisEnvelope, timeframe: str, thresholds: Optional[GapThresholds] = None
) -> dict:
    """Hiring priorities: missing skills now, high-demand next, trends later."""
    gaps = envelope.gap_analysis

    critical = [
        g
        for g in gaps.immediate_gaps
        if g.gap_severity == GapSeverity.CRITICAL and g.gap_type == GapType.MISSING
    ]
    high_demand = [
        g
        for g in gaps.immediate_gaps
        if (g.gap_severity == GapSeverity.HIGH and (g.demand_percentage or 0) > 40)
        or (g.gap_type == GapType.LOW_COVERAGE and (g.coverage_percentage or 0) < 15)
    ]
    emerging = [
        g
        for g in gaps.emerging_gaps
        if (g.demand_score or 0) > 8 and (g.growth_rate or 0) > 25
    ]

    category_priorities = {
        category: {
            "gap_score": score.gap_score,
            "required_skills": score.required_skills,
            "available_skills": score.available_skills,
            "priority": "High" if score.gap_score > 0.7 else "Medium",
        }
        for category, score in gaps.category_gap_scores.items()
        if score.gap_score > 0.4 and not score.oversupply
    }

    return {
        "summary": {
            "timeframe": timeframe,
            "critical_skills_count": len(critical),
            "high_demand_skills_count": len(high_demand),
            "emerging_skills_count": len(emerging),
            "overall_gap_score": gaps.overall_gap_score,
        },
        "critical_roles": [
            {
                "skill_name": g.skill_name,
                "category": g.category,
                "demand_percentage": g.demand_percentage,
                "priority": "High",
                "hiring_timeframe": "Immediate",
                "impact": "Critical for project delivery",
            }
            for g in critical
        ],
        "high_demand_roles": [
            {
                "skill_name": g.skill_name,
                "category": g.category,
                "demand_percentage": g.demand_percentage,
                "current_coverage": g.coverage_percentage or 0,
                "priority": "Medium",
                "hiring_timeframe": "1-3 months",
                "impact": "Addresses high-demand project needs",
            }
            for g in high_demand
        ],
        "emerging_roles": [
            {
                "skill_name": g.skill_name,
                "category": g.category,
                "demand_score": g.demand_score,
                "growth_rate": g.growth_rate,
                "priority": "Medium",
                "hiring_timeframe": "3-6 months",
                "impact": "Positions for future market trends",
            }
            for g in emerging
        ],
        "category_priorities": category_priorities,
        "recommendations": [
            {
                "description": r.description,
                "details": r.details,
                "priority": r.priority,
                "skills": r.skills,
                "categories": r.categories,
            }
            for r in _rule_recommendations(envelope, thresholds)
            if r.type in ("critical_gap", "category_focus")
        ],
        "ai_insights": envelope.ai_insights,
        "analyzed_at": envelope.analyzed_at,
        "using_fallback_data": envelope.using_fallback_data,
    }
