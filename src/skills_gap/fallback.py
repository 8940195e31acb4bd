"""Canned envelopes returned when real skills data is unavailable.

The figures are illustrative but consistent with each other: category
scores follow from their averages by the live scoring formula, they average
to the overall score, and recommendations are derived from the canned gaps
by the same rules used for live data.
"""

from shared_types import GapSeverity, GapType, InsightSource

from .calculator import compute_resource_gaps
from .models import (
    DEFAULT_TIME_RANGE,
    AnalysisEnvelope,
    CategoryGapScore,
    GapAnalysisResult,
    GapEntry,
    ResourceEnvelope,
    time_range_window,
)
from .recommendations import build_recommendations, build_resource_recommendations
from .repository import baseline_trends

FALLBACK_INSIGHTS = [
    "Cloud architecture and data engineering are the largest gaps: both are required by "
    "more than half of upcoming projects and nobody currently holds them.",
    "Technical skills trail business skills, driven by demand for React and Python that "
    "outpaces the few people who hold them.",
    "Design capacity is thin: UX Design is held by 10% of resources but needed on 45% "
    "of projects.",
]

FALLBACK_RESOURCE_INSIGHTS = [
    "Strong JavaScript expertise makes this resource a good candidate for front-end "
    "mentoring.",
    "Cloud architecture is expected for the role but not yet part of the skill profile.",
    "SQL proficiency is below what current project work requires.",
]


def _fallback_gap_analysis() -> GapAnalysisResult:
    def missing(name, demand):
        return GapEntry(
            skill_name=name,
            category="Technical",
            demand_percentage=demand,
            avg_importance=4.5,
            gap_severity=GapSeverity.CRITICAL,
            gap_type=GapType.MISSING,
        )

    def low_coverage(name, category, demand, coverage):
        return GapEntry(
            skill_name=name,
            category=category,
            demand_percentage=demand,
            coverage_percentage=coverage,
            avg_importance=4.0,
            avg_proficiency=3.5,
            gap_severity=GapSeverity.HIGH,
            gap_type=GapType.LOW_COVERAGE,
        )

    def trend(name, score, growth, severity):
        return GapEntry(
            skill_name=name,
            category="Technical",
            demand_score=score,
            growth_rate=growth,
            gap_severity=severity,
            gap_type=GapType.MARKET_TREND,
        )

    return GapAnalysisResult(
        immediate_gaps=[
            missing("Cloud Architecture", 65.0),
            missing("Data Engineering", 55.0),
            missing("DevOps", 50.0),
            low_coverage("React", "Technical", 70.0, 15.0),
            low_coverage("Python", "Technical", 60.0, 18.0),
            low_coverage("UX Design", "Design", 45.0, 10.0),
        ],
        emerging_gaps=[
            trend("Machine Learning", 8.9, 35, GapSeverity.HIGH),
            trend("AI Engineering", 8.7, 40, GapSeverity.HIGH),
            trend("Blockchain", 8.2, 25, GapSeverity.MEDIUM),
        ],
        oversupply=[],
        category_gap_scores={
            "Technical": CategoryGapScore(
                gap_score=0.45,
                required_skills=12,
                available_skills=20,
                avg_demand=90.0,
                avg_coverage=30.0,
                avg_importance=4.2,
                avg_proficiency=3.7,
            ),
            "Design": CategoryGapScore(
                gap_score=0.35,
                required_skills=4,
                available_skills=8,
                avg_demand=75.0,
                avg_coverage=25.0,
                avg_importance=3.8,
                avg_proficiency=4.0,
            ),
            "Business": CategoryGapScore(
                gap_score=0.25,
                required_skills=5,
                available_skills=12,
                avg_demand=65.0,
                avg_coverage=40.0,
                avg_importance=4.0,
                avg_proficiency=2.75,
            ),
        },
        overall_gap_score=0.35,
    )


def _organization_summary() -> dict:
    return {
        "total_skills": 40,
        "total_resources": 25,
        "avg_skills_per_resource": 4.2,
        "skill_categories": {
            "Technical": {
                "total_skills": 20,
                "avg_coverage": 30.0,
                "avg_proficiency": 3.7,
                "top_skills": ["JavaScript", "Java", "SQL", "React", "Python"],
            },
            "Design": {
                "total_skills": 8,
                "avg_coverage": 25.0,
                "avg_proficiency": 4.0,
                "top_skills": ["UI Design", "Figma", "UX Design"],
            },
            "Business": {
                "total_skills": 12,
                "avg_coverage": 40.0,
                "avg_proficiency": 2.75,
                "top_skills": ["Project Management", "Business Analysis", "Agile"],
            },
        },
        "top_skills": ["JavaScript", "Project Management", "Java", "SQL", "React"],
    }


def _requirements_summary() -> dict:
    window = time_range_window(DEFAULT_TIME_RANGE)
    return {
        "total_requirements": 21,
        "total_projects": 12,
        "time_range": {"start_date": window.start_date, "end_date": window.end_date},
        "skill_categories": {
            "Technical": {
                "total_skills": 12,
                "avg_demand": 90.0,
                "avg_importance": 4.2,
                "top_skills": ["React", "Cloud Architecture", "Python", "Data Engineering"],
            },
            "Design": {
                "total_skills": 4,
                "avg_demand": 75.0,
                "avg_importance": 3.8,
                "top_skills": ["UX Design"],
            },
            "Business": {
                "total_skills": 5,
                "avg_demand": 65.0,
                "avg_importance": 4.0,
                "top_skills": ["Project Management"],
            },
        },
        "top_requirements": [
            "React",
            "Cloud Architecture",
            "Python",
            "Data Engineering",
            "DevOps",
            "UX Design",
        ],
    }


def fallback_envelope() -> AnalysisEnvelope:
    """Synthetic organization analysis, tagged using_fallback_data."""
    gap_analysis = _fallback_gap_analysis()
    return AnalysisEnvelope(
        organization_skills=_organization_summary(),
        project_requirements=_requirements_summary(),
        gap_analysis=gap_analysis,
        recommendations=build_recommendations(gap_analysis),
        ai_insights=list(FALLBACK_INSIGHTS),
        market_trends=baseline_trends().top_trends,
        using_fallback_data=True,
        insight_source=InsightSource.RULES,
    )


def fallback_resource_envelope(resource_id) -> ResourceEnvelope:
    """Synthetic single-resource analysis, tagged using_fallback_data."""
    skills = [
        {"skill_id": None, "skill_name": "JavaScript", "category": "Technical",
         "proficiency_level": 4, "experience_years": 5, "is_certified": True},
        {"skill_id": None, "skill_name": "React", "category": "Technical",
         "proficiency_level": 3, "experience_years": 3, "is_certified": False},
        {"skill_id": None, "skill_name": "SQL", "category": "Technical",
         "proficiency_level": 2, "experience_years": 1, "is_certified": False},
    ]
    role_skills = [
        {"skill_id": None, "skill_name": "JavaScript", "category": "Technical", "importance_level": 5},
        {"skill_id": None, "skill_name": "Cloud Architecture", "category": "Technical", "importance_level": 4},
        {"skill_id": None, "skill_name": "SQL", "category": "Technical", "importance_level": 4},
    ]
    project_skills = [
        {"project_id": None, "project_name": "Sample Project", "skill_id": None,
         "skill_name": "DevOps", "category": "Technical", "importance_level": 3},
    ]
    gaps = compute_resource_gaps(skills, role_skills, project_skills)
    return ResourceEnvelope(
        resource_id=resource_id,
        resource_name="Sample Resource",
        department="Engineering",
        role="Software Developer",
        current_skills=skills,
        gap_analysis=gaps,
        recommendations=build_resource_recommendations(gaps),
        ai_insights=list(FALLBACK_RESOURCE_INSIGHTS),
        using_fallback_data=True,
        insight_source=InsightSource.RULES,
    )
