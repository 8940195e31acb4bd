"""Tests for rule-based recommendations and plan views."""

from shared_types import GapSeverity, GapType, InsightSource, Priority
from skills_gap.fallback import fallback_envelope, fallback_resource_envelope
from skills_gap.models import (
    CategoryGapScore,
    GapAnalysisResult,
    GapEntry,
    Recommendation,
    ResourceGapAnalysis,
)
from skills_gap.recommendations import (
    build_dashboard_summary,
    build_hiring_plan,
    build_recommendations,
    build_resource_recommendations,
    build_training_plan,
    high_gap_categories,
)


def _types(recommendations):
    return [r.type for r in recommendations]


class TestBuildRecommendations:
    def test_fallback_gaps_produce_ordered_recommendations(self):
        recs = build_recommendations(fallback_envelope().gap_analysis)

        assert _types(recs) == [
            "critical_gap",
            "skill_acquisition",
            "skill_acquisition",
            "skill_acquisition",
            "high_gap",
            "emerging_trend",
        ]
        assert recs[0].priority == Priority.HIGH
        assert recs[4].priority == Priority.MEDIUM
        assert "Cloud Architecture" in recs[0].details
        assert "65%" in recs[1].details

    def test_oversupply_and_category_focus(self):
        analysis = GapAnalysisResult(
            oversupply=[
                GapEntry(
                    "Cobol", "Legacy", GapSeverity.HIGH, GapType.OVERSUPPLY,
                    coverage_percentage=80.0,
                ),
                GapEntry(
                    "Perl", "Legacy", GapSeverity.MEDIUM, GapType.OVERSUPPLY,
                    coverage_percentage=40.0,
                ),
            ],
            category_gap_scores={
                "Cloud": CategoryGapScore(gap_score=0.9, required_skills=3, available_skills=1),
                "Data": CategoryGapScore(gap_score=0.6, required_skills=2, available_skills=2),
                "Design": CategoryGapScore(gap_score=0.2, required_skills=1, available_skills=1),
            },
        )

        recs = build_recommendations(analysis)

        assert _types(recs) == ["skill_oversupply", "category_focus", "category_focus"]
        assert recs[0].priority == Priority.LOW
        assert recs[0].skills == [
            {"name": "Cobol", "category": "Legacy", "coverage": "80%", "demand": "Not required"}
        ]
        assert [r.categories[0]["name"] for r in recs[1:]] == ["Cloud", "Data"]
        assert recs[1].categories[0]["gap_score"] == "90%"

    def test_no_gaps_no_recommendations(self):
        assert build_recommendations(GapAnalysisResult()) == []


def test_high_gap_categories_skip_oversupply():
    analysis = GapAnalysisResult(
        category_gap_scores={
            "A": CategoryGapScore(gap_score=0.6, required_skills=1, available_skills=1),
            "B": CategoryGapScore(
                gap_score=0.9, required_skills=0, available_skills=1, oversupply=True
            ),
            "C": CategoryGapScore(gap_score=0.8, required_skills=1, available_skills=0),
        }
    )
    assert high_gap_categories(analysis, 0.5) == [("C", 0.8), ("A", 0.6)]


class TestResourceRecommendations:
    def test_sample_resource(self):
        envelope = fallback_resource_envelope(7)

        recs = build_resource_recommendations(envelope.gap_analysis)

        assert _types(recs) == [
            "role_skill_acquisition",
            "role_skill_improvement",
            "project_skill_gaps",
            "development_path",
            "leverage_strengths",
        ]
        assert recs[2].metadata == {"project_name": "Sample Project"}

        path = {p["name"]: p for p in recs[3].metadata["development_path"]}
        assert path["Cloud Architecture"]["target_level"] == 2
        assert path["SQL"]["target_level"] == 4
        assert path["DevOps"]["sources"] == ["Project: Sample Project"]

    def test_empty_gaps(self):
        assert build_resource_recommendations(ResourceGapAnalysis()) == []


def test_dashboard_summary_counts():
    summary = build_dashboard_summary(fallback_envelope())

    assert summary["summary"]["critical_gaps_count"] == 3
    assert summary["summary"]["high_gaps_count"] == 3
    assert summary["summary"]["emerging_gaps_count"] == 3
    assert summary["summary"]["total_skills"] == 40
    assert summary["using_fallback_data"] is True
    assert [g["skill_name"] for g in summary["critical_gaps"]] == [
        "Cloud Architecture",
        "Data Engineering",
        "DevOps",
    ]


def test_training_plan():
    plan = build_training_plan(fallback_envelope())

    assert len(plan["critical_skills"]) == 5
    first, fourth = plan["critical_skills"][0], plan["critical_skills"][3]
    assert first["skill_name"] == "Cloud Architecture"
    assert first["recommended_training_type"] == "New Skill Acquisition"
    assert first["priority"] == "High"
    assert fourth["skill_name"] == "React"
    assert fourth["recommended_participants"] == "Selected Resources"
    assert fourth["current_coverage"] == 15.0

    assert [s["priority"] for s in plan["emerging_skills"]] == ["Medium", "Medium", "Low"]
    assert len(plan["recommendations"]) == 3


def test_hiring_plan():
    plan = build_hiring_plan(fallback_envelope(), timeframe="1year")

    assert plan["summary"]["timeframe"] == "1year"
    assert plan["summary"]["critical_skills_count"] == 3
    assert [r["skill_name"] for r in plan["high_demand_roles"]] == ["React", "Python", "UX Design"]
    assert [r["skill_name"] for r in plan["emerging_roles"]] == [
        "Machine Learning",
        "AI Engineering",
    ]
    assert plan["category_priorities"] == {
        "Technical": {
            "gap_score": 0.45,
            "required_skills": 12,
            "available_skills": 20,
            "priority": "Medium",
        }
    }
    assert len(plan["recommendations"]) == 1
    assert plan["critical_roles"][0]["hiring_timeframe"] == "Immediate"


def _provider_narrated():
    envelope = fallback_envelope()
    envelope.insight_source = InsightSource.PROVIDER
    envelope.recommendations = [
        Recommendation(type="ai", priority=Priority.HIGH, description="Hire a cloud architect")
    ]
    return envelope


def test_plans_rederive_rule_recommendations_after_provider_narration():
    envelope = _provider_narrated()

    training = build_training_plan(envelope)
    hiring = build_hiring_plan(envelope, timeframe="6months")

    assert [r["priority"] for r in training["recommendations"]] == [
        Priority.HIGH,
        Priority.MEDIUM,
        Priority.MEDIUM,
    ]
    assert len(hiring["recommendations"]) == 1
    assert hiring["recommendations"][0]["skills"][0]["name"] == "Cloud Architecture"
