"""Prompt templates for skills gap narration."""

from shared_types import GapSeverity

from .calculator import coverage_summary, demand_summary
from .models import CoverageDataset, DemandDataset, GapAnalysisResult, TrendDataset


class PromptTemplates:
    """Prompts sent to the text provider."""

    SYSTEM = """You are a skills gap analyst who helps organizations understand their capability gaps.

Base every statement on the data provided. Be concise and specific.
Name skills and categories explicitly rather than speaking in generalities."""

    RESOURCE_SYSTEM = """You are a career development advisor who analyzes individual skill profiles.

Base every statement on the data provided. Be concise and practical.
Prefer concrete development steps over general encouragement."""

    ORGANIZATION_ANALYSIS = """<instructions>
Analyze the organization's skills gap data below and respond with three sections:

## Insights
3-5 numbered observations about the most important gaps, patterns and risks.

## Recommendations
4-6 numbered actions (training, hiring, reallocation) ordered by priority.

## Metrics
A few measures to track progress in closing these gaps.
</instructions>

<organization_skills>
{organization_skills}
</organization_skills>

<project_requirements>
{project_requirements}
</project_requirements>

<market_trends>
{market_trends}
</market_trends>

<gap_analysis>
{gap_analysis}
</gap_analysis>"""

    RESOURCE_ANALYSIS = """<instructions>
Analyze this person's skills against their role and project requirements.
Respond with three sections:

## Insights
2-4 numbered observations about their strengths and gaps.

## Recommendations
3-5 numbered development actions, highest priority first.

## Plan
A short numbered development plan for the next 3-6 months.
</instructions>

<resource_profile>
{resource_profile}
</resource_profile>

<current_skills>
{current_skills}
</current_skills>

<gap_analysis>
{gap_analysis}
</gap_analysis>"""


def _lines(items: list[str]) -> str:
    return "\n".join(items) if items else "- none"


def format_organization_skills(coverage: CoverageDataset) -> str:
    summary = coverage_summary(coverage)
    lines = [
        f"Total skills: {summary['total_skills']}",
        f"Total resources: {summary['total_resources']}",
        f"Average skills per resource: {summary['avg_skills_per_resource']:.1f}",
        "Top skills: " + (", ".join(summary["top_skills"][:5]) or "none"),
        "Categories:",
    ]
    for category, stats in summary["skill_categories"].items():
        lines.append(
            f"- {category}: {stats['total_skills']} skills, "
            f"avg coverage {stats['avg_coverage']:.0f}%, "
            f"avg proficiency {stats['avg_proficiency']:.1f}/5"
        )
    return "\n".join(lines)


def format_project_requirements(demand: DemandDataset) -> str:
    summary = demand_summary(demand)
    window = summary["time_range"]
    lines = [
        f"Projects in window: {summary['total_projects']} "
        f"({window['start_date']} to {window['end_date']})",
        f"Distinct required skills: {summary['total_requirements']}",
        "Top requirements:",
    ]
    lines.extend(
        f"- {r.skill_name} ({r.category}): {r.demand_percentage:.0f}% of projects, "
        f"importance {r.avg_importance:.1f}/5"
        for r in demand.requirements[:5]
    )
    return "\n".join(lines)


def format_market_trends(trends: TrendDataset) -> str:
    return _lines(
        [
            f"- {t.skill_name} ({t.category}): demand {t.demand_score}/10, growth {t.growth_rate}%"
            for t in trends.trends[:5]
        ]
    )


def format_gap_analysis(gap_analysis: GapAnalysisResult) -> str:
    sections = [f"Overall gap score: {gap_analysis.overall_gap_score:.2f}"]
    for severity in (GapSeverity.CRITICAL, GapSeverity.HIGH, GapSeverity.MEDIUM):
        gaps = gap_analysis.by_severity(severity)
        sections.append(f"{severity.value.title()} gaps ({len(gaps)}):")
        sections.append(
            _lines([f"- {g.skill_name} ({g.category}, {g.gap_type})" for g in gaps[:3]])
        )

    sections.append(f"Emerging gaps ({len(gap_analysis.emerging_gaps)}):")
    sections.append(
        _lines(
            [
                f"- {g.skill_name}: demand {g.demand_score}/10, {g.gap_severity}"
                for g in gap_analysis.emerging_gaps[:3]
            ]
        )
    )

    ranked = sorted(
        (
            (name, score)
            for name, score in gap_analysis.category_gap_scores.items()
            if not score.oversupply
        ),
        key=lambda item: item[1].gap_score,
        reverse=True,
    )
    sections.append("Largest category gaps:")
    sections.append(
        _lines([f"- {name}: {score.gap_score:.2f}" for name, score in ranked[:3]])
    )
    return "\n".join(sections)


def build_organization_prompt(
    coverage: CoverageDataset,
    demand: DemandDataset,
    trends: TrendDataset,
    gap_analysis: GapAnalysisResult,
) -> str:
    return PromptTemplates.ORGANIZATION_ANALYSIS.format(
        organization_skills=format_organization_skills(coverage),
        project_requirements=format_project_requirements(demand),
        market_trends=format_market_trends(trends),
        gap_analysis=format_gap_analysis(gap_analysis),
    )


def build_resource_prompt(resource: dict, skills: list[dict], resource_gaps) -> str:
    profile = "\n".join(
        [
            f"Name: {resource.get('name') or 'Unknown'}",
            f"Role: {resource.get('role') or 'Unassigned'}",
            f"Department: {resource.get('department') or 'Unassigned'}",
        ]
    )
    current = _lines(
        [
            f"- {s['skill_name']} ({s['category']}): level {s['proficiency_level']}/5"
            + (", certified" if s.get("is_certified") else "")
            for s in skills[:7]
        ]
    )
    gaps = [
        f"- Role: {g['skill_name']} ({g['gap_type']}, importance {g['importance_level']})"
        for g in resource_gaps.role_gaps[:5]
    ] + [
        f"- Project {g['project_name']}: {g['skill_name']} ({g['gap_type']})"
        for g in resource_gaps.project_gaps[:5]
    ]
    return PromptTemplates.RESOURCE_ANALYSIS.format(
        resource_profile=profile,
        current_skills=current,
        gap_analysis=_lines(gaps),
    )
