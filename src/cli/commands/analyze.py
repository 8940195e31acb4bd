"""Skills gap analysis CLI commands."""

import json
import sys
from contextlib import nullcontext

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from cli.utils import format_pct, get_components
from shared_types import GapSeverity, TimeRange

console = Console()

SEVERITY_STYLES = {
    GapSeverity.CRITICAL: "[red]critical[/]",
    GapSeverity.HIGH: "[yellow]high[/]",
    GapSeverity.MEDIUM: "[cyan]medium[/]",
}


_ANALYSIS_OPTIONS = [
    click.option(
        "--time-range",
        default=TimeRange.SIX_MONTHS.value,
        type=click.Choice([t.value for t in TimeRange]),
        help="Project window to analyze",
    ),
    click.option("--categories", default=None, help="Comma-separated skill categories"),
    click.option("--no-ai", is_flag=True, help="Skip provider narration"),
    click.option("--fallback", is_flag=True, help="Return the canned fallback data"),
    click.option("--json", "as_json", is_flag=True, help="Print raw JSON"),
]


def analysis_options(fn):
    """Options shared by every analysis command."""
    for option in reversed(_ANALYSIS_OPTIONS):
        fn = option(fn)
    return fn


def _analyzer(use_llm: bool = True):
    ctx = click.get_current_context()
    config_path = (ctx.obj or {}).get("config_path")
    return get_components(config_path, use_llm=use_llm)["analyzer"]


def _run(call):
    """Invoke an analyzer call, turning caller-visible errors into exit codes."""
    from skills_gap import InvalidArgument, StorageUnreachable

    try:
        return call()
    except InvalidArgument as e:
        console.print(f"[red]{e}[/]")
        sys.exit(2 if e.not_found else 1)
    except StorageUnreachable as e:
        console.print(f"[red]Database unavailable:[/] {e}")
        console.print("  Run: [bold]skills-gap db init[/] (and [bold]db seed[/] for demo data)")
        sys.exit(1)


def _status(message: str, quiet: bool):
    return nullcontext() if quiet else console.status(message)


def _echo_json(data):
    click.echo(json.dumps(data, indent=2, default=str))


def _fallback_banner(using_fallback: bool):
    if using_fallback:
        console.print("[yellow]Real skills data unavailable; showing illustrative fallback data.[/]\n")


def _render_envelope(envelope, title: str):
    _fallback_banner(envelope.using_fallback_data)
    gaps = envelope.gap_analysis

    console.print(f"[bold]{title}[/]  overall gap score: {gaps.overall_gap_score:.0%}")

    if gaps.immediate_gaps:
        table = Table(title="Immediate Gaps", show_header=True)
        table.add_column("Skill", style="bold")
        table.add_column("Category", style="green")
        table.add_column("Severity", justify="center")
        table.add_column("Type")
        table.add_column("Demand", justify="right")
        table.add_column("Coverage", justify="right")
        for g in gaps.immediate_gaps:
            table.add_row(
                g.skill_name,
                g.category,
                SEVERITY_STYLES[g.gap_severity],
                g.gap_type,
                format_pct(g.demand_percentage),
                format_pct(g.coverage_percentage),
            )
        console.print(table)
    else:
        console.print("[green]No immediate gaps against project demand.[/]")

    if gaps.emerging_gaps:
        table = Table(title="Emerging Gaps", show_header=True)
        table.add_column("Skill", style="bold")
        table.add_column("Severity", justify="center")
        table.add_column("Demand Score", justify="right")
        table.add_column("Growth", justify="right")
        for g in gaps.emerging_gaps:
            table.add_row(
                g.skill_name,
                SEVERITY_STYLES[g.gap_severity],
                f"{g.demand_score:.1f}",
                f"{g.growth_rate}%",
            )
        console.print(table)

    if gaps.category_gap_scores:
        table = Table(title="Categories", show_header=True)
        table.add_column("Category", style="green")
        table.add_column("Gap", justify="right")
        table.add_column("Required", justify="right")
        table.add_column("Available", justify="right")
        table.add_column("Note", style="dim")
        for name, score in gaps.category_gap_scores.items():
            note = "missing" if score.missing_category else "oversupply" if score.oversupply else ""
            table.add_row(
                name,
                f"{score.gap_score:.0%}",
                str(score.required_skills),
                str(score.available_skills),
                note,
            )
        console.print(table)

    _render_advice(envelope.ai_insights, envelope.recommendations)


def _render_advice(insights, recommendations):
    if insights:
        console.print("\n[bold]Insights[/]")
        for insight in insights:
            console.print(f"  - {escape(insight)}")

    if recommendations:
        console.print("\n[bold]Recommendations[/]")
        for i, rec in enumerate(recommendations, 1):
            console.print(f"  {i}. ({rec.priority}) {escape(rec.description)}")
            if rec.details:
                console.print(f"     [dim]{escape(rec.details)}[/]")


@click.command()
@click.option("--department", "department_id", default=None, help="Scope to one department")
@analysis_options
def analyze(department_id, time_range, categories, no_ai, fallback, as_json):
    """Analyze organization skills against project demand and market trends."""
    analyzer = _analyzer(use_llm=not no_ai)
    with _status("Analyzing skills gap...", quiet=as_json):
        envelope = _run(
            lambda: analyzer.analyze(
                department_id=department_id,
                time_range=time_range,
                skill_categories=categories,
                include_ai_insights=not no_ai,
                force_fallback=fallback,
            )
        )

    if as_json:
        _echo_json(envelope.to_dict())
        return
    _render_envelope(envelope, "Skills Gap Analysis")


@click.command()
@click.argument("department_id")
@analysis_options
def department(department_id, time_range, categories, no_ai, fallback, as_json):
    """Analyze one department."""
    analyzer = _analyzer(use_llm=not no_ai)
    with _status("Analyzing department...", quiet=as_json):
        envelope = _run(
            lambda: analyzer.analyze_department(
                department_id,
                time_range=time_range,
                skill_categories=categories,
                include_ai_insights=not no_ai,
                force_fallback=fallback,
            )
        )

    if as_json:
        _echo_json(envelope.to_dict())
        return
    _render_envelope(envelope, f"Department {department_id}")


@click.command()
@click.argument("resource_id")
@click.option("--no-ai", is_flag=True, help="Skip provider narration")
@click.option("--fallback", is_flag=True, help="Return the canned fallback data")
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON")
def resource(resource_id, no_ai, fallback, as_json):
    """Analyze one person's skills against their role and projects."""
    analyzer = _analyzer(use_llm=not no_ai)
    with _status("Analyzing resource...", quiet=as_json):
        envelope = _run(
            lambda: analyzer.analyze_resource(
                resource_id, include_ai_insights=not no_ai, force_fallback=fallback
            )
        )

    if as_json:
        _echo_json(envelope.to_dict())
        return

    _fallback_banner(envelope.using_fallback_data)
    console.print(
        f"[bold]{envelope.resource_name}[/]  {envelope.role or 'no role'} / "
        f"{envelope.department or 'no department'}"
    )

    gaps = envelope.gap_analysis
    table = Table(title="Skill Gaps", show_header=True)
    table.add_column("Skill", style="bold")
    table.add_column("Source")
    table.add_column("Type")
    table.add_column("Current", justify="right")
    table.add_column("Importance", justify="right")
    for g in gaps.role_gaps:
        table.add_row(
            g["skill_name"], "role", g["gap_type"],
            str(g["current_level"] or "-"), str(g["importance_level"]),
        )
    for g in gaps.project_gaps:
        table.add_row(
            g["skill_name"], g["project_name"] or "project", g["gap_type"],
            str(g["current_level"] or "-"), str(g["importance_level"]),
        )
    if table.row_count:
        console.print(table)
    else:
        console.print("[green]No gaps against role or project requirements.[/]")

    if gaps.strengths:
        names = ", ".join(s["skill_name"] for s in gaps.strengths)
        console.print(f"\n[bold]Strengths:[/] {names}")

    _render_advice(envelope.ai_insights, envelope.recommendations)


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON")
def departments(as_json):
    """Rank departments by overall skills gap."""
    analyzer = _analyzer(use_llm=False)
    with _status("Analyzing departments...", quiet=as_json):
        rows = _run(analyzer.list_departments_with_gap_summary)

    if as_json:
        _echo_json(rows)
        return
    if not rows:
        console.print("[yellow]No departments found.[/]")
        return

    table = Table(title="Departments by Skills Gap", show_header=True)
    table.add_column("ID", style="dim")
    table.add_column("Department", style="bold")
    table.add_column("Gap", justify="right")
    table.add_column("Critical", justify="right")
    table.add_column("High", justify="right")
    table.add_column("Emerging", justify="right")
    table.add_column("Top Gaps")
    for row in rows:
        if "error" in row:
            table.add_row(
                str(row["department_id"]), row["department_name"],
                "[red]error[/]", "", "", "", row["error"][:40],
            )
            continue
        table.add_row(
            str(row["department_id"]),
            row["department_name"],
            f"{row['overall_gap_score']:.0%}",
            str(row["critical_gaps_count"]),
            str(row["high_gaps_count"]),
            str(row["emerging_gaps_count"]),
            ", ".join(row["top_gaps"]),
        )
    console.print(table)


@click.command()
@click.option("--department", "department_id", default=None, help="Scope to one department")
@analysis_options
def training(department_id, time_range, categories, no_ai, fallback, as_json):
    """Training priorities derived from the gap analysis."""
    analyzer = _analyzer(use_llm=not no_ai)
    plan = _run(
        lambda: analyzer.training_recommendations(
            department_id=department_id,
            time_range=time_range,
            skill_categories=categories,
            include_ai_insights=not no_ai,
            force_fallback=fallback,
        )
    )

    if as_json:
        _echo_json(plan)
        return

    _fallback_banner(plan["using_fallback_data"])
    table = Table(title="Training Priorities", show_header=True)
    table.add_column("Skill", style="bold")
    table.add_column("Training")
    table.add_column("Participants")
    table.add_column("Priority", justify="center")
    for s in plan["critical_skills"] + plan["emerging_skills"]:
        table.add_row(
            s["skill_name"],
            s["recommended_training_type"],
            s["recommended_participants"],
            s["priority"],
        )
    console.print(table)


@click.command()
@click.option("--department", "department_id", default=None, help="Scope to one department")
@analysis_options
def hiring(department_id, time_range, categories, no_ai, fallback, as_json):
    """Hiring priorities derived from the gap analysis."""
    analyzer = _analyzer(use_llm=not no_ai)
    plan = _run(
        lambda: analyzer.hiring_recommendations(
            department_id=department_id,
            time_range=time_range,
            skill_categories=categories,
            include_ai_insights=not no_ai,
            force_fallback=fallback,
        )
    )

    if as_json:
        _echo_json(plan)
        return

    _fallback_banner(plan["using_fallback_data"])
    table = Table(title=f"Hiring Priorities ({plan['summary']['timeframe']})", show_header=True)
    table.add_column("Skill", style="bold")
    table.add_column("Category", style="green")
    table.add_column("When")
    table.add_column("Impact")
    for role in plan["critical_roles"] + plan["high_demand_roles"] + plan["emerging_roles"]:
        table.add_row(role["skill_name"], role["category"], role["hiring_timeframe"], role["impact"])
    if table.row_count:
        console.print(table)
    else:
        console.print("[green]No hiring needs identified.[/]")
