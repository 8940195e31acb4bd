"""Insight narration: provider-written when available, rule-based otherwise."""

import re
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass, field
from typing import Optional

import structlog

from llm import LLMError, LLMProvider
from observability import metrics as default_metrics
from shared_types import GapSeverity, InsightSource, Priority

from .errors import ProviderError
from .models import (
    CoverageDataset,
    DemandDataset,
    GapAnalysisResult,
    GapThresholds,
    Recommendation,
    ResourceGapAnalysis,
    TrendDataset,
)
from .prompts import PromptTemplates, build_organization_prompt, build_resource_prompt
from .recommendations import build_resource_recommendations, high_gap_categories

logger = structlog.get_logger()

DEFAULT_THRESHOLDS = GapThresholds()

_THINK_RE = re.compile(r"<think>.*?</think>", re.DOTALL | re.IGNORECASE)
_HEADER_RE = re.compile(
    r"^\s*(?:#{1,6}\s*)?(?:\d+[.)]\s*)?(?:\*\*)?\s*"
    r"(?:key\s+|strategic\s+|development\s+|suggested\s+)?"
    r"(insights?|recommendations?|metrics|plan)\b[^\n]*$",
    re.IGNORECASE,
)
_BARE_HEADER_RE = re.compile(
    r"^(?:\d+[.)]\s*)?(?:key\s+|strategic\s+|development\s+|suggested\s+)?"
    r"(?:insights?|recommendations?|metrics|plan)$",
    re.IGNORECASE,
)
_ITEM_RE = re.compile(r"^\s*(?:\d+[.)]|[-*•])\s+(.*\S)\s*$")
_SECTIONS = {"insight": "insights", "recommendation": "recommendations"}


@dataclass
class Narration:
    insights: list[str] = field(default_factory=list)
    recommendations: list[Recommendation] = field(default_factory=list)
    source: InsightSource = InsightSource.RULES


def _section_for(header: str) -> Optional[str]:
    word = header.lower().rstrip("s")
    return _SECTIONS.get(word)


def _looks_like_header(line: str) -> bool:
    # "1. Strategic insights:" is a header, "1. Insights show..." is an item
    raw = line.strip()
    if raw.startswith("#") or raw.startswith("**") or raw.endswith(":"):
        return True
    return bool(_BARE_HEADER_RE.match(raw))


def _clean(text: str) -> str:
    return text.replace("**", "").strip(" :")


def parse_insight_response(text: str) -> tuple[list[str], list[str]]:
    """Split provider text into insight and recommendation items.

    Headers select the section; numbered or bulleted lines become items and
    plain lines continue the previous item. Metrics and plan sections are
    dropped.

    Returns:
        (insights, recommendations), both possibly empty
    """
    text = _THINK_RE.sub("", text or "")
    sections: dict[str, list[str]] = {"insights": [], "recommendations": []}
    current: Optional[str] = None

    for line in text.splitlines():
        if not line.strip():
            continue
        header = _HEADER_RE.match(line)
        if header and len(line.strip()) <= 60 and _looks_like_header(line):
            current = _section_for(header.group(1))
            continue
        if current is None:
            continue

        item = _ITEM_RE.match(line)
        if item:
            cleaned = _clean(item.group(1))
            if cleaned:
                sections[current].append(cleaned)
        elif sections[current]:
            sections[current][-1] = f"{sections[current][-1]} {_clean(line)}"

    return sections["insights"], sections["recommendations"]


def _as_recommendations(items: list[str], rec_type: str) -> list[Recommendation]:
    return [
        Recommendation(
            type=rec_type,
            priority=Priority.HIGH if i < 3 else Priority.MEDIUM,
            description=item,
        )
        for i, item in enumerate(items)
    ]


def _pct(score: float) -> str:
    return f"{round(score * 100)}%"


def _names(gaps, limit: int = 5) -> str:
    return ", ".join(g.skill_name for g in gaps[:limit])


def rule_based_narration(
    gap_analysis: GapAnalysisResult, thresholds: Optional[GapThresholds] = None
) -> Narration:
    """Narrative insights and recommendations without a text provider."""
    t = thresholds or DEFAULT_THRESHOLDS
    insights: list[str] = []
    recommendations: list[Recommendation] = []

    overall = gap_analysis.overall_gap_score
    if overall > t.significant_overall_gap:
        insights.append(
            f"The organization has a significant overall skills gap ({_pct(overall)}); "
            "closing it should be a strategic priority."
        )
    else:
        insights.append(
            f"The overall skills gap is moderate ({_pct(overall)}); current capabilities "
            "broadly match project demand."
        )

    for category, score in high_gap_categories(gap_analysis, t.notable_category_gap):
        detail = gap_analysis.category_gap_scores[category]
        insights.append(
            f"{category} shows a notable gap ({_pct(score)}): {detail.required_skills} "
            f"skills required, {detail.available_skills} available."
        )

    critical = gap_analysis.by_severity(GapSeverity.CRITICAL)
    high = gap_analysis.by_severity(GapSeverity.HIGH)
    emerging = [g for g in gap_analysis.emerging_gaps if g.gap_severity == GapSeverity.HIGH]
    oversupplied = [g for g in gap_analysis.oversupply if g.gap_severity == GapSeverity.HIGH]

    if critical:
        insights.append(
            f"{len(critical)} skills needed by current projects are missing entirely: "
            f"{_names(critical)}."
        )
        recommendations.append(
            Recommendation(
                type="critical_gap",
                priority=Priority.HIGH,
                description="Close critical gaps by hiring or upskilling for the missing skills.",
                details=f"Start with {_names(critical, 3)}.",
                skills=[{"name": g.skill_name, "category": g.category} for g in critical],
            )
        )
    if emerging:
        insights.append(
            f"{len(emerging)} high-demand market skills are not yet covered: {_names(emerging)}."
        )

    if high:
        recommendations.append(
            Recommendation(
                type="high_gap",
                priority=Priority.MEDIUM,
                description="Broaden coverage of in-demand skills through targeted training.",
                details=f"Too few people hold {_names(high, 3)} for the current project load.",
                skills=[{"name": g.skill_name, "category": g.category} for g in high],
            )
        )
    if emerging:
        recommendations.append(
            Recommendation(
                type="emerging_trend",
                priority=Priority.MEDIUM,
                description="Start building capability in emerging market skills.",
                details=f"Market demand is rising for {_names(emerging, 3)}.",
                skills=[{"name": g.skill_name, "category": g.category} for g in emerging],
            )
        )
    if oversupplied:
        recommendations.append(
            Recommendation(
                type="skill_oversupply",
                priority=Priority.LOW,
                description="Redeploy people whose skills exceed current project demand.",
                details=f"Coverage outstrips demand for {_names(oversupplied, 3)}.",
                skills=[{"name": g.skill_name, "category": g.category} for g in oversupplied],
            )
        )
    for category, score in high_gap_categories(gap_analysis, t.category_focus_score):
        recommendations.append(
            Recommendation(
                type="category_focus",
                priority=Priority.HIGH,
                description=f"Make {category} a development focus area.",
                details=f"The {category} gap score is {_pct(score)}.",
                categories=[{"name": category, "gap_score": _pct(score)}],
            )
        )

    if not recommendations:
        recommendations.append(
            Recommendation(
                type="monitor",
                priority=Priority.LOW,
                description="Keep monitoring skills coverage against project demand.",
                details="No significant gaps were found; rerun the analysis as the project pipeline changes.",
            )
        )

    return Narration(insights=insights, recommendations=recommendations, source=InsightSource.RULES)


def rule_based_resource_narration(resource: dict, gaps: ResourceGapAnalysis) -> Narration:
    """Narrative view of one resource's gaps without a text provider."""
    insights: list[str] = []
    name = resource.get("name") or "This resource"

    if gaps.strengths:
        insights.append(
            f"{name} has strong expertise in "
            + ", ".join(s["skill_name"] for s in gaps.strengths[:3])
            + "."
        )
    if gaps.role_gaps:
        role = resource.get("role") or "current"
        insights.append(
            f"{len(gaps.role_gaps)} skills expected for the {role} role need attention: "
            + ", ".join(g["skill_name"] for g in gaps.role_gaps[:5])
            + "."
        )
    if gaps.project_gaps:
        insights.append(
            f"Current projects require {len(gaps.project_gaps)} skills that need development: "
            + ", ".join(g["skill_name"] for g in gaps.project_gaps[:5])
            + "."
        )
    if not gaps.role_gaps and not gaps.project_gaps:
        insights.append(f"{name}'s skills align well with role and project requirements.")

    recommendations = build_resource_recommendations(gaps)
    if not recommendations:
        recommendations.append(
            Recommendation(
                type="monitor",
                priority=Priority.LOW,
                description="Review the development plan at the next allocation change.",
                details="No skill gaps against role or project requirements were found.",
            )
        )
    return Narration(insights=insights, recommendations=recommendations, source=InsightSource.RULES)


class InsightNarrator:
    """Turns a gap analysis into insights and recommendations."""

    def __init__(
        self,
        provider: Optional[LLMProvider] = None,
        timeout_seconds: float = 20.0,
        max_tokens: int = 1000,
        thresholds: Optional[GapThresholds] = None,
        metrics=None,
    ):
        self.provider = provider
        self.timeout_seconds = timeout_seconds
        self.max_tokens = max_tokens
        self.thresholds = thresholds or DEFAULT_THRESHOLDS
        self.metrics = metrics or default_metrics

    def _generate(self, system: str, prompt: str) -> tuple[list[str], list[str]]:
        """Single bounded provider call. Raises ProviderError on any failure."""
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="narrator")
        future = executor.submit(
            self.provider.generate,
            messages=[{"role": "user", "content": prompt}],
            system=system,
            max_tokens=self.max_tokens,
        )
        try:
            text = future.result(timeout=self.timeout_seconds)
        except FutureTimeout as e:
            raise ProviderError(
                f"No response from {self.provider.provider_name} within {self.timeout_seconds}s"
            ) from e
        except LLMError as e:
            raise ProviderError(str(e)) from e
        except Exception as e:
            raise ProviderError(f"{type(e).__name__}: {e}") from e
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        insights, recommendations = parse_insight_response(text)
        if not insights and not recommendations:
            raise ProviderError("Provider response contained no insights or recommendations")
        return insights, recommendations

    def _provider_failed(self, error: ProviderError, scope: str):
        self.metrics.counter("narrator.provider_failure")
        logger.warning(
            "narrator.provider_failed",
            scope=scope,
            provider=self.provider.provider_name,
            error=str(error),
        )

    def narrate(
        self,
        coverage: CoverageDataset,
        demand: DemandDataset,
        trends: TrendDataset,
        gap_analysis: GapAnalysisResult,
        use_provider: bool = True,
    ) -> Narration:
        """Provider narration when configured, rule-based otherwise. Never raises."""
        if use_provider and self.provider is not None:
            prompt = build_organization_prompt(coverage, demand, trends, gap_analysis)
            try:
                insights, recommendations = self._generate(PromptTemplates.SYSTEM, prompt)
            except ProviderError as e:
                self._provider_failed(e, "organization")
            else:
                logger.info(
                    "narrator.provider_narration",
                    insights=len(insights),
                    recommendations=len(recommendations),
                )
                return Narration(
                    insights=insights,
                    recommendations=_as_recommendations(recommendations, "ai"),
                    source=InsightSource.PROVIDER,
                )

        return rule_based_narration(gap_analysis, self.thresholds)

    def narrate_resource(
        self,
        resource: dict,
        skills: list[dict],
        role_skills: list[dict],
        project_skills: list[dict],
        resource_gaps: ResourceGapAnalysis,
        use_provider: bool = True,
    ) -> Narration:
        if use_provider and self.provider is not None:
            prompt = build_resource_prompt(resource, skills, resource_gaps)
            try:
                insights, recommendations = self._generate(PromptTemplates.RESOURCE_SYSTEM, prompt)
            except ProviderError as e:
                self._provider_failed(e, "resource")
            else:
                return Narration(
                    insights=insights,
                    recommendations=_as_recommendations(recommendations, "ai_development"),
                    source=InsightSource.PROVIDER,
                )

        logger.debug(
            "narrator.rules_for_resource",
            resource_id=resource.get("id"),
            role_skills=len(role_skills),
            project_skills=len(project_skills),
        )
        return rule_based_resource_narration(resource, resource_gaps)
