"""Public entry point: sequences repository, calculator and narration."""

from typing import Optional

import structlog

from observability import metrics as default_metrics
from shared_types import GapSeverity

from .calculator import compute_gaps, compute_resource_gaps, coverage_summary, demand_summary
from .errors import DataUnavailable, InvalidArgument, SkillsGapError, StorageError, StorageUnreachable
from .fallback import fallback_envelope, fallback_resource_envelope
from .models import (
    AnalysisEnvelope,
    AnalysisOptions,
    GapThresholds,
    ResourceEnvelope,
    time_range_window,
)
from .narrator import InsightNarrator
from .recommendations import (
    build_hiring_plan,
    build_recommendations,
    build_resource_recommendations,
    build_training_plan,
)
from .repository import SkillsRepository

logger = structlog.get_logger()


def _is_blank(identifier) -> bool:
    return identifier is None or not str(identifier).strip()


class SkillsGapAnalyzer:
    """Runs skills gap analyses against a repository.

    Data problems degrade to the canned fallback envelope. Only
    InvalidArgument and StorageUnreachable reach the caller.
    """

    def __init__(
        self,
        repository: SkillsRepository,
        narrator: Optional[InsightNarrator] = None,
        thresholds: Optional[GapThresholds] = None,
        metrics=None,
    ):
        self.repository = repository
        self.thresholds = thresholds or GapThresholds()
        self.narrator = narrator or InsightNarrator(thresholds=self.thresholds)
        self.metrics = metrics or default_metrics

    @staticmethod
    def _options(options: Optional[AnalysisOptions], overrides: dict) -> AnalysisOptions:
        if options is None and not overrides:
            return AnalysisOptions()
        base = options.model_dump() if options else {}
        return AnalysisOptions(**{**base, **overrides})

    def _record_fallback(self, stage: str, error: Optional[Exception] = None, **context):
        self.metrics.counter("skills_gap.fallback")
        if error is None:
            logger.info("skills_gap.fallback", stage=stage, **context)
        elif not isinstance(error, SkillsGapError):
            logger.exception("skills_gap.fallback", stage=stage, error=str(error), **context)
        elif isinstance(error, StorageError):
            logger.error("skills_gap.fallback", stage=stage, error=str(error), **context)
        else:
            logger.warning("skills_gap.fallback", stage=stage, error=str(error), **context)

    def analyze(self, options: Optional[AnalysisOptions] = None, **overrides) -> AnalysisEnvelope:
        """Organization (or department) gap analysis.

        Args:
            options: Analysis options; keyword overrides are merged on top

        Returns:
            AnalysisEnvelope, tagged using_fallback_data when real data was unusable

        Raises:
            StorageUnreachable: The database cannot be opened at all
        """
        opts = self._options(options, overrides)
        self.metrics.counter("skills_gap.analysis")

        if opts.force_fallback:
            self._record_fallback("forced")
            return fallback_envelope()

        try:
            self.repository.check_available()
        except StorageUnreachable:
            logger.error("skills_gap.storage_unreachable", db_path=str(self.repository.db_path))
            raise
        except (DataUnavailable, StorageError) as e:
            self._record_fallback("probe", e, department_id=opts.department_id)
            return fallback_envelope()

        categories = opts.skill_categories or None
        stage = "fetch"
        try:
            coverage = self.repository.fetch_coverage(opts.department_id, categories)
            demand = self.repository.fetch_demand(
                time_range_window(opts.time_range), opts.department_id, categories
            )
            trends = self.repository.fetch_market_trends()

            stage = "compute"
            gap_analysis = compute_gaps(
                coverage.skills, demand.requirements, trends.trends, self.thresholds
            )
            organization_skills = coverage_summary(coverage)
            project_requirements = demand_summary(demand)
            market_trends = trends.top_trends

            ai_insights = None
            insight_source = None
            if opts.include_ai_insights:
                narration = self.narrator.narrate(coverage, demand, trends, gap_analysis)
                recommendations = narration.recommendations
                ai_insights = narration.insights
                insight_source = narration.source
            else:
                recommendations = build_recommendations(gap_analysis, self.thresholds)
        except (InvalidArgument, StorageUnreachable):
            raise
        except Exception as e:
            # malformed rows in externally owned tables end here too
            self._record_fallback(stage, e, department_id=opts.department_id)
            return fallback_envelope()

        logger.info(
            "skills_gap.analyzed",
            department_id=opts.department_id,
            time_range=opts.time_range,
            immediate_gaps=len(gap_analysis.immediate_gaps),
            emerging_gaps=len(gap_analysis.emerging_gaps),
            overall_gap_score=round(gap_analysis.overall_gap_score, 3),
            insight_source=insight_source,
            baseline_trends=trends.baseline,
        )

        return AnalysisEnvelope(
            organization_skills=organization_skills,
            project_requirements=project_requirements,
            gap_analysis=gap_analysis,
            recommendations=recommendations,
            ai_insights=ai_insights,
            market_trends=market_trends,
            insight_source=insight_source,
        )

    def analyze_department(
        self, department_id, options: Optional[AnalysisOptions] = None, **overrides
    ) -> AnalysisEnvelope:
        if _is_blank(department_id):
            raise InvalidArgument("department_id is required")

        opts = self._options(options, {**overrides, "department_id": department_id})
        if not opts.force_fallback:
            try:
                known = self.repository.list_departments()
            except (DataUnavailable, StorageError):
                # the probe inside analyze() decides between fallback and failure
                known = None
            # an empty departments table means no data at all, which analyze() falls back on
            if known and not any(str(d["id"]) == str(department_id) for d in known):
                raise InvalidArgument(f"Department {department_id} not found", not_found=True)

        return self.analyze(opts)

    def analyze_resource(
        self, resource_id, options: Optional[AnalysisOptions] = None, **overrides
    ) -> ResourceEnvelope:
        """Gap analysis for one person against their role and current projects.

        Raises:
            InvalidArgument: resource_id is empty or unknown
            StorageUnreachable: The database cannot be opened at all
        """
        if _is_blank(resource_id):
            raise InvalidArgument("resource_id is required")

        opts = self._options(options, overrides)
        self.metrics.counter("skills_gap.analysis")
        if opts.force_fallback:
            self._record_fallback("forced", resource_id=resource_id)
            return fallback_resource_envelope(resource_id)

        try:
            self.repository.check_available()
        except StorageUnreachable:
            logger.error("skills_gap.storage_unreachable", db_path=str(self.repository.db_path))
            raise
        except (DataUnavailable, StorageError) as e:
            self._record_fallback("probe", e, resource_id=resource_id)
            return fallback_resource_envelope(resource_id)

        stage = "fetch"
        try:
            resource = self.repository.get_resource(resource_id)
            if resource is None:
                raise InvalidArgument(f"Resource {resource_id} not found", not_found=True)
            skills = self.repository.fetch_resource_skills(resource_id)
            role_skills = self.repository.fetch_role_skills(resource["role_id"])
            project_skills = self.repository.fetch_allocated_project_skills(resource_id)

            stage = "compute"
            gaps = compute_resource_gaps(skills, role_skills, project_skills, self.thresholds)

            ai_insights = None
            insight_source = None
            if opts.include_ai_insights:
                narration = self.narrator.narrate_resource(
                    resource, skills, role_skills, project_skills, gaps
                )
                recommendations = narration.recommendations
                ai_insights = narration.insights
                insight_source = narration.source
            else:
                recommendations = build_resource_recommendations(gaps)
        except (InvalidArgument, StorageUnreachable):
            raise
        except Exception as e:
            self._record_fallback(stage, e, resource_id=resource_id)
            return fallback_resource_envelope(resource_id)

        logger.info(
            "skills_gap.resource_analyzed",
            resource_id=resource_id,
            role_gaps=len(gaps.role_gaps),
            project_gaps=len(gaps.project_gaps),
            insight_source=insight_source,
        )

        return ResourceEnvelope(
            resource_id=resource["id"],
            resource_name=resource["name"],
            department=resource["department"],
            role=resource["role"],
            current_skills=skills,
            gap_analysis=gaps,
            recommendations=recommendations,
            ai_insights=ai_insights,
            insight_source=insight_source,
        )

    def list_departments_with_gap_summary(self) -> list[dict]:
        """Reduced analysis per department, largest gap first, failures last."""
        try:
            departments = self.repository.list_departments()
        except StorageUnreachable:
            raise
        except (DataUnavailable, StorageError) as e:
            logger.warning("skills_gap.departments_unavailable", error=str(e))
            return []

        summaries = []
        failures = []
        for department in departments:
            try:
                envelope = self.analyze(department_id=department["id"], include_ai_insights=False)
            except Exception as e:
                logger.warning(
                    "skills_gap.department_failed", department_id=department["id"], error=str(e)
                )
                failures.append(
                    {
                        "department_id": department["id"],
                        "department_name": department["name"],
                        "error": str(e),
                    }
                )
                continue

            gaps = envelope.gap_analysis
            critical = gaps.by_severity(GapSeverity.CRITICAL)
            high = gaps.by_severity(GapSeverity.HIGH)
            summaries.append(
                {
                    "department_id": department["id"],
                    "department_name": department["name"],
                    "overall_gap_score": gaps.overall_gap_score,
                    "critical_gaps_count": len(critical),
                    "high_gaps_count": len(high),
                    "emerging_gaps_count": len(gaps.emerging_gaps),
                    "top_gaps": [g.skill_name for g in (critical + high)[:3]],
                    "using_fallback_data": envelope.using_fallback_data,
                }
            )

        summaries.sort(key=lambda s: s["overall_gap_score"], reverse=True)
        return summaries + failures

    def training_recommendations(
        self, options: Optional[AnalysisOptions] = None, **overrides
    ) -> dict:
        return build_training_plan(self.analyze(options, **overrides), self.thresholds)

    def hiring_recommendations(
        self, options: Optional[AnalysisOptions] = None, **overrides
    ) -> dict:
        opts = self._options(options, overrides)
        return build_hiring_plan(
            self.analyze(opts), timeframe=opts.time_range, thresholds=self.thresholds
        )
