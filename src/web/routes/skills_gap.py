"""Skills gap analysis routes."""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Response

from skills_gap import AnalysisOptions, InvalidArgument, SkillsGapAnalyzer, StorageUnreachable
from skills_gap.recommendations import build_dashboard_summary
from web.deps import get_analyzer

logger = structlog.get_logger()

router = APIRouter(prefix="/api/skills-gap", tags=["skills-gap"])

FALLBACK_HEADER = "X-Using-Fallback-Data"


def analysis_options(
    include_ai_insights: bool = True,
    time_range: str = "6months",
    skill_categories: Optional[str] = None,
    department_id: Optional[str] = None,
    fallback: bool = False,
) -> AnalysisOptions:
    return AnalysisOptions(
        include_ai_insights=include_ai_insights,
        time_range=time_range,
        skill_categories=skill_categories,
        department_id=department_id,
        force_fallback=fallback,
    )


def _call(fn, **context):
    try:
        return fn()
    except InvalidArgument as e:
        raise HTTPException(status_code=404 if e.not_found else 400, detail=str(e))
    except StorageUnreachable as e:
        logger.error("skills_gap.storage_unreachable", error=str(e), **context)
        raise HTTPException(status_code=503, detail="Skills database unavailable")


def _mark(response: Response, using_fallback: bool):
    if using_fallback:
        response.headers[FALLBACK_HEADER] = "true"


@router.get("")
def get_analysis(
    response: Response,
    options: AnalysisOptions = Depends(analysis_options),
    analyzer: SkillsGapAnalyzer = Depends(get_analyzer),
):
    """Organization-wide (or department-scoped) skills gap analysis."""
    envelope = _call(lambda: analyzer.analyze(options))
    _mark(response, envelope.using_fallback_data)
    return envelope.to_dict()


@router.get("/summary")
def get_summary(
    response: Response,
    options: AnalysisOptions = Depends(analysis_options),
    analyzer: SkillsGapAnalyzer = Depends(get_analyzer),
):
    """Dashboard counts and gap lists."""
    envelope = _call(lambda: analyzer.analyze(options))
    _mark(response, envelope.using_fallback_data)
    return build_dashboard_summary(envelope)


@router.get("/departments")
def list_departments(analyzer: SkillsGapAnalyzer = Depends(get_analyzer)):
    """Departments ranked by overall gap score."""
    return _call(analyzer.list_departments_with_gap_summary)


@router.get("/departments/{department_id}")
def get_department(
    department_id: str,
    response: Response,
    options: AnalysisOptions = Depends(analysis_options),
    analyzer: SkillsGapAnalyzer = Depends(get_analyzer),
):
    envelope = _call(
        lambda: analyzer.analyze_department(department_id, options),
        department_id=department_id,
    )
    _mark(response, envelope.using_fallback_data)
    return envelope.to_dict()


@router.get("/resources/{resource_id}")
def get_resource(
    resource_id: str,
    response: Response,
    include_ai_insights: bool = True,
    fallback: bool = False,
    analyzer: SkillsGapAnalyzer = Depends(get_analyzer),
):
    envelope = _call(
        lambda: analyzer.analyze_resource(
            resource_id, include_ai_insights=include_ai_insights, force_fallback=fallback
        ),
        resource_id=resource_id,
    )
    _mark(response, envelope.using_fallback_data)
    return envelope.to_dict()


@router.get("/training")
def get_training(
    response: Response,
    options: AnalysisOptions = Depends(analysis_options),
    analyzer: SkillsGapAnalyzer = Depends(get_analyzer),
):
    """Training priorities derived from the gap analysis."""
    plan = _call(lambda: analyzer.training_recommendations(options))
    _mark(response, plan["using_fallback_data"])
    return plan


@router.get("/hiring")
def get_hiring(
    response: Response,
    timeframe: Optional[str] = None,
    options: AnalysisOptions = Depends(analysis_options),
    analyzer: SkillsGapAnalyzer = Depends(get_analyzer),
):
    """Hiring priorities; timeframe overrides time_range."""
    overrides = {"time_range": timeframe} if timeframe else {}
    plan = _call(lambda: analyzer.hiring_recommendations(options, **overrides))
    _mark(response, plan["using_fallback_data"])
    return plan
