"""Shared CLI utilities."""

from pathlib import Path
from typing import Optional

import structlog
from rich.console import Console

console = Console()
logger = structlog.get_logger()


def build_analyzer(config_model, use_llm: bool = True):
    """Wire repository, narrator and analyzer from a SkillsGapConfig."""
    from llm import create_llm_provider_or_none
    from skills_gap import InsightNarrator, SkillsGapAnalyzer, SkillsRepository

    llm_cfg = config_model.llm
    provider = None
    if use_llm and llm_cfg.enabled:
        provider = create_llm_provider_or_none(
            provider=llm_cfg.provider,
            api_key=llm_cfg.api_key,
            model=llm_cfg.model,
            timeout=llm_cfg.timeout_seconds,
        )

    repository = SkillsRepository(config_model.paths.database)
    narrator = InsightNarrator(
        provider=provider,
        timeout_seconds=llm_cfg.timeout_seconds,
        max_tokens=llm_cfg.max_tokens,
        thresholds=config_model.thresholds,
    )
    return SkillsGapAnalyzer(repository, narrator=narrator, thresholds=config_model.thresholds)


def get_components(config_path: Optional[Path] = None, use_llm: bool = True) -> dict:
    """Initialize all components from config.

    Args:
        config_path: Explicit config file (default: standard locations)
        use_llm: If False, never build a text provider
    """
    from cli.config import load_config_model

    config_model = load_config_model(config_path)
    analyzer = build_analyzer(config_model, use_llm=use_llm)
    return {
        "config_model": config_model,
        "repository": analyzer.repository,
        "analyzer": analyzer,
    }


def format_pct(value: Optional[float]) -> str:
    return "-" if value is None else f"{value:.0f}%"
