"""Dependency injection for FastAPI routes."""

from functools import lru_cache

import structlog

from cli.config import load_config_model
from cli.utils import build_analyzer

logger = structlog.get_logger()


@lru_cache
def get_config():
    """Load shared config from ./config.yaml or ~/.skills-gap/config.yaml."""
    return load_config_model()


@lru_cache
def get_analyzer():
    """Process-wide analyzer; it keeps no per-request state."""
    return build_analyzer(get_config())
