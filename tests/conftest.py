"""Shared test fixtures for the skills gap engine."""

import sys
from datetime import date
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from observability import Metrics  # noqa: E402
from skills_gap import SkillsRepository  # noqa: E402

TODAY = date.today()


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "skills.db"


@pytest.fixture
def empty_repository(db_path):
    """Repository over a database with the schema but no rows."""
    repository = SkillsRepository(db_path)
    repository.init_schema()
    return repository


@pytest.fixture
def seeded_repository(db_path):
    """Repository over the demo organization, dated relative to TODAY."""
    repository = SkillsRepository(db_path)
    repository.seed_sample_data(today=TODAY)
    return repository


@pytest.fixture
def metrics():
    return Metrics()


@pytest.fixture
def mock_provider():
    """Text provider returning a well-formed insight response."""
    provider = MagicMock()
    provider.provider_name = "mock"
    provider.generate.return_value = (
        "## Insights\n"
        "1. Cloud skills are the biggest gap.\n"
        "2. Data skills are concentrated in two people.\n"
        "## Recommendations\n"
        "1. Hire a Kubernetes specialist.\n"
        "2. Pair junior engineers with the data team.\n"
        "3. Run an AWS certification cohort.\n"
        "4. Review Figma licences.\n"
        "## Metrics\n"
        "- Coverage of Kubernetes above 30%\n"
    )
    return provider


@pytest.fixture
def failing_provider():
    provider = MagicMock()
    provider.provider_name = "mock"
    provider.generate.side_effect = RuntimeError("provider exploded")
    return provider
