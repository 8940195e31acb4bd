"""Shared fixtures for web API tests."""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from skills_gap import SkillsGapAnalyzer, SkillsRepository
from web.app import app
from web.deps import get_analyzer


@pytest.fixture
def make_client():
    """Build a client whose routes use the given analyzer."""

    def _make(analyzer):
        app.dependency_overrides[get_analyzer] = lambda: analyzer
        return TestClient(app)

    yield _make
    app.dependency_overrides.clear()


@pytest.fixture
def client(make_client, seeded_repository):
    return make_client(SkillsGapAnalyzer(seeded_repository))


@pytest.fixture
def empty_client(make_client, empty_repository):
    return make_client(SkillsGapAnalyzer(empty_repository))


@pytest.fixture
def unreachable_client(make_client, tmp_path):
    return make_client(SkillsGapAnalyzer(SkillsRepository(tmp_path / "missing.db")))


@pytest.fixture
def mock_analyzer(make_client):
    analyzer = MagicMock(spec=SkillsGapAnalyzer)
    return analyzer, make_client(analyzer)
