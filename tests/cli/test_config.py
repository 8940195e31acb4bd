"""Tests for config loading and validation."""

from pathlib import Path

import pytest

from cli.config import load_config_model
from cli.config_models import SkillsGapConfig


def _write(tmp_path, text):
    path = tmp_path / "config.yaml"
    path.write_text(text)
    return path


def test_defaults():
    config = SkillsGapConfig()

    assert config.llm.provider == "auto"
    assert config.llm.timeout_seconds == 20.0
    assert config.paths.database == Path("~/.skills-gap/skills.db").expanduser()
    assert config.thresholds.low_coverage_pct == 20.0


def test_load_from_file(tmp_path):
    path = _write(
        tmp_path,
        "paths:\n"
        "  database: ~/data/skills.db\n"
        "thresholds:\n"
        "  low_coverage_pct: 25\n"
        "  trend_window: 5\n"
        "logging:\n"
        "  level: debug\n",
    )

    config = load_config_model(path)

    assert config.paths.database == Path.home() / "data" / "skills.db"
    assert config.thresholds.low_coverage_pct == 25.0
    assert config.thresholds.trend_window == 5
    assert config.logging.level == "DEBUG"


def test_api_key_env_expansion(tmp_path, monkeypatch):
    monkeypatch.setenv("SKILLS_GAP_TEST_KEY", "sk-ant-from-env")
    path = _write(tmp_path, "llm:\n  api_key: ${SKILLS_GAP_TEST_KEY}\n")

    assert load_config_model(path).llm.api_key == "sk-ant-from-env"


def test_empty_file(tmp_path):
    config = load_config_model(_write(tmp_path, ""))
    assert config.llm.enabled is True


@pytest.mark.parametrize(
    "text",
    [
        "llm:\n  provider: llama\n",
        "llm:\n  timeout_seconds: 0\n",
        "logging:\n  level: LOUD\n",
    ],
)
def test_invalid_values(tmp_path, text):
    with pytest.raises(ValueError, match="Config validation failed"):
        load_config_model(_write(tmp_path, text))


def test_invalid_yaml(tmp_path):
    with pytest.raises(ValueError, match="Invalid YAML"):
        load_config_model(_write(tmp_path, "llm: [unclosed\n"))
