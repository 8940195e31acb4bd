"""CLI command tests using Click CliRunner.

Most tests run against a real SQLite file named in a temp config. Error
mapping tests mock get_components at the command module's import point.
"""

import json
from unittest.mock import MagicMock, patch

import pytest
import yaml
from click.testing import CliRunner

from cli.main import cli
from skills_gap import InvalidArgument


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "paths": {"database": str(tmp_path / "skills.db")},
                "llm": {"enabled": False},
                "logging": {"level": "ERROR"},
            }
        )
    )
    return path


@pytest.fixture
def invoke(runner, config_file):
    def _invoke(*args):
        return runner.invoke(cli, ["-c", str(config_file), *args])

    return _invoke


@pytest.fixture
def seeded(invoke):
    result = invoke("db", "seed")
    assert result.exit_code == 0, result.output
    return invoke


class TestDatabaseCommands:
    def test_init_then_check_reports_no_data(self, invoke):
        assert invoke("db", "init").exit_code == 0

        result = invoke("db", "check")

        assert result.exit_code == 1
        assert "Data unavailable" in result.output

    def test_seed_then_check(self, seeded):
        result = seeded("db", "check")

        assert result.exit_code == 0
        assert "ok" in result.output

    def test_seed_prints_counts(self, invoke):
        result = invoke("db", "seed")

        assert result.exit_code == 0
        assert "departments" in result.output
        assert "market_trends" in result.output


class TestAnalyze:
    def test_json(self, seeded):
        result = seeded("analyze", "--json", "--no-ai")

        assert result.exit_code == 0, result.output
        body = json.loads(result.output)
        assert body["using_fallback_data"] is False
        assert body["organization_skills"]["total_resources"] == 6

    def test_department_json(self, seeded):
        result = seeded("analyze", "--department", "3", "--json", "--no-ai")

        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["organization_skills"]["total_resources"] == 2

    def test_fallback_banner(self, invoke):
        result = invoke("analyze", "--fallback")

        assert result.exit_code == 0, result.output
        assert "illustrative fallback data" in result.output
        assert "Immediate Gaps" in result.output

    def test_empty_database_uses_fallback(self, invoke):
        invoke("db", "init")

        result = invoke("analyze", "--json", "--no-ai")

        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["using_fallback_data"] is True

    def test_missing_database(self, invoke):
        result = invoke("analyze", "--no-ai")

        assert result.exit_code == 1
        assert "Database unavailable" in result.output

    def test_invalid_time_range_rejected(self, invoke):
        result = invoke("analyze", "--time-range", "forever")
        assert result.exit_code == 2


class TestDepartmentCommands:
    def test_unknown_department(self, seeded):
        result = seeded("department", "42", "--no-ai")

        assert result.exit_code == 2
        assert "not found" in result.output

    def test_department(self, seeded):
        result = seeded("department", "1", "--no-ai")

        assert result.exit_code == 0, result.output
        assert "Department 1" in result.output

    def test_departments_json(self, seeded):
        result = seeded("departments", "--json")

        assert result.exit_code == 0, result.output
        rows = json.loads(result.output)
        assert {r["department_name"] for r in rows} == {"Engineering", "Design", "Data"}

    def test_departments_table(self, seeded):
        result = seeded("departments")

        assert result.exit_code == 0, result.output
        assert "Departments by Skills Gap" in result.output


class TestResourceCommand:
    def test_resource(self, seeded):
        result = seeded("resource", "1", "--no-ai")

        assert result.exit_code == 0, result.output
        assert "Ada Byron" in result.output
        assert "Strengths:" in result.output

    def test_unknown_resource(self, seeded):
        assert seeded("resource", "404", "--no-ai").exit_code == 2

    def test_fallback_json(self, invoke):
        result = invoke("resource", "9", "--fallback", "--json")

        assert result.exit_code == 0, result.output
        body = json.loads(result.output)
        assert body["resource_id"] == "9"
        assert body["using_fallback_data"] is True


class TestPlanCommands:
    def test_training(self, invoke):
        result = invoke("training", "--fallback")

        assert result.exit_code == 0, result.output
        assert "Training Priorities" in result.output

    def test_hiring(self, invoke):
        result = invoke("hiring", "--fallback", "--time-range", "1year")

        assert result.exit_code == 0, result.output
        assert "Hiring Priorities (1year)" in result.output

    def test_hiring_json(self, seeded):
        result = seeded("hiring", "--json", "--no-ai", "--time-range", "3months")

        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["summary"]["timeframe"] == "3months"


class TestErrorMapping:
    def test_invalid_argument_exits_1(self, runner, config_file):
        analyzer = MagicMock()
        analyzer.analyze_department.side_effect = InvalidArgument("department_id is required")

        with patch("cli.commands.analyze.get_components", return_value={"analyzer": analyzer}):
            result = runner.invoke(cli, ["-c", str(config_file), "department", "x", "--no-ai"])

        assert result.exit_code == 1
        assert "department_id is required" in result.output

    def test_no_ai_builds_without_provider(self, runner, config_file):
        analyzer = MagicMock()
        analyzer.list_departments_with_gap_summary.return_value = []

        with patch(
            "cli.commands.analyze.get_components", return_value={"analyzer": analyzer}
        ) as get_components:
            result = runner.invoke(cli, ["-c", str(config_file), "departments"])

        assert result.exit_code == 0
        assert "No departments found" in result.output
        assert get_components.call_args.kwargs == {"use_llm": False}


def test_version(runner):
    result = runner.invoke(cli, ["--version"])
    assert "0.1.0" in result.output
