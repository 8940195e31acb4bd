"""Tests for insight parsing and narration with and without a provider."""

import time

import pytest

from llm import LLMRateLimitError
from shared_types import InsightSource, Priority
from skills_gap.fallback import fallback_envelope, fallback_resource_envelope
from skills_gap.models import CoverageDataset, DemandDataset, GapAnalysisResult, TrendDataset
from skills_gap.narrator import (
    InsightNarrator,
    parse_insight_response,
    rule_based_narration,
    rule_based_resource_narration,
)


class TestParseInsightResponse:
    def test_numbered_sections(self):
        text = (
            "Here is my analysis.\n\n"
            "1. Strategic insights:\n"
            "1. Insights show cloud demand doubling.\n"
            "2. Data skills are concentrated.\n\n"
            "2. Recommendations:\n"
            "1. Hire a platform engineer.\n"
            "2. Train two analysts in SQL.\n"
        )

        insights, recommendations = parse_insight_response(text)

        assert insights == ["Insights show cloud demand doubling.", "Data skills are concentrated."]
        assert recommendations == ["Hire a platform engineer.", "Train two analysts in SQL."]

    def test_markdown_headers_and_bullets(self):
        text = (
            "## Key Insights\n"
            "- **Cloud** is the largest gap\n"
            "* Design is healthy\n"
            "**Recommendations**\n"
            "- Start a Kubernetes guild\n"
        )

        insights, recommendations = parse_insight_response(text)

        assert insights == ["Cloud is the largest gap", "Design is healthy"]
        assert recommendations == ["Start a Kubernetes guild"]

    def test_continuation_lines_join_previous_item(self):
        text = "Insights:\n1. Cloud is the gap\n   because nobody holds it.\n"

        insights, _ = parse_insight_response(text)

        assert insights == ["Cloud is the gap because nobody holds it."]

    def test_metrics_and_plan_sections_dropped(self, mock_provider):
        insights, recommendations = parse_insight_response(mock_provider.generate.return_value)

        assert len(insights) == 2
        assert len(recommendations) == 4
        assert not any("Coverage of Kubernetes" in r for r in recommendations)

    def test_think_blocks_removed(self):
        text = (
            "<think>\nInsights:\n1. hidden reasoning\n</think>\n"
            "Recommendations:\n1. Visible advice\n"
        )

        insights, recommendations = parse_insight_response(text)

        assert insights == []
        assert recommendations == ["Visible advice"]

    @pytest.mark.parametrize("text", ["", "I cannot help with that.", None, "- stray bullet"])
    def test_unstructured_text_yields_nothing(self, text):
        assert parse_insight_response(text) == ([], [])


class TestRuleBasedNarration:
    def test_fallback_analysis(self):
        narration = rule_based_narration(fallback_envelope().gap_analysis)

        assert narration.source == InsightSource.RULES
        assert narration.insights[0].startswith("The organization has a significant")
        assert any("Cloud Architecture" in i for i in narration.insights)
        assert [r.type for r in narration.recommendations] == [
            "critical_gap",
            "high_gap",
            "emerging_trend",
        ]

    def test_no_gaps_still_recommends(self):
        narration = rule_based_narration(GapAnalysisResult())

        assert narration.insights
        assert [r.type for r in narration.recommendations] == ["monitor"]

    def test_resource_narration(self):
        envelope = fallback_resource_envelope(1)
        narration = rule_based_resource_narration(
            {"name": "Sample Resource", "role": "Developer"}, envelope.gap_analysis
        )

        assert narration.insights[0] == "Sample Resource has strong expertise in JavaScript."
        assert "Developer role" in narration.insights[1]
        assert narration.recommendations[0].type == "role_skill_acquisition"


def _narrate(narrator):
    return narrator.narrate(
        CoverageDataset(), DemandDataset(), TrendDataset(), fallback_envelope().gap_analysis
    )


class TestInsightNarrator:
    def test_without_provider_uses_rules(self):
        narration = _narrate(InsightNarrator())
        assert narration.source == InsightSource.RULES

    def test_provider_narration(self, mock_provider, metrics):
        narration = _narrate(InsightNarrator(provider=mock_provider, metrics=metrics))

        assert narration.source == InsightSource.PROVIDER
        assert narration.insights == [
            "Cloud skills are the biggest gap.",
            "Data skills are concentrated in two people.",
        ]
        assert {r.type for r in narration.recommendations} == {"ai"}
        assert [r.priority for r in narration.recommendations] == [
            Priority.HIGH,
            Priority.HIGH,
            Priority.HIGH,
            Priority.MEDIUM,
        ]
        assert metrics.get("narrator.provider_failure") == 0

        kwargs = mock_provider.generate.call_args.kwargs
        assert kwargs["max_tokens"] == 1000
        assert "<gap_analysis>" in kwargs["messages"][0]["content"]

    def test_provider_exception_falls_back(self, failing_provider, metrics):
        narration = _narrate(InsightNarrator(provider=failing_provider, metrics=metrics))

        assert narration.source == InsightSource.RULES
        assert narration.insights
        assert narration.recommendations
        assert metrics.get("narrator.provider_failure") == 1

    def test_provider_llm_error_falls_back(self, mock_provider, metrics):
        mock_provider.generate.side_effect = LLMRateLimitError("slow down")

        narration = _narrate(InsightNarrator(provider=mock_provider, metrics=metrics))

        assert narration.source == InsightSource.RULES
        assert metrics.get("narrator.provider_failure") == 1

    @pytest.mark.parametrize("garbage", ["", "   ", "Sure! Happy to help.", "{\"json\": true}"])
    def test_unparseable_response_falls_back(self, mock_provider, metrics, garbage):
        mock_provider.generate.return_value = garbage

        narration = _narrate(InsightNarrator(provider=mock_provider, metrics=metrics))

        assert narration.source == InsightSource.RULES
        assert narration.recommendations

    def test_slow_provider_times_out(self, mock_provider, metrics):
        def slow(**kwargs):
            time.sleep(0.5)
            return mock_provider.generate.return_value

        mock_provider.generate.side_effect = slow
        narrator = InsightNarrator(provider=mock_provider, timeout_seconds=0.05, metrics=metrics)

        started = time.monotonic()
        narration = _narrate(narrator)

        assert time.monotonic() - started < 0.4
        assert narration.source == InsightSource.RULES
        assert metrics.get("narrator.provider_failure") == 1

    def test_use_provider_false_skips_call(self, mock_provider):
        narrator = InsightNarrator(provider=mock_provider)
        narration = narrator.narrate(
            CoverageDataset(),
            DemandDataset(),
            TrendDataset(),
            GapAnalysisResult(),
            use_provider=False,
        )

        assert narration.source == InsightSource.RULES
        mock_provider.generate.assert_not_called()

    def test_resource_provider_narration(self, mock_provider):
        envelope = fallback_resource_envelope(1)

        narration = InsightNarrator(provider=mock_provider).narrate_resource(
            {"id": 1, "name": "Ada"}, envelope.current_skills, [], [], envelope.gap_analysis
        )

        assert narration.source == InsightSource.PROVIDER
        assert {r.type for r in narration.recommendations} == {"ai_development"}
        prompt = mock_provider.generate.call_args.kwargs["messages"][0]["content"]
        assert "Name: Ada" in prompt

    def test_resource_provider_failure(self, failing_provider):
        envelope = fallback_resource_envelope(1)

        narration = InsightNarrator(provider=failing_provider).narrate_resource(
            {"id": 1, "name": "Ada"}, envelope.current_skills, [], [], envelope.gap_analysis
        )

        assert narration.source == InsightSource.RULES
        assert narration.recommendations
