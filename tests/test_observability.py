"""Tests for the metrics collector."""

from unittest.mock import MagicMock

import observability
from observability import Metrics


def test_counters():
    metrics = Metrics()
    metrics.counter("skills_gap.analysis")
    metrics.counter("skills_gap.analysis", 2)

    assert metrics.get("skills_gap.analysis") == 3
    assert metrics.get("never.seen") == 0


def test_timer_summary():
    metrics = Metrics()
    with metrics.timer("repository.fetch"):
        pass
    with metrics.timer("repository.fetch"):
        pass

    summary = metrics.summary()

    assert summary["timers"]["repository.fetch"]["count"] == 2
    assert summary["timers"]["repository.fetch"]["min"] >= 0


def test_reset():
    metrics = Metrics()
    metrics.counter("x")
    metrics.reset()
    assert metrics.summary() == {"counters": {}, "timers": {}}


def test_log_run_summary(monkeypatch):
    metrics = Metrics()
    metrics.counter("skills_gap.fallback")
    logger = MagicMock()
    monkeypatch.setattr(observability, "logger", logger)

    observability.log_run_summary(metrics)

    logger.debug.assert_called_once_with(
        "run_summary", counters={"skills_gap.fallback": 1}, timers={}
    )
