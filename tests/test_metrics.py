"""
Tests for in-memory pipeline metrics.
"""

import logging

from hl7bridge.metrics import PipelineMetrics, get_metrics


def test_empty_stats():
    stats = PipelineMetrics().get_stats()

    assert stats["total_runs"] == 0
    assert stats["average_duration_ms"] == 0.0
    assert stats["error_rate"] == 0.0


def test_record_and_stats():
    metrics = PipelineMetrics()
    metrics.record(10.0, False, "ADT")
    metrics.record(30.0, True, "ORU")
    metrics.record(20.0, True, None)

    stats = metrics.get_stats()
    assert stats["total_runs"] == 3
    assert stats["average_duration_ms"] == 20.0
    assert stats["max_duration_ms"] == 30.0
    assert stats["error_rate"] == 2 / 3
    assert stats["error_breakdown"] == {"ORU": 1, "UNKNOWN": 1}


def test_max_entries_bounds_history():
    metrics = PipelineMetrics(max_entries=2)
    for duration in (1.0, 2.0, 3.0):
        metrics.record(duration, False)

    assert metrics.get_stats()["total_runs"] == 2
    assert metrics.get_stats()["average_duration_ms"] == 2.5


def test_slow_run_is_logged(caplog):
    metrics = PipelineMetrics(slow_threshold_ms=5.0)

    with caplog.at_level(logging.WARNING, logger="hl7bridge.metrics"):
        metrics.record(50.0, False, "ORU")

    assert "Slow pipeline run: ORU" in caplog.text


def test_reset():
    metrics = PipelineMetrics()
    metrics.record(1.0, True, "ADT")
    metrics.reset()

    assert metrics.get_stats()["total_runs"] == 0
    assert metrics.get_stats()["error_breakdown"] == {}


def test_global_instance():
    assert get_metrics() is get_metrics()
