"""
Unit tests for threshold evaluation of metrics snapshots.
"""

from dataclasses import replace

import pytest

from conftest import BASE_TIME, make_snapshot
from sysdash.alerts.evaluator import (
    check_threshold,
    evaluate_alerts,
    format_observed,
    max_disk_usage,
)
from sysdash.models.alerts import (
    DEFAULT_THRESHOLDS,
    AlertSeverity,
    AlertType,
    ThresholdPair,
)


@pytest.mark.unit
class TestCheckThreshold:
    """Test cases for a single category check."""

    def test_below_warning(self):
        assert check_threshold(AlertType.CPU, 79.9, ThresholdPair(80, 90), BASE_TIME) is None

    def test_warning_is_inclusive(self):
        event = check_threshold(AlertType.CPU, 80.0, ThresholdPair(80, 90), BASE_TIME)

        assert event.severity is AlertSeverity.WARNING
        assert event.threshold == 80

    def test_critical_takes_precedence(self):
        """A value over both thresholds yields only the critical event."""
        event = check_threshold(AlertType.CPU, 95.0, ThresholdPair(80, 90), BASE_TIME)

        assert event.severity is AlertSeverity.CRITICAL
        assert event.threshold == 90
        assert event.value == 95.0

    def test_critical_is_inclusive(self):
        event = check_threshold(AlertType.MEMORY, 90.0, ThresholdPair(80, 90), BASE_TIME)
        assert event.severity is AlertSeverity.CRITICAL

    def test_event_carries_timestamp(self):
        event = check_threshold(AlertType.CPU, 85.0, ThresholdPair(80, 90), BASE_TIME)
        assert event.timestamp == BASE_TIME


@pytest.mark.unit
class TestMessages:
    """Test cases for human-readable alert text."""

    def test_percentage_one_decimal(self):
        assert format_observed(AlertType.CPU, 92.345) == "92.3%"

    def test_temperature_whole_degrees(self):
        assert format_observed(AlertType.GPU_TEMP, 88.4) == "88°C"

    def test_cpu_message(self):
        event = check_threshold(AlertType.CPU, 92.3, ThresholdPair(80, 90), BASE_TIME)
        assert event.message == "CPU usage (92.3%) exceeds critical threshold"

    def test_gpu_temp_message(self):
        event = check_threshold(AlertType.GPU_TEMP, 78.0, ThresholdPair(75, 85), BASE_TIME)
        assert event.message == "GPU temperature (78°C) exceeds warning threshold"


@pytest.mark.unit
class TestEvaluateAlerts:
    """Test cases for whole-snapshot evaluation."""

    def test_quiet_snapshot_yields_nothing(self):
        assert evaluate_alerts(make_snapshot(), DEFAULT_THRESHOLDS) == []

    def test_one_event_per_category_in_fixed_order(self):
        snapshot = make_snapshot(cpu=95.0, memory=85.0, gpu_temp=80.0)
        events = evaluate_alerts(snapshot, DEFAULT_THRESHOLDS, disk_usage=96.0, now=BASE_TIME)

        assert [e.type for e in events] == [
            AlertType.CPU,
            AlertType.GPU_TEMP,
            AlertType.MEMORY,
            AlertType.DISK,
        ]
        assert [e.severity for e in events] == [
            AlertSeverity.CRITICAL,
            AlertSeverity.WARNING,
            AlertSeverity.WARNING,
            AlertSeverity.CRITICAL,
        ]
        assert all(e.timestamp == BASE_TIME for e in events)

    def test_no_gpu_skips_gpu_category(self):
        events = evaluate_alerts(make_snapshot(has_gpu=False), DEFAULT_THRESHOLDS)
        assert events == []

    def test_gpu_without_temperature_skipped(self):
        snapshot = make_snapshot(gpu_temp=None, gpu_util=99.0)
        assert evaluate_alerts(snapshot, DEFAULT_THRESHOLDS) == []

    def test_disk_only_evaluated_when_supplied(self):
        snapshot = make_snapshot()
        assert evaluate_alerts(snapshot, DEFAULT_THRESHOLDS) == []
        events = evaluate_alerts(snapshot, DEFAULT_THRESHOLDS, disk_usage=90.0)
        assert [(e.type, e.severity) for e in events] == [(AlertType.DISK, AlertSeverity.WARNING)]

    def test_uses_given_thresholds(self):
        thresholds = replace(DEFAULT_THRESHOLDS, cpu=ThresholdPair(5, 15))
        events = evaluate_alerts(make_snapshot(cpu=10.0), thresholds)

        assert len(events) == 1
        assert events[0].type is AlertType.CPU
        assert events[0].severity is AlertSeverity.WARNING

    def test_wire_form_omits_timestamp(self):
        event = evaluate_alerts(make_snapshot(cpu=99.0), DEFAULT_THRESHOLDS)[0]
        assert event.to_dict() == {
            "type": "cpu",
            "severity": "critical",
            "message": "CPU usage (99.0%) exceeds critical threshold",
            "value": 99.0,
            "threshold": 90.0,
        }


@pytest.mark.unit
def test_max_disk_usage():
    assert max_disk_usage([40.0, None, 91.5, 12.0]) == 91.5
    assert max_disk_usage([]) is None
    assert max_disk_usage([None]) is None
