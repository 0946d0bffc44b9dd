"""Unit tests for the sensor fan-out and the Prometheus backend."""

from unittest.mock import MagicMock

from prometheus_client import CollectorRegistry
from rabbitop.sensors import OperatorSensor, PrometheusMonitor, SensorDelegate


def test_delegate_hands_each_sensor_its_own_state():
    first, second = MagicMock(spec=OperatorSensor), MagicMock(spec=OperatorSensor)
    first.on_reconcile_start.return_value = "a"
    second.on_reconcile_start.return_value = "b"
    delegate = SensorDelegate()
    delegate.add(first)
    delegate.add(second)

    state = delegate.on_reconcile_start("my-cluster", "default", 1, "timer")
    delegate.on_reconcile_complete("my-cluster", "default", state, True)

    first.on_reconcile_complete.assert_called_once_with("my-cluster", "default", "a", True, None)
    second.on_reconcile_complete.assert_called_once_with("my-cluster", "default", "b", True, None)


def test_delegate_isolates_failing_sensor():
    broken = MagicMock(spec=OperatorSensor)
    broken.on_reconcile_conflict.side_effect = RuntimeError("boom")
    healthy = MagicMock(spec=OperatorSensor)
    delegate = SensorDelegate()
    delegate.add(broken)
    delegate.add(healthy)

    delegate.on_reconcile_conflict("my-cluster", "default", 1)
    healthy.on_reconcile_conflict.assert_called_once_with("my-cluster", "default", 1)


def test_prometheus_monitor_counts_passes():
    registry = CollectorRegistry()
    monitor = PrometheusMonitor(registry=registry)

    state = monitor.on_reconcile_start("my-cluster", "default", 1, "create")
    monitor.on_reconcile_complete("my-cluster", "default", state, False, ValueError("x"))
    monitor.on_resource_drift_detected(
        "my-cluster", "my-cluster-server", "default", "StatefulSet", ["spec.replicas"]
    )

    labels = {
        "name": "my-cluster",
        "namespace": "default",
        "trigger_source": "create",
        "result": "failure",
    }
    assert registry.get_sample_value("rabbitop_reconcile_total", labels) == 1.0
    assert (
        registry.get_sample_value(
            "rabbitop_reconcile_errors_total",
            {"name": "my-cluster", "namespace": "default", "error_type": "ValueError"},
        )
        == 1.0
    )
    assert (
        registry.get_sample_value(
            "rabbitop_resource_drift_detected_total",
            {
                "name": "my-cluster",
                "namespace": "default",
                "resource_type": "StatefulSet",
                "drift_field": "spec.replicas",
            },
        )
        == 1.0
    )
