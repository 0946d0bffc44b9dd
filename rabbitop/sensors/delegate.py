"""Fan-out of sensor events to several monitoring backends.

Each backend sees the same events and keeps its own state; an exception
raised by one backend is logged and never reaches the reconcile engine.
"""

from typing import Any, Dict, List, Optional, Set
import logging

from rabbitop.sensors.base import OperatorSensor

logger = logging.getLogger(__name__)


class SensorDelegate(OperatorSensor):
    """Routes every hook to each registered sensor.

    Start hooks return ``{sensor: state}`` and the matching complete hook
    gives each sensor back its own entry.

    Example:
        delegate = SensorDelegate()
        delegate.add(PrometheusMonitor())

        state = delegate.on_reconcile_start("my-cluster", "default", 5, "timer")
        delegate.on_reconcile_complete("my-cluster", "default", state, True)
    """

    def __init__(self) -> None:
        self._sensors: Set[OperatorSensor] = set()

    def add(self, sensor: OperatorSensor) -> None:
        logger.info(f"Adding sensor: {sensor.__class__.__name__}")
        self._sensors.add(sensor)

    def _call(self, sensor: OperatorSensor, hook: str, *args) -> Any:
        try:
            return getattr(sensor, hook)(*args)
        except Exception as e:
            logger.error(f"Error in {sensor.__class__.__name__}.{hook}: {e}", exc_info=True)
            return None

    def _broadcast(self, hook: str, *args) -> None:
        for sensor in self._sensors:
            self._call(sensor, hook, *args)

    def _start(self, hook: str, *args) -> Optional[Dict[OperatorSensor, Any]]:
        states = {sensor: self._call(sensor, hook, *args) for sensor in self._sensors}
        return {sensor: state for sensor, state in states.items() if state is not None} or None

    def on_reconcile_start(self, name, namespace, generation, trigger_source):
        return self._start("on_reconcile_start", name, namespace, generation, trigger_source)

    def on_reconcile_complete(self, name, namespace, state, success, error=None):
        for sensor in self._sensors:
            own = state.get(sensor) if state else None
            self._call(sensor, "on_reconcile_complete", name, namespace, own, success, error)

    def on_reconcile_conflict(self, name: str, namespace: str, attempt: int) -> None:
        self._broadcast("on_reconcile_conflict", name, namespace, attempt)

    def on_resource_sync_start(self, name, resource_name, namespace, resource_type):
        return self._start("on_resource_sync_start", name, resource_name, namespace, resource_type)

    def on_resource_sync_complete(
        self, name, resource_name, namespace, resource_type, state, operation, success, error=None
    ):
        for sensor in self._sensors:
            own = state.get(sensor) if state else None
            self._call(
                sensor,
                "on_resource_sync_complete",
                name,
                resource_name,
                namespace,
                resource_type,
                own,
                operation,
                success,
                error,
            )

    def on_resource_drift_detected(
        self, name: str, resource_name: str, namespace: str, resource_type: str, drift_fields: List[str]
    ) -> None:
        self._broadcast(
            "on_resource_drift_detected", name, resource_name, namespace, resource_type, drift_fields
        )

    def on_status_update(self, name: str, namespace: str, update_fields: List[str]) -> None:
        self._broadcast("on_status_update", name, namespace, update_fields)
