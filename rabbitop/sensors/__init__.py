"""rabbitop sensor framework.

Non-invasive instrumentation of operator lifecycle events through a
hook-based pattern.

- OperatorSensor: Base class defining lifecycle hooks for operator events
- SensorDelegate: Fan-out to multiple sensor backends
- PrometheusMonitor: Prometheus metrics exporter
"""

from rabbitop.sensors.base import OperatorSensor
from rabbitop.sensors.delegate import SensorDelegate
from rabbitop.sensors.prometheus import PrometheusMonitor
from rabbitop.sensors.server import init_metrics_server

__all__ = [
    'OperatorSensor',
    'SensorDelegate',
    'PrometheusMonitor',
    'init_metrics_server',
]
