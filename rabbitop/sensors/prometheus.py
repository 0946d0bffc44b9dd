"""Prometheus monitoring backend for rabbitop.

PrometheusMonitor turns sensor events into Prometheus metrics:

1. Reconciliation health - duration, throughput, errors, conflicts
2. Kubernetes resource sync - operation counts, latency, drift detection
3. Status updates
"""

from typing import Any, Dict, List, Optional
import time
import logging

from prometheus_client import CollectorRegistry, Counter, Histogram, REGISTRY

from rabbitop.sensors.base import OperatorSensor

logger = logging.getLogger(__name__)


class PrometheusMonitor(OperatorSensor):
    """Prometheus metrics monitor for rabbitop.

    Metrics are exposed through prometheus_client and scraped from the
    metrics server started by the operator.
    """

    def __init__(self, registry: CollectorRegistry = REGISTRY):
        super().__init__()

        # =============================================================================
        # Reconciliation Loop Metrics
        # =============================================================================

        self.reconcile_duration = Histogram(
            'rabbitop_reconcile_duration_seconds',
            'Time spent reconciling a RabbitmqCluster',
            labelnames=['name', 'namespace', 'trigger_source', 'result'],
            buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
            registry=registry,
        )

        self.reconcile_total = Counter(
            'rabbitop_reconcile_total',
            'Total number of reconcile passes',
            labelnames=['name', 'namespace', 'trigger_source', 'result'],
            registry=registry,
        )

        self.reconcile_errors = Counter(
            'rabbitop_reconcile_errors_total',
            'Total number of failed reconcile passes',
            labelnames=['name', 'namespace', 'error_type'],
            registry=registry,
        )

        self.reconcile_conflicts = Counter(
            'rabbitop_reconcile_conflicts_total',
            'Total number of reconcile passes redone after a write conflict',
            labelnames=['name', 'namespace'],
            registry=registry,
        )

        # =============================================================================
        # Resource Sync Metrics
        # =============================================================================

        self.resource_sync_duration = Histogram(
            'rabbitop_resource_sync_duration_seconds',
            'Time spent writing a child resource',
            labelnames=['name', 'namespace', 'resource_type', 'operation', 'result'],
            buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
            registry=registry,
        )

        self.resource_sync_total = Counter(
            'rabbitop_resource_sync_total',
            'Total number of child resource writes',
            labelnames=['name', 'namespace', 'resource_type', 'operation', 'result'],
            registry=registry,
        )

        self.resource_drift_detected = Counter(
            'rabbitop_resource_drift_detected_total',
            'Total number of child resources found out of their desired state',
            labelnames=['name', 'namespace', 'resource_type', 'drift_field'],
            registry=registry,
        )

        self.status_updates = Counter(
            'rabbitop_status_updates_total',
            'Total number of status updates',
            labelnames=['name', 'namespace', 'update_field'],
            registry=registry,
        )

        logger.info("PrometheusMonitor initialized with all metrics")

    def on_reconcile_start(
        self, name: str, namespace: str, generation: int, trigger_source: str
    ) -> Optional[Dict[str, Any]]:
        return {'start_time': time.time(), 'trigger_source': trigger_source}

    def on_reconcile_complete(
        self,
        name: str,
        namespace: str,
        state: Optional[Dict[str, Any]],
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        if not state:
            return
        duration = time.time() - state['start_time']
        labels = dict(
            name=name,
            namespace=namespace,
            trigger_source=state['trigger_source'],
            result='success' if success else 'failure',
        )
        self.reconcile_duration.labels(**labels).observe(duration)
        self.reconcile_total.labels(**labels).inc()
        if error:
            self.reconcile_errors.labels(
                name=name, namespace=namespace, error_type=error.__class__.__name__
            ).inc()

    def on_reconcile_conflict(self, name: str, namespace: str, attempt: int) -> None:
        self.reconcile_conflicts.labels(name=name, namespace=namespace).inc()

    def on_resource_sync_start(
        self, name: str, resource_name: str, namespace: str, resource_type: str
    ) -> Optional[Dict[str, Any]]:
        return {'start_time': time.time()}

    def on_resource_sync_complete(
        self,
        name: str,
        resource_name: str,
        namespace: str,
        resource_type: str,
        state: Optional[Dict[str, Any]],
        operation: str,
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        if not state:
            return
        labels = dict(
            name=name,
            namespace=namespace,
            resource_type=resource_type,
            operation=operation,
            result='success' if success else 'failure',
        )
        self.resource_sync_duration.labels(**labels).observe(time.time() - state['start_time'])
        self.resource_sync_total.labels(**labels).inc()

    def on_resource_drift_detected(
        self,
        name: str,
        resource_name: str,
        namespace: str,
        resource_type: str,
        drift_fields: List[str],
    ) -> None:
        for field in drift_fields:
            self.resource_drift_detected.labels(
                name=name, namespace=namespace, resource_type=resource_type, drift_field=field
            ).inc()

    def on_status_update(self, name: str, namespace: str, update_fields: List[str]) -> None:
        for field in update_fields:
            self.status_updates.labels(name=name, namespace=namespace, update_field=field).inc()
