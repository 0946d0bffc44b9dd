"""Lifecycle hooks for instrumenting the operator.

Every hook is a no-op here; backends override the ones they report on.
A ``*_start`` hook may return a state object that the engine hands back,
untouched, to the matching ``*_complete`` hook.
"""

from typing import Any, List, Optional


class OperatorSensor:
    """Receives reconcile and child-sync events for RabbitmqCluster instances.

    Example:
        class LoggingSensor(OperatorSensor):
            def on_reconcile_start(self, name, namespace, generation, trigger_source):
                return time.monotonic()

            def on_reconcile_complete(self, name, namespace, state, success, error=None):
                logger.info(f"{namespace}/{name} took {time.monotonic() - state:.2f}s")
    """

    # Reconcile passes

    def on_reconcile_start(
        self, name: str, namespace: str, generation: int, trigger_source: str
    ) -> Optional[Any]:
        """A pass begins; ``trigger_source`` is create, update or timer."""

    def on_reconcile_complete(
        self,
        name: str,
        namespace: str,
        state: Optional[Any],
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        pass

    def on_reconcile_conflict(self, name: str, namespace: str, attempt: int) -> None:
        """A write conflict made the engine redo the pass; ``attempt`` counts from 1."""

    # Child resources

    def on_resource_sync_start(
        self, name: str, resource_name: str, namespace: str, resource_type: str
    ) -> Optional[Any]:
        """A create or replace of child ``resource_type``/``resource_name`` begins."""

    def on_resource_sync_complete(
        self,
        name: str,
        resource_name: str,
        namespace: str,
        resource_type: str,
        state: Optional[Any],
        operation: str,
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        pass

    def on_resource_drift_detected(
        self,
        name: str,
        resource_name: str,
        namespace: str,
        resource_type: str,
        drift_fields: List[str],
    ) -> None:
        """A live child differed from its desired state in ``drift_fields``."""

    # Status

    def on_status_update(self, name: str, namespace: str, update_fields: List[str]) -> None:
        pass
