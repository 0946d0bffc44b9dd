from typing import List, NamedTuple, Optional

import kopf

from rabbitop.resources.base import KubeApi
from rabbitop.resources.builders.base import ResourceBuilder
from rabbitop.resources.rabbitmqcluster import RabbitmqCluster
from rabbitop.sensors.base import OperatorSensor
from rabbitop.utils.errors import ConflictError
from rabbitop.utils.helpers import to_api_dict

OPERATION_CREATE = "create"
OPERATION_REPLACE = "replace"
OPERATION_NONE = "none"


class SyncResult(NamedTuple):
    kind: str
    name: str
    operation: str


class ClusterReconciler:
    """Drives every builder of one RabbitmqCluster to convergence.

    For each child the live object is fetched. An absent object is built,
    updated and created; a present one is updated in place and written back
    only when that changed it. Builders run in order and the first failure
    aborts the pass. A write conflict redoes the whole pass from fresh reads,
    at most ``conflict_retry_limit`` times.
    """

    def __init__(
        self,
        kube: KubeApi,
        sensor: Optional[OperatorSensor] = None,
        conflict_retry_limit: int = 3,
        retry_delay: float = 30,
    ) -> None:
        self.kube = kube
        self.sensor = sensor or OperatorSensor()
        self.conflict_retry_limit = conflict_retry_limit
        self.retry_delay = retry_delay

    async def reconcile(self, cluster: RabbitmqCluster) -> List[SyncResult]:
        attempt = 0
        while True:
            try:
                return await self.reconcile_once(cluster)
            except ConflictError as ex:
                attempt += 1
                if attempt > self.conflict_retry_limit:
                    raise
                cluster.logger.info(
                    f"{ex}; redoing reconciliation ({attempt}/{self.conflict_retry_limit})"
                )
                self.sensor.on_reconcile_conflict(cluster.name, cluster.namespace, attempt)

    async def reconcile_once(self, cluster: RabbitmqCluster) -> List[SyncResult]:
        await self.verify_credentials(cluster)
        return [await self.sync(cluster, builder) for builder in cluster.builders()]

    async def verify_credentials(self, cluster: RabbitmqCluster) -> None:
        """The admin and erlang cookie secrets are produced elsewhere; wait for them."""
        for secret_name in (cluster.admin_secret_name, cluster.erlang_cookie_secret_name):
            secret = await self.kube.fetch_secret(secret_name, cluster.namespace)
            if not secret:
                raise kopf.TemporaryError(
                    f"Secret `{secret_name}` not found in `{cluster.namespace}` namespace.",
                    delay=self.retry_delay,
                )

    async def sync(self, cluster: RabbitmqCluster, builder: ResourceBuilder) -> SyncResult:
        existing = await self.kube.fetch(builder.kind, builder.name, cluster.namespace)
        if existing is None:
            obj = builder.build()
            builder.update(obj)
            await self._write(cluster, builder, OPERATION_CREATE, obj)
            cluster.logger.info(f"Created {builder.kind} {builder.name}")
            return SyncResult(builder.kind, builder.name, OPERATION_CREATE)

        before = to_api_dict(existing)
        builder.update(existing)
        after = to_api_dict(existing)
        if after == before:
            return SyncResult(builder.kind, builder.name, OPERATION_NONE)

        self.sensor.on_resource_drift_detected(
            cluster.name,
            builder.name,
            cluster.namespace,
            builder.kind,
            changed_fields(before, after),
        )
        await self._write(cluster, builder, OPERATION_REPLACE, existing)
        cluster.logger.info(f"Updated {builder.kind} {builder.name}")
        return SyncResult(builder.kind, builder.name, OPERATION_REPLACE)

    async def _write(self, cluster: RabbitmqCluster, builder: ResourceBuilder, operation: str, obj) -> None:
        sensor_state = self.sensor.on_resource_sync_start(
            cluster.name, builder.name, cluster.namespace, builder.kind
        )
        success = True
        error = None
        try:
            if operation == OPERATION_CREATE:
                await self.kube.create(builder.kind, cluster.namespace, obj)
            else:
                await self.kube.replace(builder.kind, builder.name, cluster.namespace, obj)
        except Exception as ex:
            success = False
            error = ex
            raise
        finally:
            self.sensor.on_resource_sync_complete(
                cluster.name,
                builder.name,
                cluster.namespace,
                builder.kind,
                sensor_state,
                operation,
                success,
                error,
            )


def changed_fields(before: dict, after: dict, prefix: str = "") -> List[str]:
    """Dotted paths of the top two levels that differ between two objects."""
    fields = []
    for key in sorted(set(before) | set(after)):
        old, new = before.get(key), after.get(key)
        if old == new:
            continue
        path = f"{prefix}{key}"
        if not prefix and isinstance(old, dict) and isinstance(new, dict):
            fields.extend(changed_fields(old, new, prefix=f"{path}."))
        else:
            fields.append(path)
    return fields
