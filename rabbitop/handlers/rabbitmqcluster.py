import asyncio
import kopf
from collections import defaultdict
from logging import Logger
from typing import Dict, Optional
from kubernetes_asyncio.client import ApiException, V1StatefulSet
from marshmallow import ValidationError
from rabbitop.admin import ClusterAdmin, PodExecCommandRunner
from rabbitop.admin.diagnostics import set_log_level_command
from rabbitop.common.models.labels import Labels
from rabbitop.resources import ClusterReconciler, KubeApi, RabbitmqCluster
from rabbitop.sensors import OperatorSensor
from rabbitop.types.models import RabbitmqClusterResources, RabbitmqClusterSpec
from rabbitop.types.schemas import RabbitmqClusterSpecSchema
from rabbitop.types.settings import Settings
from rabbitop.utils.errors import ConflictError, ConstructionError, convert_api_exception
from rabbitop.utils.helpers import upsert_condition

CLUSTER_KIND = RabbitmqCluster.KIND
CLUSTER_GROUP = RabbitmqCluster.GROUP_NAME

LOG_LEVEL_ANNOTATION = Labels.RABBITOP_DOMAIN + "log-level"

RECONCILE_SUCCESS = "ReconcileSuccess"
ALL_REPLICAS_READY = "AllReplicasReady"

# Serializes passes over the same instance; keyed by namespace/name
reconciliation_locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)


def lock_key(name: str, namespace: str) -> str:
    return f"{namespace}/{name}"


def cluster_admin(namespace: str, pod_name: str) -> ClusterAdmin:
    """Admin client for one broker pod."""
    return ClusterAdmin(PodExecCommandRunner(namespace, pod_name))


def on_error(error, meta, status, patch, **_):
    """Record a failed pass on the status."""
    gen = meta.get("generation", 0)
    conds = (status or {}).get("conditions", [])
    conds = upsert_condition(
        conds,
        {
            "type": RECONCILE_SUCCESS,
            "status": "False",
            "reason": error.__class__.__name__ if error else "Error",
            "message": str(error) if error else "Reconcile failed; see events/logs",
            "observedGeneration": gen,
        },
    )
    patch.status["conditions"] = conds


def load_cluster(
    name, namespace, spec, body, labels, annotations, memo: kopf.Memo, logger: Logger
) -> RabbitmqCluster:
    try:
        spec_model: RabbitmqClusterSpec = RabbitmqClusterSpecSchema().load(dict(spec))
    except ValidationError as e:
        raise kopf.PermanentError(f"Invalid RabbitmqCluster spec: {e.messages}")
    return RabbitmqCluster.from_spec(
        name,
        namespace,
        spec_model,
        body=body,
        labels=labels,
        annotations=annotations,
        logger=logger,
        conf=memo.get("conf"),
    )


def rollout_complete(sts: Optional[V1StatefulSet], replicas: int) -> bool:
    """True once every replica runs the current revision and is ready."""
    if sts is None or sts.status is None:
        return False
    status = sts.status
    if (status.observed_generation or 0) < (sts.metadata.generation or 0):
        return False
    if (status.ready_replicas or 0) != replicas:
        return False
    if (status.updated_replicas or 0) != replicas:
        return False
    return status.current_revision == status.update_revision


async def enable_feature_flags(
    cluster: RabbitmqCluster, status, patch, logger: Logger
) -> None:
    """Enable all feature flags once per image, after it has rolled out."""
    if (status or {}).get("featureFlagsImage") == cluster.image:
        return
    pod_name = RabbitmqClusterResources.pod_name(cluster.name, 0)
    try:
        outcome = await cluster_admin(cluster.namespace, pod_name).enable_all_feature_flags()
    except ApiException as ex:
        logger.warning(f"Could not enable feature flags on {pod_name}: {ex.reason}")
        return
    if not outcome.ok:
        logger.warning(
            f"Enabling feature flags on {pod_name} failed with exit code {outcome.exit_code}: {outcome.output}"
        )
        return
    patch.status["featureFlagsImage"] = cluster.image
    logger.info(f"Enabled all feature flags for image {cluster.image}")


async def update_status(
    cluster: RabbitmqCluster, meta, status, patch, memo: kopf.Memo, logger: Logger
):
    """Report the pass result and replica readiness on the RabbitmqCluster."""
    kube: KubeApi = memo.kube
    conf: Settings = memo.get("conf") or cluster.conf
    gen = meta.get("generation", 0)
    conds = (status or {}).get("conditions", [])
    conds = upsert_condition(
        conds,
        {
            "type": RECONCILE_SUCCESS,
            "status": "True",
            "reason": "Success",
            "message": "Child resources are in their desired state",
            "observedGeneration": gen,
        },
    )

    sts = await kube.fetch_stateful_set(cluster.stateful_set_name, cluster.namespace)
    ready = rollout_complete(sts, cluster.replicas)
    ready_replicas = (sts.status.ready_replicas or 0) if sts and sts.status else 0
    conds = upsert_condition(
        conds,
        {
            "type": ALL_REPLICAS_READY,
            "status": "True" if ready else "False",
            "reason": "AllPodsAreReady" if ready else "NotAllPodsReady",
            "message": f"{ready_replicas}/{cluster.replicas} replicas ready",
            "observedGeneration": gen,
        },
    )
    patch.status["observedGeneration"] = gen
    patch.status["conditions"] = conds

    if ready and cluster.replicas > 0 and conf.feature_flags_auto_enable:
        await enable_feature_flags(cluster, status, patch, logger)

    sensor: OperatorSensor = memo.get("sensor")
    if sensor:
        sensor.on_status_update(cluster.name, cluster.namespace, list(patch.status.keys()))


async def reconcile(
    name,
    namespace,
    spec,
    meta,
    status,
    body,
    labels,
    annotations,
    patch,
    memo: kopf.Memo,
    logger: Logger,
    trigger_source: str,
    **kwargs,
):
    """Run one reconcile pass for a RabbitmqCluster and update its status."""
    cluster = load_cluster(name, namespace, spec, body, labels, annotations, memo, logger)
    conf: Settings = cluster.conf
    sensor: OperatorSensor = memo.get("sensor") or OperatorSensor()
    reconciler = ClusterReconciler(
        memo.kube,
        sensor=sensor,
        conflict_retry_limit=conf.conflict_retry_limit,
        retry_delay=conf.retry_delay_seconds,
    )

    sensor_state = sensor.on_reconcile_start(
        name, namespace, meta.get("generation", 0), trigger_source
    )
    success, error = True, None
    try:
        async with reconciliation_locks[lock_key(name, namespace)]:
            results = await reconciler.reconcile(cluster)
            await update_status(cluster, meta, status, patch, memo, logger)
    except (ConstructionError, ConflictError) as e:
        success, error = False, e
        logger.error(f"Failed to reconcile {name}: {e}")
        on_error(e, meta, status, patch)
        raise kopf.TemporaryError(str(e), delay=conf.retry_delay_seconds) from e
    except ApiException as e:
        success, error = False, e
        on_error(e, meta, status, patch)
        convert_api_exception(e, delay=conf.retry_delay_seconds)
    except kopf.TemporaryError as e:
        success, error = False, e
        on_error(e, meta, status, patch)
        raise
    finally:
        sensor.on_reconcile_complete(name, namespace, sensor_state, success, error)

    changed = [f"{r.kind}/{r.name}" for r in results if r.operation != "none"]
    if changed:
        logger.info(f"Reconciled {name}: {', '.join(changed)}")


@kopf.on.resume(kind=CLUSTER_KIND, group=CLUSTER_GROUP)
@kopf.on.create(kind=CLUSTER_KIND, group=CLUSTER_GROUP)
async def on_create(**kwargs):
    """Creates or re-adopts the children of a RabbitmqCluster."""
    await reconcile(trigger_source="create", **kwargs)


@kopf.on.update(kind=CLUSTER_KIND, group=CLUSTER_GROUP)
async def on_update(**kwargs):
    """Applies spec, label and annotation changes to the children."""
    await reconcile(trigger_source="update", **kwargs)


@kopf.timer(
    kind=CLUSTER_KIND,
    group=CLUSTER_GROUP,
    initial_delay=10.0,
    interval=Settings.periodic_reconcile_interval_seconds,
    idle=10.0,
)
async def periodic_reconciliation(**kwargs):
    """Converges drifted or half-applied children."""
    await reconcile(trigger_source="timer", **kwargs)


@kopf.on.delete(kind=CLUSTER_KIND, group=CLUSTER_GROUP)
async def on_delete(name, namespace, logger: Logger, **kwargs):
    """Children are removed by garbage collection; only drop in-memory state."""
    key = lock_key(name, namespace)
    lock = reconciliation_locks.get(key)
    # A pass still holding the lock keeps it until it finishes
    if lock is not None and not lock.locked():
        del reconciliation_locks[key]
    logger.info(f"RabbitmqCluster {name} deleted; children are garbage collected")


@kopf.on.field(
    kind=CLUSTER_KIND,
    group=CLUSTER_GROUP,
    field="metadata.annotations",
    annotations={LOG_LEVEL_ANNOTATION: kopf.PRESENT},
)
async def on_log_level_requested(
    name, namespace, body, annotations, patch, memo: kopf.Memo, logger: Logger, **kwargs
):
    """Set the broker log level on every pod, then remove the request annotation."""
    level = (annotations or {}).get(LOG_LEVEL_ANNOTATION)
    try:
        set_log_level_command(level)
        selector = Labels.generate_selector_labels(name).as_str()
        pods = await memo.kube.list_pods(namespace, selector)
        failed = []
        for pod in pods.items:
            outcome = await cluster_admin(namespace, pod.metadata.name).set_log_level(level)
            if not outcome.ok:
                failed.append(f"{pod.metadata.name} (exit code {outcome.exit_code})")
        if failed:
            kopf.event(
                body,
                type="Warning",
                reason="LogLevelChangeFailed",
                message=f"Could not set log level {level} on: {', '.join(failed)}",
            )
        else:
            kopf.event(
                body,
                type="Normal",
                reason="LogLevelChanged",
                message=f"Log level set to {level} on {len(pods.items)} pods",
            )
    except (ValueError, ApiException) as e:
        kopf.event(
            body,
            type="Warning",
            reason="LogLevelChangeFailed",
            message=f"Log level change failed for '{name}' in '{namespace}' namespace: {e}",
        )
    finally:
        patch.metadata.annotations[LOG_LEVEL_ANNOTATION] = None
        logger.info(f"Removed {LOG_LEVEL_ANNOTATION} annotation from {name}")
