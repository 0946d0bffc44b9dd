import kopf
import logging
import rabbitop.handlers.rabbitmqcluster as rabbitmqcluster
import rabbitop.handlers.probes as probes
from rabbitop.types.settings import Settings
from rabbitop.resources import KubeApi, RabbitmqCluster
from rabbitop.sensors import init_metrics_server, SensorDelegate, PrometheusMonitor
from kubernetes_asyncio import config
from kubernetes_asyncio.client.api_client import ApiClient


# Configure Kopf settings
@kopf.on.startup()
async def setup(
    settings: kopf.OperatorSettings, memo: kopf.Memo, logger: logging.Logger, **kwargs
):
    # In-cluster config for production, local kubeconfig for development
    try:
        config.load_incluster_config()
        logger.info("Loaded in-cluster Kubernetes configuration")
    except config.ConfigException:
        logger.info("In-cluster config not found, trying local kubeconfig")
        try:
            await config.load_kube_config()
            logger.info("Loaded local Kubernetes configuration")
        except config.ConfigException as e:
            logger.error(f"Failed to load Kubernetes configuration: {e}")
            raise

    memo.conf = Settings()
    RabbitmqCluster.conf = memo.conf

    # One ApiClient shared by every reconcile pass
    memo.api_client = ApiClient()
    memo.kube = KubeApi(memo.api_client)
    logger.info("Shared Kubernetes API client initialized")

    sensor_delegate = SensorDelegate()
    sensor_delegate.add(PrometheusMonitor())
    memo.sensor = sensor_delegate
    logger.info("Sensor infrastructure initialized with PrometheusMonitor")

    try:
        init_metrics_server()
    except OSError as e:
        # Operator keeps running without metrics
        logger.error(f"Failed to start metrics server: {e}")
        logger.warning("Continuing without metrics server")

    if not memo.conf.feature_flags_auto_enable:
        logger.warning(
            "Automatic feature flag enablement is disabled. "
            "Feature flags must be enabled manually after upgrades."
        )

    # Limit the number of concurrent workers to prevent flooding the API
    settings.batching.worker_limit = memo.conf.worker_limit

    # Post only warnings and above as Kubernetes events
    settings.posting.enabled = True
    settings.posting.level = logging.WARNING


@kopf.on.cleanup()
async def cleanup(memo: kopf.Memo, logger: logging.Logger, **kwargs):
    """Cleanup handler for operator shutdown."""
    logger.info("Shutting down operator...")

    api_client = memo.get("api_client")
    if api_client:
        await api_client.close()
        logger.info("Shared API client closed")

    logger.info("Operator shutdown complete")


__all__ = [
    "probes",
    "rabbitmqcluster",
]
