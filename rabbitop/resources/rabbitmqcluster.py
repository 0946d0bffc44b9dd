import logging
from logging import Logger
from typing import Any, Dict, List, Mapping, Optional

from kubernetes_asyncio.client import V1OwnerReference

from rabbitop.common.models.labels import Labels
from rabbitop.resources.builders import (
    ClientServiceBuilder,
    HeadlessServiceBuilder,
    RoleBindingBuilder,
    RoleBuilder,
    ServerConfigMapBuilder,
    ServiceAccountBuilder,
    StatefulSetBuilder,
)
from rabbitop.resources.builders.base import ResourceBuilder, build_controller_reference
from rabbitop.types.models.rabbitmqcluster_resources import RabbitmqClusterResources
from rabbitop.types.models.rabbitmqcluster_spec import RabbitmqClusterSpec
from rabbitop.types.settings import Settings
from rabbitop.utils.helpers import compute_hash
from rabbitop.utils.objects import cached_property

RABBITMQ_CONF = """\
cluster_formation.peer_discovery_backend = rabbit_peer_discovery_k8s
cluster_formation.k8s.host = kubernetes.default
cluster_formation.k8s.address_type = hostname
cluster_formation.node_cleanup.interval = 30
cluster_formation.node_cleanup.only_log_warning = true
cluster_partition_handling = pause_minority
queue_master_locator = min-masters
"""

RABBITMQ_TLS_CONF = """\
ssl_options.certfile = {tls_dir}tls.crt
ssl_options.keyfile = {tls_dir}tls.key
listeners.ssl.default = {amqps_port}
"""

ENABLED_PLUGINS = [
    "rabbitmq_peer_discovery_k8s",
    "rabbitmq_prometheus",
    "rabbitmq_management",
]


class RabbitmqCluster:
    """RabbitmqCluster kubernetes resource.

    Holds the desired state of one instance for a single reconcile pass and
    hands out a builder for each child object.
    """

    logger: Logger
    conf: Settings = Settings()

    KIND = "RabbitmqCluster"
    GROUP_NAME = "rabbitmq.com"
    GROUP_VERSION = "v1beta1"
    PLURAL_NAME = "rabbitmqclusters"
    OPERATOR_NAME = "rabbitop"

    RABBITMQ_CONTAINER_NAME = "rabbitmq"
    INIT_CONTAINER_NAME = "setup-container"
    PERSISTENCE_VOLUME_NAME = "persistence"
    CONFIG_HASH_ANNOTATION = Labels.RABBITOP_DOMAIN + "config-hash"
    TLS_DIR = "/etc/rabbitmq-tls/"

    EPMD_PORT = 4369
    AMQP_PORT = 5672
    AMQPS_PORT = 5671
    MANAGEMENT_PORT = 15672
    PROMETHEUS_PORT = 15692

    name: str
    namespace: str
    replicas: int
    image: str
    image_pull_secret: Optional[str]
    requests: Dict[str, str]
    limits: Dict[str, str]
    storage: str
    storage_class_name: Optional[str]
    tls_secret_name: Optional[str]
    affinity: Optional[Dict[str, Any]]
    tolerations: Optional[List[Dict[str, Any]]]
    service_type: str
    service_annotations: Dict[str, str]

    # CR metadata
    body: Optional[Mapping] = None
    labels: Dict[str, str] = None
    annotations: Dict[str, str] = None

    def __init__(self, name: str, namespace: str) -> None:
        self.name = name
        self.namespace = namespace
        self.stateful_set_name = RabbitmqClusterResources.stateful_set_name(name)
        self.service_account_name = RabbitmqClusterResources.service_account_name(name)
        self.role_name = RabbitmqClusterResources.role_name(name)
        self.role_binding_name = RabbitmqClusterResources.role_binding_name(name)
        self.client_service_name = RabbitmqClusterResources.client_service_name(name)
        self.headless_service_name = RabbitmqClusterResources.headless_service_name(name)
        self.server_config_name = RabbitmqClusterResources.server_config_name(name)
        self.admin_secret_name = RabbitmqClusterResources.admin_secret_name(name)
        self.erlang_cookie_secret_name = (
            RabbitmqClusterResources.erlang_cookie_secret_name(name)
        )

    @classmethod
    def from_spec(
        cls,
        name: str,
        namespace: str,
        spec: RabbitmqClusterSpec,
        body: Optional[Mapping] = None,
        labels: Optional[Mapping[str, str]] = None,
        annotations: Optional[Mapping[str, str]] = None,
        logger: Logger = None,
        conf: Settings = None,
    ) -> "RabbitmqCluster":
        cluster = RabbitmqCluster(name, namespace)
        cluster.logger = logger or logging.getLogger(__name__)
        if conf is not None:
            cluster.conf = conf
        cluster.body = body
        cluster.labels = dict(labels or {})
        cluster.annotations = dict(annotations or {})
        cluster.replicas = spec.replicas if spec.replicas is not None else 1
        cluster.image = spec.image or cluster.conf.default_image
        cluster.image_pull_secret = spec.image_pull_secret
        cluster.requests = dict(spec.resources.requests or {})
        cluster.limits = dict(spec.resources.limits or {})
        cluster.storage = spec.persistence.storage or cluster.conf.default_storage_size
        cluster.storage_class_name = spec.persistence.storage_class_name
        cluster.tls_secret_name = spec.tls.secret_name if spec.tls else None
        cluster.affinity = spec.affinity
        cluster.tolerations = spec.tolerations
        cluster.service_type = spec.service.type
        cluster.service_annotations = dict(spec.service.annotations or {})
        return cluster

    @property
    def tls_enabled(self) -> bool:
        return bool(self.tls_secret_name)

    @cached_property
    def owner_reference(self) -> V1OwnerReference:
        """Controller reference every child carries; raises ConstructionError without a uid."""
        return build_controller_reference(self.body or {})

    @cached_property
    def operator_labels(self) -> Dict[str, str]:
        return Labels.generate_default_labels(self.name, self.OPERATOR_NAME).as_dict()

    @cached_property
    def selector_labels(self) -> Dict[str, str]:
        return Labels.generate_selector_labels(self.name).as_dict()

    @cached_property
    def server_config_data(self) -> Dict[str, str]:
        """Rendered contents of the server ConfigMap."""
        conf = RABBITMQ_CONF
        if self.tls_enabled:
            conf += RABBITMQ_TLS_CONF.format(
                tls_dir=self.TLS_DIR, amqps_port=self.AMQPS_PORT
            )
        return {
            "enabled_plugins": f"[{','.join(ENABLED_PLUGINS)}].",
            "rabbitmq.conf": conf,
        }

    @cached_property
    def config_hash(self) -> str:
        return compute_hash(self.server_config_data)

    def builders(self) -> List[ResourceBuilder]:
        """Builders for every child, in the order they are reconciled.

        Identity objects come first so the workload never starts without
        its service account or configuration.
        """
        return [
            ServiceAccountBuilder(self),
            RoleBuilder(self),
            RoleBindingBuilder(self),
            ServerConfigMapBuilder(self),
            HeadlessServiceBuilder(self),
            ClientServiceBuilder(self),
            StatefulSetBuilder(self),
        ]
