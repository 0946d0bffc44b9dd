from typing import List, Optional

from kubernetes_asyncio.client import (
    V1Container,
    V1ContainerPort,
    V1ConfigMapVolumeSource,
    V1EmptyDirVolumeSource,
    V1EnvVar,
    V1EnvVarSource,
    V1ExecAction,
    V1KeyToPath,
    V1LabelSelector,
    V1Lifecycle,
    V1LifecycleHandler,
    V1LocalObjectReference,
    V1ObjectFieldSelector,
    V1ObjectMeta,
    V1PodSecurityContext,
    V1PodSpec,
    V1PodTemplateSpec,
    V1Probe,
    V1ResourceRequirements,
    V1SecretVolumeSource,
    V1StatefulSet,
    V1StatefulSetSpec,
    V1Volume,
    V1VolumeMount,
)

from rabbitop.resources.builders.child import ChildResourceBuilder
from rabbitop.resources.builders.storage import PersistenceClaimTemplateBuilder
from rabbitop.safety.prestop import (
    TERMINATION_GRACE_PERIOD_SECONDS,
    pre_stop_command,
    readiness_command,
)
from rabbitop.utils.errors import ConstructionError, ValidationWarning
from rabbitop.utils.quantity import parse_quantity, quantities_equal

RABBITMQ_UID = 999

INIT_CONTAINER_CPU = "100m"
INIT_CONTAINER_MEMORY = "500Mi"

SERVER_CONF_DIR = "/opt/server-conf/"
ADMIN_SECRET_DIR = "/opt/rabbitmq-secret/"
MNESIA_DIR = "/var/lib/rabbitmq/db/"
ETC_DIR = "/etc/rabbitmq/"
COOKIE_DIR = "/var/lib/rabbitmq/"
CONFIG_TMP_DIR = "/tmp/rabbitmq/"
COOKIE_TMP_DIR = "/tmp/erlang-cookie-secret/"

# Defaults the API server would otherwise fill in; set so that a converged
# template compares equal to the one read back.
DEFAULT_MODE = 420
TERMINATION_MESSAGE_PATH = "/dev/termination-log"


def image_pull_policy(image: str) -> str:
    name = image.rsplit("/", 1)[-1]
    if "@" in name:
        return "IfNotPresent"
    if ":" not in name or name.endswith(":latest"):
        return "Always"
    return "IfNotPresent"


class StatefulSetBuilder(ChildResourceBuilder):
    """The broker workload.

    ``build`` fixes the identity of the set: its headless service, its
    selector and its volume claim template. ``update`` re-renders the pod
    template and re-applies replicas; any other field on the live object,
    such as the update strategy or its status, is left as the server has it.
    """

    kind = "StatefulSet"

    @property
    def name(self) -> str:
        return self.cluster.stateful_set_name

    @property
    def claim_template_builder(self) -> PersistenceClaimTemplateBuilder:
        return PersistenceClaimTemplateBuilder(self.cluster)

    def validate(self) -> None:
        """Raise ConstructionError for quantities that cannot be parsed."""
        for section, quantities in (
            ("requests", self.cluster.requests),
            ("limits", self.cluster.limits),
        ):
            for resource, value in quantities.items():
                try:
                    parse_quantity(value)
                except ValueError as ex:
                    raise ConstructionError(
                        f"Invalid {resource} {section} {value!r}: {ex}"
                    ) from ex

    def build(self) -> V1StatefulSet:
        self.validate()
        return V1StatefulSet(
            api_version="apps/v1",
            kind=self.kind,
            metadata=self.prepare_metadata(),
            spec=V1StatefulSetSpec(
                service_name=self.cluster.headless_service_name,
                selector=V1LabelSelector(match_labels=dict(self.cluster.selector_labels)),
                volume_claim_templates=[self.claim_template_builder.build()],
                template=self.prepare_pod_template(),
            ),
        )

    def update(self, existing: V1StatefulSet) -> None:
        self.validate()
        super().update(existing)
        spec: V1StatefulSetSpec = existing.spec
        previous = spec.template
        template = self.prepare_pod_template()

        # Labels and annotations others put on the pod template survive
        template.metadata = V1ObjectMeta(
            labels=previous.metadata.labels if previous and previous.metadata else None,
            annotations=previous.metadata.annotations if previous and previous.metadata else None,
        )
        self.prepare_metadata_reconciler(
            operator_annotations={self.cluster.CONFIG_HASH_ANNOTATION: self.cluster.config_hash}
        ).apply(template.metadata)

        self._keep_equivalent_resources(previous, template)
        spec.template = template
        spec.replicas = self.cluster.replicas

        warning = self.memory_warning(template)
        if warning:
            self.logger.warning(str(warning))
        for claim in spec.volume_claim_templates or []:
            if claim.metadata and claim.metadata.name == self.claim_template_builder.name:
                self.claim_template_builder.update(claim)

    def memory_warning(self, template: V1PodTemplateSpec) -> Optional[ValidationWarning]:
        resources = self.find_container(template, self.cluster.RABBITMQ_CONTAINER_NAME).resources
        request = (resources.requests or {}).get("memory")
        limit = (resources.limits or {}).get("memory")
        if request is None and limit is None:
            return None
        if request is None or limit is None or parse_quantity(request) != parse_quantity(limit):
            return ValidationWarning(
                f'Memory request and limit are not equal for "{self.name}". '
                f"It is recommended that they be set to the same value"
            )
        return None

    @staticmethod
    def find_container(
        template: Optional[V1PodTemplateSpec], name: str, init: bool = False
    ) -> Optional[V1Container]:
        if template is None or template.spec is None:
            return None
        containers = template.spec.init_containers if init else template.spec.containers
        for container in containers or []:
            if container.name == name:
                return container
        return None

    def _keep_equivalent_resources(
        self, previous: Optional[V1PodTemplateSpec], template: V1PodTemplateSpec
    ) -> None:
        """Reuse live resource quantities the server only reformatted ("1000m" vs "1")."""
        for name, init in (
            (self.cluster.RABBITMQ_CONTAINER_NAME, False),
            (self.cluster.INIT_CONTAINER_NAME, True),
        ):
            old = self.find_container(previous, name, init)
            new = self.find_container(template, name, init)
            if old is None or old.resources is None or new is None:
                continue
            if quantities_equal(old.resources.requests, new.resources.requests) and quantities_equal(
                old.resources.limits, new.resources.limits
            ):
                new.resources = old.resources

    def prepare_pod_template(self) -> V1PodTemplateSpec:
        cluster = self.cluster
        return V1PodTemplateSpec(
            metadata=V1ObjectMeta(labels=dict(cluster.operator_labels)),
            spec=V1PodSpec(
                security_context=V1PodSecurityContext(
                    fs_group=RABBITMQ_UID,
                    run_as_group=RABBITMQ_UID,
                    run_as_user=RABBITMQ_UID,
                ),
                service_account_name=cluster.service_account_name,
                termination_grace_period_seconds=TERMINATION_GRACE_PERIOD_SECONDS,
                init_containers=[self.prepare_init_container()],
                containers=[self.prepare_rabbitmq_container()],
                volumes=self.prepare_volumes(),
                image_pull_secrets=self.prepare_image_pull_secrets(),
                affinity=cluster.affinity,
                tolerations=cluster.tolerations,
                restart_policy="Always",
                dns_policy="ClusterFirst",
                scheduler_name="default-scheduler",
            ),
        )

    def prepare_image_pull_secrets(self) -> Optional[List[V1LocalObjectReference]]:
        # Read back as None, never as an empty list
        if not self.cluster.image_pull_secret:
            return None
        return [V1LocalObjectReference(name=self.cluster.image_pull_secret)]

    def prepare_init_container(self) -> V1Container:
        quantities = {"cpu": INIT_CONTAINER_CPU, "memory": INIT_CONTAINER_MEMORY}
        return V1Container(
            name=self.cluster.INIT_CONTAINER_NAME,
            image=self.cluster.image,
            image_pull_policy=image_pull_policy(self.cluster.image),
            command=[
                "sh",
                "-c",
                f"cp {CONFIG_TMP_DIR}rabbitmq.conf {ETC_DIR}rabbitmq.conf "
                f"&& echo '' >> {ETC_DIR}rabbitmq.conf ; "
                f"cp {COOKIE_TMP_DIR}.erlang.cookie {COOKIE_DIR}.erlang.cookie "
                f"&& chown {RABBITMQ_UID}:{RABBITMQ_UID} {COOKIE_DIR}.erlang.cookie "
                f"&& chmod 600 {COOKIE_DIR}.erlang.cookie",
            ],
            resources=V1ResourceRequirements(
                requests=dict(quantities), limits=dict(quantities)
            ),
            volume_mounts=[
                V1VolumeMount(name="server-conf", mount_path=CONFIG_TMP_DIR),
                V1VolumeMount(name="rabbitmq-etc", mount_path=ETC_DIR),
                V1VolumeMount(name="rabbitmq-erlang-cookie", mount_path=COOKIE_DIR),
                V1VolumeMount(name="erlang-cookie-secret", mount_path=COOKIE_TMP_DIR),
            ],
            termination_message_path=TERMINATION_MESSAGE_PATH,
            termination_message_policy="File",
        )

    def prepare_env_vars(self) -> List[V1EnvVar]:
        return [
            V1EnvVar(name="RABBITMQ_ENABLED_PLUGINS_FILE", value=f"{SERVER_CONF_DIR}enabled_plugins"),
            V1EnvVar(name="RABBITMQ_DEFAULT_PASS_FILE", value=f"{ADMIN_SECRET_DIR}password"),
            V1EnvVar(name="RABBITMQ_DEFAULT_USER_FILE", value=f"{ADMIN_SECRET_DIR}username"),
            V1EnvVar(name="RABBITMQ_MNESIA_BASE", value=MNESIA_DIR.rstrip("/")),
            V1EnvVar(
                name="MY_POD_NAME",
                value_from=V1EnvVarSource(
                    field_ref=V1ObjectFieldSelector(field_path="metadata.name", api_version="v1")
                ),
            ),
            V1EnvVar(
                name="MY_POD_NAMESPACE",
                value_from=V1EnvVarSource(
                    field_ref=V1ObjectFieldSelector(field_path="metadata.namespace", api_version="v1")
                ),
            ),
            V1EnvVar(name="K8S_SERVICE_NAME", value=self.cluster.headless_service_name),
            V1EnvVar(name="RABBITMQ_USE_LONGNAME", value="true"),
            V1EnvVar(
                name="RABBITMQ_NODENAME",
                value="rabbit@$(MY_POD_NAME).$(K8S_SERVICE_NAME).$(MY_POD_NAMESPACE).svc.cluster.local",
            ),
            V1EnvVar(
                name="K8S_HOSTNAME_SUFFIX",
                value=".$(K8S_SERVICE_NAME).$(MY_POD_NAMESPACE).svc.cluster.local",
            ),
        ]

    def prepare_container_ports(self) -> List[V1ContainerPort]:
        cluster = self.cluster
        ports = [
            V1ContainerPort(name="epmd", container_port=cluster.EPMD_PORT, protocol="TCP"),
            V1ContainerPort(name="amqp", container_port=cluster.AMQP_PORT, protocol="TCP"),
            V1ContainerPort(name="http", container_port=cluster.MANAGEMENT_PORT, protocol="TCP"),
            V1ContainerPort(name="prometheus", container_port=cluster.PROMETHEUS_PORT, protocol="TCP"),
        ]
        if cluster.tls_enabled:
            ports.append(
                V1ContainerPort(name="amqps", container_port=cluster.AMQPS_PORT, protocol="TCP")
            )
        return ports

    def prepare_volume_mounts(self) -> List[V1VolumeMount]:
        mounts = [
            V1VolumeMount(name="server-conf", mount_path=SERVER_CONF_DIR),
            V1VolumeMount(name="rabbitmq-admin", mount_path=ADMIN_SECRET_DIR),
            V1VolumeMount(name=self.cluster.PERSISTENCE_VOLUME_NAME, mount_path=MNESIA_DIR),
            V1VolumeMount(name="rabbitmq-etc", mount_path=ETC_DIR),
            V1VolumeMount(name="rabbitmq-erlang-cookie", mount_path=COOKIE_DIR),
        ]
        if self.cluster.tls_enabled:
            mounts.append(
                V1VolumeMount(name="rabbitmq-tls", mount_path=self.cluster.TLS_DIR, read_only=True)
            )
        return mounts

    def prepare_resources(self) -> V1ResourceRequirements:
        # A limit without a request is defaulted to the limit by the server
        requests = {**self.cluster.limits, **self.cluster.requests}
        return V1ResourceRequirements(
            requests=requests or None,
            limits=dict(self.cluster.limits) or None,
        )

    def prepare_rabbitmq_container(self) -> V1Container:
        return V1Container(
            name=self.cluster.RABBITMQ_CONTAINER_NAME,
            image=self.cluster.image,
            image_pull_policy=image_pull_policy(self.cluster.image),
            env=self.prepare_env_vars(),
            ports=self.prepare_container_ports(),
            resources=self.prepare_resources(),
            volume_mounts=self.prepare_volume_mounts(),
            readiness_probe=V1Probe(
                _exec=V1ExecAction(command=readiness_command()),
                initial_delay_seconds=10,
                timeout_seconds=5,
                period_seconds=30,
                success_threshold=1,
                failure_threshold=3,
            ),
            lifecycle=V1Lifecycle(
                pre_stop=V1LifecycleHandler(_exec=V1ExecAction(command=pre_stop_command()))
            ),
            termination_message_path=TERMINATION_MESSAGE_PATH,
            termination_message_policy="File",
        )

    def prepare_volumes(self) -> List[V1Volume]:
        cluster = self.cluster
        volumes = [
            V1Volume(
                name="rabbitmq-admin",
                secret=V1SecretVolumeSource(
                    secret_name=cluster.admin_secret_name,
                    items=[
                        V1KeyToPath(key="username", path="username"),
                        V1KeyToPath(key="password", path="password"),
                    ],
                    default_mode=DEFAULT_MODE,
                ),
            ),
            V1Volume(
                name="server-conf",
                config_map=V1ConfigMapVolumeSource(
                    name=cluster.server_config_name, default_mode=DEFAULT_MODE
                ),
            ),
            V1Volume(name="rabbitmq-etc", empty_dir=V1EmptyDirVolumeSource()),
            V1Volume(name="rabbitmq-erlang-cookie", empty_dir=V1EmptyDirVolumeSource()),
            V1Volume(
                name="erlang-cookie-secret",
                secret=V1SecretVolumeSource(
                    secret_name=cluster.erlang_cookie_secret_name, default_mode=DEFAULT_MODE
                ),
            ),
        ]
        if cluster.tls_enabled:
            volumes.append(
                V1Volume(
                    name="rabbitmq-tls",
                    secret=V1SecretVolumeSource(
                        secret_name=cluster.tls_secret_name, default_mode=DEFAULT_MODE
                    ),
                )
            )
        return volumes

