from typing import Dict, List, Optional

from kubernetes_asyncio.client import (
    V1Service,
    V1ServicePort,
    V1ServiceSpec,
)

from rabbitop.resources.builders.child import ChildResourceBuilder


class ClientServiceBuilder(ChildResourceBuilder):
    """Service clients connect through (AMQP, management and metrics)."""

    kind = "Service"

    @property
    def name(self) -> str:
        return self.cluster.client_service_name

    def prepare_ports(self) -> List[V1ServicePort]:
        cluster = self.cluster
        ports = [
            V1ServicePort(name="amqp", port=cluster.AMQP_PORT, target_port=cluster.AMQP_PORT, protocol="TCP"),
            V1ServicePort(name="http", port=cluster.MANAGEMENT_PORT, target_port=cluster.MANAGEMENT_PORT, protocol="TCP"),
            V1ServicePort(name="prometheus", port=cluster.PROMETHEUS_PORT, target_port=cluster.PROMETHEUS_PORT, protocol="TCP"),
        ]
        if cluster.tls_enabled:
            ports.append(
                V1ServicePort(name="amqps", port=cluster.AMQPS_PORT, target_port=cluster.AMQPS_PORT, protocol="TCP")
            )
        return ports

    def build(self) -> V1Service:
        return V1Service(
            api_version="v1",
            kind=self.kind,
            metadata=self.prepare_metadata(),
            spec=V1ServiceSpec(selector=dict(self.cluster.selector_labels)),
        )

    def prepare_spec_annotations(self) -> Dict[str, str]:
        return self.cluster.service_annotations

    def update(self, existing: V1Service) -> None:
        super().update(existing)
        if existing.spec is None:
            existing.spec = V1ServiceSpec()
        node_ports = self._assigned_node_ports(existing.spec)
        ports = self.prepare_ports()
        if self.cluster.service_type in ("NodePort", "LoadBalancer"):
            for port in ports:
                port.node_port = node_ports.get(port.name)
        existing.spec.type = self.cluster.service_type
        existing.spec.ports = ports
        existing.spec.selector = dict(self.cluster.selector_labels)

    @staticmethod
    def _assigned_node_ports(spec: V1ServiceSpec) -> Dict[str, Optional[int]]:
        """Node ports the server already allocated, by port name."""
        return {port.name: port.node_port for port in spec.ports or [] if port.node_port}


class HeadlessServiceBuilder(ChildResourceBuilder):
    """Gives each pod the stable DNS name its node name is derived from."""

    kind = "Service"

    @property
    def name(self) -> str:
        return self.cluster.headless_service_name

    def build(self) -> V1Service:
        return V1Service(
            api_version="v1",
            kind=self.kind,
            metadata=self.prepare_metadata(),
            spec=V1ServiceSpec(
                cluster_ip="None", selector=dict(self.cluster.selector_labels)
            ),
        )

    def update(self, existing: V1Service) -> None:
        super().update(existing)
        if existing.spec is None:
            existing.spec = V1ServiceSpec(cluster_ip="None")
        existing.spec.ports = [
            V1ServicePort(
                name="epmd",
                port=self.cluster.EPMD_PORT,
                target_port=self.cluster.EPMD_PORT,
                protocol="TCP",
            )
        ]
        existing.spec.selector = dict(self.cluster.selector_labels)
        existing.spec.publish_not_ready_addresses = True
