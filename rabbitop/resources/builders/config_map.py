from kubernetes_asyncio.client import V1ConfigMap

from rabbitop.resources.builders.child import ChildResourceBuilder


class ServerConfigMapBuilder(ChildResourceBuilder):
    """rabbitmq.conf and enabled_plugins, mounted read-only into every pod."""

    kind = "ConfigMap"

    @property
    def name(self) -> str:
        return self.cluster.server_config_name

    def build(self) -> V1ConfigMap:
        return V1ConfigMap(
            api_version="v1", kind=self.kind, metadata=self.prepare_metadata()
        )

    def update(self, existing: V1ConfigMap) -> None:
        super().update(existing)
        existing.data = dict(self.cluster.server_config_data)
