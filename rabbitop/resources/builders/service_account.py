from kubernetes_asyncio.client import V1ServiceAccount

from rabbitop.resources.builders.child import ChildResourceBuilder


class ServiceAccountBuilder(ChildResourceBuilder):
    """Identity the broker pods run as."""

    kind = "ServiceAccount"

    @property
    def name(self) -> str:
        return self.cluster.service_account_name

    def build(self) -> V1ServiceAccount:
        return V1ServiceAccount(
            api_version="v1", kind=self.kind, metadata=self.prepare_metadata()
        )
