from typing import TYPE_CHECKING, Any, Mapping, Optional

from kubernetes_asyncio.client import V1ObjectMeta

from rabbitop.resources.builders.base import set_controller_reference
from rabbitop.resources.metadata import MetadataReconciler

if TYPE_CHECKING:
    from rabbitop.resources.rabbitmqcluster import RabbitmqCluster


class ChildResourceBuilder:
    """Shared plumbing of the per-kind builders.

    Subclasses set ``kind``, implement ``build`` and extend ``update``;
    ``update`` here reconciles labels and annotations and asserts the
    controller reference.
    """

    kind: str = None

    def __init__(self, cluster: "RabbitmqCluster") -> None:
        self.cluster = cluster
        self.logger = cluster.logger

    @property
    def name(self) -> str:
        raise NotImplementedError()

    @property
    def namespace(self) -> str:
        return self.cluster.namespace

    def prepare_metadata(self) -> V1ObjectMeta:
        return V1ObjectMeta(name=self.name, namespace=self.namespace)

    def prepare_spec_annotations(self) -> Optional[Mapping[str, str]]:
        """Annotations the cluster spec asks for on this particular object."""
        return None

    def prepare_metadata_reconciler(
        self, operator_annotations: Optional[Mapping[str, str]] = None
    ) -> MetadataReconciler:
        return MetadataReconciler(
            self.cluster.operator_labels,
            user_labels=self.cluster.labels,
            user_annotations=self.cluster.annotations,
            operator_annotations=operator_annotations,
            spec_annotations=self.prepare_spec_annotations(),
        )

    def build(self) -> Any:
        raise NotImplementedError()

    def update(self, existing: Any) -> None:
        if existing.metadata is None:
            existing.metadata = self.prepare_metadata()
        self.prepare_metadata_reconciler().apply(existing.metadata)
        set_controller_reference(existing.metadata, self.cluster.owner_reference)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.kind}/{self.name}>"
