from typing import List, Optional

from kubernetes_asyncio.client import (
    V1ObjectMeta,
    V1PersistentVolumeClaim,
    V1PersistentVolumeClaimSpec,
    V1VolumeResourceRequirements,
)

from rabbitop.resources.builders.base import set_controller_reference
from rabbitop.resources.builders.child import ChildResourceBuilder
from rabbitop.utils.errors import ConstructionError
from rabbitop.utils.quantity import parse_quantity


class PersistenceClaimTemplateBuilder(ChildResourceBuilder):
    """The one volume claim template of the StatefulSet.

    Claim templates are part of the StatefulSet identity: they are only
    produced by ``build`` and never regenerated, so an existing claim is
    never resized or moved to another storage class.
    """

    kind = "PersistentVolumeClaim"
    ACCESS_MODE = "ReadWriteOnce"

    @property
    def name(self) -> str:
        return self.cluster.PERSISTENCE_VOLUME_NAME

    def validate(self) -> None:
        try:
            parse_quantity(self.cluster.storage)
        except ValueError as ex:
            raise ConstructionError(
                f"Invalid persistence storage {self.cluster.storage!r}: {ex}"
            ) from ex

    def build(self) -> V1PersistentVolumeClaim:
        self.validate()
        reconciler = self.prepare_metadata_reconciler()
        metadata = V1ObjectMeta(
            name=self.name,
            namespace=self.namespace,
            labels=reconciler.desired_labels(),
            annotations=reconciler.desired_annotations() or None,
        )
        set_controller_reference(metadata, self.cluster.owner_reference)
        return V1PersistentVolumeClaim(
            api_version="v1",
            kind=self.kind,
            metadata=metadata,
            spec=V1PersistentVolumeClaimSpec(
                access_modes=[self.ACCESS_MODE],
                resources=V1VolumeResourceRequirements(
                    requests={"storage": self.cluster.storage}
                ),
                storage_class_name=self.cluster.storage_class_name,
            ),
        )

    def update(self, existing: V1PersistentVolumeClaim) -> None:
        """Claim templates are immutable; drift is only reported."""
        for difference in self.detect_drift(existing):
            self.logger.warning(
                f"Persistence of {self.cluster.stateful_set_name} differs from the "
                f"spec ({difference}); existing claims are never resized or reclassed"
            )

    def detect_drift(self, existing: Optional[V1PersistentVolumeClaim]) -> List[str]:
        if existing is None or existing.spec is None:
            return []
        drift = []
        requests = (existing.spec.resources.requests or {}) if existing.spec.resources else {}
        current = requests.get("storage")
        try:
            storage_differs = current is None or parse_quantity(current) != parse_quantity(
                self.cluster.storage
            )
        except ValueError:
            storage_differs = True
        if storage_differs:
            drift.append(f"storage {current} != {self.cluster.storage}")
        if (
            self.cluster.storage_class_name is not None
            and existing.spec.storage_class_name != self.cluster.storage_class_name
        ):
            drift.append(
                f"storageClassName {existing.spec.storage_class_name} != "
                f"{self.cluster.storage_class_name}"
            )
        return drift
