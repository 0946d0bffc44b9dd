"""Merging of operator-managed labels and annotations into live objects.

Keys the operator sets always carry the desired value, keys nobody asked the
operator to manage are left alone, and keys the operator applied on an
earlier pass but no longer wants are removed. Which user supplied keys were
applied is recorded on the object itself so a later pass can tell them
apart from keys written by other controllers.
"""

from typing import Dict, Iterable, Mapping, Optional, Set

from rabbitop.common.models.labels import ResourceLabels

MANAGED_LABELS_ANNOTATION = ResourceLabels.RABBITOP_DOMAIN + "managed-labels"
MANAGED_ANNOTATIONS_ANNOTATION = ResourceLabels.RABBITOP_DOMAIN + "managed-annotations"

RESERVED_DOMAINS = ("kubernetes.io", "k8s.io")

# Keys written by the operator itself or by kopf on the RabbitmqCluster
OPERATOR_DOMAINS = ("rabbitop.io", "kopf.zalando.org")


def _in_domains(key: str, domains) -> bool:
    if "/" not in key:
        return False
    prefix = key.split("/", 1)[0]
    return any(prefix == domain or prefix.endswith("." + domain) for domain in domains)


def is_reserved_key(key: str) -> bool:
    """True for keys under kubernetes.io/, k8s.io/ and their subdomains."""
    return _in_domains(key, RESERVED_DOMAINS)


def filter_reserved(values: Optional[Mapping[str, str]]) -> Dict[str, str]:
    """Drop keys that must never be copied off the CR onto its children.

    These are Kubernetes-reserved keys and the bookkeeping keys of the
    operator and of kopf.
    """
    return {
        k: v
        for k, v in (values or {}).items()
        if not is_reserved_key(k) and not _in_domains(k, OPERATOR_DOMAINS)
    }


def reconcile_metadata(
    existing: Optional[Mapping[str, str]],
    desired: Mapping[str, str],
    managed_keys: Iterable[str],
) -> Dict[str, str]:
    """Merge desired keys into an existing map.

    Keys in ``desired`` overwrite, keys in ``managed_keys`` that are not
    desired are removed and every other existing key is kept.
    """
    merged = dict(existing or {})
    for key in managed_keys:
        if key not in desired:
            merged.pop(key, None)
    merged.update(desired)
    return merged


def decode_keys(value: Optional[str]) -> Set[str]:
    if not value:
        return set()
    return {key for key in value.split(",") if key}


def encode_keys(keys: Iterable[str]) -> str:
    return ",".join(sorted(keys))


class MetadataReconciler:
    """Applies one instance's desired labels and annotations to object metadata.

    Args:
        operator_labels: Labels the operator always owns (app.kubernetes.io/*).
        user_labels: Labels copied from the RabbitmqCluster.
        user_annotations: Annotations copied from the RabbitmqCluster.
        operator_annotations: Annotations the operator always owns
            (for example the config hash on the pod template).
        spec_annotations: Annotations the RabbitmqCluster spec asks for on
            this object. Unlike CR metadata they are applied unfiltered.
    """

    def __init__(
        self,
        operator_labels: Mapping[str, str],
        user_labels: Mapping[str, str] = None,
        user_annotations: Mapping[str, str] = None,
        operator_annotations: Mapping[str, str] = None,
        spec_annotations: Mapping[str, str] = None,
    ) -> None:
        self.operator_labels = dict(operator_labels)
        self.user_labels = {
            k: v for k, v in filter_reserved(user_labels).items()
            if k not in self.operator_labels
        }
        self.operator_annotations = dict(operator_annotations or {})
        user_annotations = {**filter_reserved(user_annotations), **(spec_annotations or {})}
        self.user_annotations = {
            k: v for k, v in user_annotations.items()
            if k not in self.operator_annotations
            and k not in (MANAGED_LABELS_ANNOTATION, MANAGED_ANNOTATIONS_ANNOTATION)
        }

    def desired_labels(self) -> Dict[str, str]:
        return {**self.user_labels, **self.operator_labels}

    def desired_annotations(self) -> Dict[str, str]:
        desired = {**self.user_annotations, **self.operator_annotations}
        if self.user_labels:
            desired[MANAGED_LABELS_ANNOTATION] = encode_keys(self.user_labels)
        if self.user_annotations:
            desired[MANAGED_ANNOTATIONS_ANNOTATION] = encode_keys(self.user_annotations)
        return desired

    def apply(self, metadata) -> None:
        """Reconcile ``metadata`` (a V1ObjectMeta) in place."""
        annotations = metadata.annotations or {}
        previous_labels = decode_keys(annotations.get(MANAGED_LABELS_ANNOTATION))
        previous_annotations = decode_keys(
            annotations.get(MANAGED_ANNOTATIONS_ANNOTATION)
        )

        labels = reconcile_metadata(
            metadata.labels,
            self.desired_labels(),
            previous_labels | set(self.operator_labels),
        )
        annotations = reconcile_metadata(
            annotations,
            self.desired_annotations(),
            previous_annotations
            | set(self.operator_annotations)
            | {MANAGED_LABELS_ANNOTATION, MANAGED_ANNOTATIONS_ANNOTATION},
        )
        if labels or metadata.labels:
            metadata.labels = labels or None
        if annotations or metadata.annotations:
            metadata.annotations = annotations or None
