"""Unit tests for label and annotation reconciliation."""

from kubernetes_asyncio.client import V1ObjectMeta
from rabbitop.resources.metadata import (
    MANAGED_ANNOTATIONS_ANNOTATION,
    MANAGED_LABELS_ANNOTATION,
    MetadataReconciler,
    filter_reserved,
    is_reserved_key,
    reconcile_metadata,
)

OPERATOR_LABELS = {
    "app.kubernetes.io/name": "my-cluster",
    "app.kubernetes.io/managed-by": "rabbitop",
}


class TestReservedKeys:
    def test_kubernetes_domains_are_reserved(self):
        assert is_reserved_key("kubernetes.io/hostname")
        assert is_reserved_key("app.kubernetes.io/name")
        assert is_reserved_key("kubectl.kubernetes.io/last-applied-configuration")
        assert is_reserved_key("k8s.io/foo")
        assert is_reserved_key("node.k8s.io/bar")

    def test_other_keys_are_not_reserved(self):
        assert not is_reserved_key("team")
        assert not is_reserved_key("example.com/owner")
        assert not is_reserved_key("notkubernetes.io/x")

    def test_filter_drops_reserved_and_operator_keys(self):
        values = {
            "team": "payments",
            "kubectl.kubernetes.io/last-applied-configuration": "{}",
            "kopf.zalando.org/last-handled-configuration": "{}",
            "rabbitop.io/log-level": "debug",
            "example.com/owner": "alice",
        }
        assert filter_reserved(values) == {
            "team": "payments",
            "example.com/owner": "alice",
        }

    def test_filter_none(self):
        assert filter_reserved(None) == {}


class TestReconcileMetadata:
    def test_foreign_keys_are_kept(self):
        merged = reconcile_metadata({"foreign": "x"}, {"a": "1"}, [])
        assert merged == {"foreign": "x", "a": "1"}

    def test_desired_overwrites(self):
        merged = reconcile_metadata({"a": "0"}, {"a": "1"}, ["a"])
        assert merged == {"a": "1"}

    def test_managed_but_undesired_keys_are_removed(self):
        merged = reconcile_metadata({"a": "1", "b": "2"}, {"a": "1"}, ["a", "b"])
        assert merged == {"a": "1"}

    def test_existing_is_not_mutated(self):
        existing = {"a": "1"}
        reconcile_metadata(existing, {"b": "2"}, [])
        assert existing == {"a": "1"}


class TestMetadataReconciler:
    def test_user_labels_never_override_operator_labels(self):
        reconciler = MetadataReconciler(
            OPERATOR_LABELS, user_labels={"app.kubernetes.io/name": "other", "team": "a"}
        )
        labels = reconciler.desired_labels()
        assert labels["app.kubernetes.io/name"] == "my-cluster"
        assert labels["team"] == "a"

    def test_apply_preserves_foreign_annotations(self):
        meta = V1ObjectMeta(
            name="my-cluster-server",
            annotations={"deployment.kubernetes.io/revision": "3", "other/tool": "on"},
        )
        MetadataReconciler(OPERATOR_LABELS, user_annotations={"team": "a"}).apply(meta)
        assert meta.annotations["deployment.kubernetes.io/revision"] == "3"
        assert meta.annotations["other/tool"] == "on"
        assert meta.annotations["team"] == "a"
        assert meta.annotations[MANAGED_ANNOTATIONS_ANNOTATION] == "team"
        assert meta.labels == OPERATOR_LABELS

    def test_removed_user_label_is_dropped_on_next_pass(self):
        meta = V1ObjectMeta(name="my-cluster-server")
        MetadataReconciler(OPERATOR_LABELS, user_labels={"team": "a", "tier": "b"}).apply(meta)
        assert meta.labels["tier"] == "b"
        assert meta.annotations[MANAGED_LABELS_ANNOTATION] == "team,tier"

        meta.labels["someone-else"] = "kept"
        MetadataReconciler(OPERATOR_LABELS, user_labels={"team": "a"}).apply(meta)
        assert "tier" not in meta.labels
        assert meta.labels["someone-else"] == "kept"
        assert meta.annotations[MANAGED_LABELS_ANNOTATION] == "team"

    def test_bookkeeping_removed_when_nothing_user_supplied(self):
        meta = V1ObjectMeta(name="x")
        MetadataReconciler(OPERATOR_LABELS, user_annotations={"team": "a"}).apply(meta)
        MetadataReconciler(OPERATOR_LABELS).apply(meta)
        assert meta.annotations is None

    def test_apply_is_idempotent(self):
        reconciler = MetadataReconciler(
            OPERATOR_LABELS,
            user_labels={"team": "a"},
            user_annotations={"note": "x"},
            operator_annotations={"rabbitop.io/config-hash": "abc"},
        )
        meta = V1ObjectMeta(name="x")
        reconciler.apply(meta)
        first = (dict(meta.labels), dict(meta.annotations))
        reconciler.apply(meta)
        assert (meta.labels, meta.annotations) == first

    def test_spec_annotations_are_applied_unfiltered(self):
        reconciler = MetadataReconciler(
            OPERATOR_LABELS,
            spec_annotations={"service.beta.kubernetes.io/aws-load-balancer-type": "nlb"},
        )
        annotations = reconciler.desired_annotations()
        assert annotations["service.beta.kubernetes.io/aws-load-balancer-type"] == "nlb"
        assert (
            annotations[MANAGED_ANNOTATIONS_ANNOTATION]
            == "service.beta.kubernetes.io/aws-load-balancer-type"
        )
