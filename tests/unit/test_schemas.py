"""Unit tests for RabbitmqCluster spec loading."""

import pytest
from marshmallow import ValidationError
from rabbitop.types.models import RabbitmqClusterResources, RabbitmqClusterSpec
from rabbitop.types.schemas import RabbitmqClusterSpecSchema


def test_defaults():
    spec = RabbitmqClusterSpecSchema().load({})
    assert isinstance(spec, RabbitmqClusterSpec)
    assert spec.replicas == 1
    assert spec.image is None
    assert spec.resources.requests == {"cpu": "1", "memory": "2Gi"}
    assert spec.resources.limits == {"cpu": "1", "memory": "2Gi"}
    assert spec.persistence.storage is None
    assert spec.service.type == "ClusterIP"
    assert spec.service.annotations == {}
    assert spec.tls is None


def test_full_spec():
    spec = RabbitmqClusterSpecSchema().load(
        {
            "replicas": 3,
            "image": "broker:3.8.9",
            "imagePullSecret": "registry",
            "resources": {"requests": {"memory": "1Gi"}, "limits": {"memory": "1Gi"}},
            "persistence": {"storageClassName": "fast", "storage": "20Gi"},
            "service": {"type": "LoadBalancer", "annotations": {"a": "b"}},
            "tls": {"secretName": "my-tls"},
            "tolerations": [{"key": "dedicated", "operator": "Exists"}],
        }
    )
    assert spec.replicas == 3
    assert spec.image_pull_secret == "registry"
    assert spec.resources.requests == {"memory": "1Gi"}
    assert spec.persistence.storage_class_name == "fast"
    assert spec.persistence.storage == "20Gi"
    assert spec.service.type == "LoadBalancer"
    assert spec.tls.secret_name == "my-tls"
    assert spec.tolerations[0]["key"] == "dedicated"


@pytest.mark.parametrize(
    "data",
    [
        {"replicas": -1},
        {"service": {"type": "ExternalName"}},
        {"tls": {}},
    ],
)
def test_invalid_spec(data):
    with pytest.raises(ValidationError):
        RabbitmqClusterSpecSchema().load(data)


def test_integer_quantities_are_loaded_as_strings():
    spec = RabbitmqClusterSpecSchema().load(
        {"resources": {"limits": {"cpu": 2, "memory": "2Gi"}}}
    )
    assert spec.resources.limits == {"cpu": "2", "memory": "2Gi"}


def test_non_scalar_quantity_is_rejected():
    with pytest.raises(ValidationError):
        RabbitmqClusterSpecSchema().load({"resources": {"limits": {"cpu": [2]}}})


def test_partial_resources_get_no_defaults():
    spec = RabbitmqClusterSpecSchema().load({"resources": {"requests": {"memory": "4Gi"}}})
    assert spec.resources.requests == {"memory": "4Gi"}
    assert spec.resources.limits is None


def test_child_names():
    assert RabbitmqClusterResources.stateful_set_name("my-cluster") == "my-cluster-server"
    assert RabbitmqClusterResources.client_service_name("my-cluster") == "my-cluster-client"
    assert RabbitmqClusterResources.headless_service_name("my-cluster") == "my-cluster-headless"
    assert RabbitmqClusterResources.server_config_name("my-cluster") == "my-cluster-server-conf"
    assert RabbitmqClusterResources.admin_secret_name("my-cluster") == "my-cluster-admin"
    assert RabbitmqClusterResources.pod_name("my-cluster", 0) == "my-cluster-server-0"


def test_model_as_dict():
    spec = RabbitmqClusterSpecSchema().load({"service": {"type": "NodePort"}})
    assert spec.service.as_dict() == {"type": "NodePort", "annotations": {}}
    assert spec.as_dict()["resources"]["limits"] == {"cpu": "1", "memory": "2Gi"}


def test_unknown_fields_are_kept():
    spec = RabbitmqClusterSpecSchema().load({"override": {"statefulSet": {}}})
    assert spec.override == {"statefulSet": {}}
