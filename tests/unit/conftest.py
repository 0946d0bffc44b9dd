"""Fixtures shared by the unit tests."""

import copy
from unittest.mock import MagicMock

import pytest
from kubernetes_asyncio.client import V1ObjectMeta, V1Secret
from rabbitop.resources import RabbitmqCluster
from rabbitop.sensors import OperatorSensor
from rabbitop.types.schemas import RabbitmqClusterSpecSchema
from rabbitop.utils.errors import ConflictError

OWNER_UID = "d9607e19-f88f-11e6-a518-42010a800195"


def cluster_body(name="my-cluster", namespace="default", uid=OWNER_UID):
    return {
        "apiVersion": "rabbitmq.com/v1beta1",
        "kind": "RabbitmqCluster",
        "metadata": {"name": name, "namespace": namespace, "uid": uid},
    }


def drop_empty(value):
    """Unset empty list and map fields, as the API server omits them."""
    if isinstance(value, list):
        for item in value:
            drop_empty(item)
    elif hasattr(value, "openapi_types"):
        for attr in value.openapi_types:
            item = getattr(value, attr)
            if isinstance(item, (list, dict)) and not item:
                setattr(value, attr, None)
            else:
                drop_empty(item)
    return value


def stored_copy(obj):
    """What a read returns after ``obj`` was written to the API server."""
    return drop_empty(copy.deepcopy(obj))


class FakeKubeApi:
    """In-memory stand-in for KubeApi.

    Written objects are stored the way the server returns them, and reads
    hand out copies so builders never mutate the stored object.
    ``conflicts`` makes that many replace calls fail with ConflictError.
    """

    def __init__(self, secrets=("my-cluster-admin", "my-cluster-erlang-cookie")):
        self.objects = {}
        self.secrets = set(secrets)
        self.writes = []
        self.conflicts = 0

    def get(self, kind, name, namespace="default"):
        return self.objects.get((kind, namespace, name))

    def put(self, kind, obj, namespace="default"):
        self.objects[(kind, namespace, obj.metadata.name)] = obj

    async def fetch(self, kind, name, namespace):
        return copy.deepcopy(self.get(kind, name, namespace))

    async def create(self, kind, namespace, body):
        if self.get(kind, body.metadata.name, namespace) is not None:
            raise ConflictError(kind, body.metadata.name, "already exists")
        self.writes.append(("create", kind, body.metadata.name))
        self.put(kind, stored_copy(body), namespace)
        return body

    async def replace(self, kind, name, namespace, body):
        if self.conflicts:
            self.conflicts -= 1
            raise ConflictError(kind, name, "modified concurrently")
        self.writes.append(("replace", kind, name))
        self.put(kind, stored_copy(body), namespace)
        return body

    async def fetch_secret(self, name, namespace):
        if name not in self.secrets:
            return None
        return V1Secret(metadata=V1ObjectMeta(name=name, namespace=namespace))

    async def fetch_stateful_set(self, name, namespace):
        return await self.fetch("StatefulSet", name, namespace)


@pytest.fixture
def kube():
    return FakeKubeApi()


@pytest.fixture
def sensor():
    return MagicMock(spec=OperatorSensor)


@pytest.fixture
def make_cluster():
    """Factory for RabbitmqCluster models loaded the way the handlers load them."""

    def factory(
        spec=None,
        name="my-cluster",
        namespace="default",
        labels=None,
        annotations=None,
        body=None,
        logger=None,
    ) -> RabbitmqCluster:
        return RabbitmqCluster.from_spec(
            name,
            namespace,
            RabbitmqClusterSpecSchema().load(spec or {}),
            body=body if body is not None else cluster_body(name, namespace),
            labels=labels,
            annotations=annotations,
            logger=logger,
        )

    return factory
