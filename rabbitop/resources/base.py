from typing import Any, Optional
from kubernetes_asyncio.client import (
    ApiException,
    AppsV1Api,
    CoreV1Api,
    RbacAuthorizationV1Api,
    V1PodList,
    V1Secret,
    V1StatefulSet,
)
from kubernetes_asyncio.client.api_client import ApiClient

from rabbitop.utils.objects import cached_property
from rabbitop.utils.errors import ConflictError, conflict_error, not_found_error


class KubeApi:
    """Kubernetes API access for the reconcile engine.

    Wraps one shared ``ApiClient`` and exposes fetch/create/replace for the
    kinds an instance owns. Reads of missing objects return None and write
    conflicts surface as ``ConflictError``; every other ``ApiException``
    propagates.
    """

    # kind -> (api attribute, method suffix)
    KINDS = {
        "StatefulSet": ("apps_v1_api", "stateful_set"),
        "Service": ("core_v1_api", "service"),
        "ConfigMap": ("core_v1_api", "config_map"),
        "ServiceAccount": ("core_v1_api", "service_account"),
        "Role": ("rbac_v1_api", "role"),
        "RoleBinding": ("rbac_v1_api", "role_binding"),
    }

    def __init__(self, api_client: ApiClient = None) -> None:
        self.api_client = api_client

    @cached_property
    def core_v1_api(self) -> CoreV1Api:
        return CoreV1Api(self.api_client)

    @cached_property
    def apps_v1_api(self) -> AppsV1Api:
        return AppsV1Api(self.api_client)

    @cached_property
    def rbac_v1_api(self) -> RbacAuthorizationV1Api:
        return RbacAuthorizationV1Api(self.api_client)

    def _method(self, verb: str, kind: str):
        try:
            api_name, suffix = self.KINDS[kind]
        except KeyError:
            raise ValueError(f"Unsupported kind: {kind}") from None
        return getattr(getattr(self, api_name), f"{verb}_namespaced_{suffix}")

    async def fetch(self, kind: str, name: str, namespace: str) -> Optional[Any]:
        """Retrieve the latest state of an object, or None if it does not exist."""
        try:
            return await self._method("read", kind)(name=name, namespace=namespace)
        except ApiException as ex:
            if not_found_error(ex):
                return None
            raise

    async def create(self, kind: str, namespace: str, body: Any) -> Any:
        try:
            return await self._method("create", kind)(namespace=namespace, body=body)
        except ApiException as ex:
            if conflict_error(ex):
                raise ConflictError(kind, body.metadata.name, "already exists") from ex
            raise

    async def replace(self, kind: str, name: str, namespace: str, body: Any) -> Any:
        """Write back a fetched-and-updated object.

        The body carries the resourceVersion it was read at, so a concurrent
        change makes the server reject the write.
        """
        try:
            return await self._method("replace", kind)(
                name=name, namespace=namespace, body=body
            )
        except ApiException as ex:
            if conflict_error(ex):
                raise ConflictError(kind, name, "modified concurrently") from ex
            raise

    async def fetch_secret(self, name: str, namespace: str) -> Optional[V1Secret]:
        try:
            return await self.core_v1_api.read_namespaced_secret(
                name=name, namespace=namespace
            )
        except ApiException as ex:
            if not_found_error(ex):
                return None
            raise

    async def fetch_stateful_set(self, name: str, namespace: str) -> Optional[V1StatefulSet]:
        return await self.fetch("StatefulSet", name, namespace)

    async def list_pods(self, namespace: str, label_selector: str) -> V1PodList:
        return await self.core_v1_api.list_namespaced_pod(
            namespace=namespace, label_selector=label_selector
        )
