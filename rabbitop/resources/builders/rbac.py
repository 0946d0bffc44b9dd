"""Permissions the peer discovery plugin needs to find the other nodes."""

from typing import List

from kubernetes_asyncio.client import (
    V1PolicyRule,
    V1Role,
    V1RoleBinding,
    V1RoleRef,
    RbacV1Subject,
)

from rabbitop.resources.builders.child import ChildResourceBuilder

RBAC_API_GROUP = "rbac.authorization.k8s.io"


class RoleBuilder(ChildResourceBuilder):
    kind = "Role"

    @property
    def name(self) -> str:
        return self.cluster.role_name

    def prepare_rules(self) -> List[V1PolicyRule]:
        return [
            V1PolicyRule(api_groups=[""], resources=["endpoints"], verbs=["get"]),
            V1PolicyRule(api_groups=[""], resources=["events"], verbs=["create"]),
        ]

    def build(self) -> V1Role:
        return V1Role(
            api_version=f"{RBAC_API_GROUP}/v1",
            kind=self.kind,
            metadata=self.prepare_metadata(),
        )

    def update(self, existing: V1Role) -> None:
        super().update(existing)
        existing.rules = self.prepare_rules()


class RoleBindingBuilder(ChildResourceBuilder):
    """Binds the instance Role to its ServiceAccount.

    ``roleRef`` cannot change once created, so it is only set by ``build``.
    """

    kind = "RoleBinding"

    @property
    def name(self) -> str:
        return self.cluster.role_binding_name

    def prepare_subjects(self) -> List[RbacV1Subject]:
        return [
            RbacV1Subject(
                kind="ServiceAccount",
                name=self.cluster.service_account_name,
                namespace=self.namespace,
            )
        ]

    def build(self) -> V1RoleBinding:
        return V1RoleBinding(
            api_version=f"{RBAC_API_GROUP}/v1",
            kind=self.kind,
            metadata=self.prepare_metadata(),
            role_ref=V1RoleRef(
                api_group=RBAC_API_GROUP, kind="Role", name=self.cluster.role_name
            ),
        )

    def update(self, existing: V1RoleBinding) -> None:
        super().update(existing)
        existing.subjects = self.prepare_subjects()
