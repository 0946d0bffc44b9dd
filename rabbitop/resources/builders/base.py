"""Contract shared by all child resource builders."""

from typing import Any, Mapping, Optional, Protocol

import kopf
from kubernetes_asyncio.client import V1ObjectMeta, V1OwnerReference

from rabbitop.utils.errors import ConstructionError


class ResourceBuilder(Protocol):
    """Builds and updates one Kubernetes object of an instance.

    ``build`` returns a skeleton carrying only identity-bearing fields,
    the ones Kubernetes does not allow to change after creation.
    ``update`` (re)applies every mutable field in place and must leave
    anything it does not own untouched. Calling ``update`` twice in a row
    is the same as calling it once.
    """

    kind: str
    name: str

    def build(self) -> Any:
        ...

    def update(self, existing: Any) -> None:
        ...


def build_controller_reference(owner: Mapping) -> V1OwnerReference:
    """Owner reference marking ``owner`` as the controller of a child.

    Raises:
        ConstructionError: if the owner body lacks apiVersion, kind, name or uid
    """
    try:
        ref = kopf.build_owner_reference(owner)
        return V1OwnerReference(
            api_version=ref["apiVersion"],
            kind=ref["kind"],
            name=ref["name"],
            uid=ref["uid"],
            controller=True,
            block_owner_deletion=True,
        )
    except (KeyError, TypeError, ValueError) as ex:
        raise ConstructionError(f"Cannot reference owner: {ex}") from ex


def set_controller_reference(
    metadata: V1ObjectMeta, reference: Optional[V1OwnerReference]
) -> None:
    """Ensure ``metadata`` names ``reference`` as its one controller.

    Leaves an existing reference to the same owner as it is.

    Raises:
        ConstructionError: if there is no owner, or another object already
            controls the child.
    """
    if reference is None or not reference.uid:
        raise ConstructionError(f"Cannot set owner of {metadata.name}: owner has no uid")
    references = list(metadata.owner_references or [])
    for existing in references:
        if existing.controller:
            if existing.uid == reference.uid:
                return
            raise ConstructionError(
                f"{metadata.name} is already controlled by "
                f"{existing.kind} {existing.name} ({existing.uid})"
            )
    references.append(reference)
    metadata.owner_references = references
