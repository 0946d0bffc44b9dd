from .base import ResourceBuilder, build_controller_reference, set_controller_reference
from .child import ChildResourceBuilder
from .service_account import ServiceAccountBuilder
from .rbac import RoleBuilder, RoleBindingBuilder
from .config_map import ServerConfigMapBuilder
from .service import ClientServiceBuilder, HeadlessServiceBuilder
from .storage import PersistenceClaimTemplateBuilder
from .statefulset import StatefulSetBuilder

__all__ = [
    "ResourceBuilder",
    "build_controller_reference",
    "set_controller_reference",
    "ChildResourceBuilder",
    "ServiceAccountBuilder",
    "RoleBuilder",
    "RoleBindingBuilder",
    "ServerConfigMapBuilder",
    "ClientServiceBuilder",
    "HeadlessServiceBuilder",
    "PersistenceClaimTemplateBuilder",
    "StatefulSetBuilder",
]
