from .resource_requirements import ResourceRequirements
from .persistence import RabbitmqClusterPersistence
from .tls import RabbitmqClusterTls
from .service_template import RabbitmqClusterService
from .rabbitmqcluster_spec import RabbitmqClusterSpec
from .rabbitmqcluster_resources import RabbitmqClusterResources

__all__ = [
    "ResourceRequirements",
    "RabbitmqClusterPersistence",
    "RabbitmqClusterTls",
    "RabbitmqClusterService",
    "RabbitmqClusterSpec",
    "RabbitmqClusterResources",
]
