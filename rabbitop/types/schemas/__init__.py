from .resource_requirements import ResourceRequirementsSchema
from .persistence import RabbitmqClusterPersistenceSchema
from .tls import RabbitmqClusterTlsSchema
from .service_template import RabbitmqClusterServiceSchema
from .rabbitmqcluster_spec import RabbitmqClusterSpecSchema

__all__ = [
    "ResourceRequirementsSchema",
    "RabbitmqClusterPersistenceSchema",
    "RabbitmqClusterTlsSchema",
    "RabbitmqClusterServiceSchema",
    "RabbitmqClusterSpecSchema",
]
