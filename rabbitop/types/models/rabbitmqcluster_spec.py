from typing import Any, Dict, List, Optional
from rabbitop.types.base import BaseModel
from rabbitop.types.models.resource_requirements import ResourceRequirements
from rabbitop.types.models.persistence import RabbitmqClusterPersistence
from rabbitop.types.models.tls import RabbitmqClusterTls
from rabbitop.types.models.service_template import RabbitmqClusterService


class RabbitmqClusterSpec(BaseModel):
    """RabbitmqCluster CRD spec"""

    replicas: int
    image: Optional[str]
    image_pull_secret: Optional[str]
    resources: ResourceRequirements
    persistence: RabbitmqClusterPersistence
    tls: Optional[RabbitmqClusterTls]
    affinity: Optional[Dict[str, Any]]
    tolerations: Optional[List[Dict[str, Any]]]
    service: RabbitmqClusterService
