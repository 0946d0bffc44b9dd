from typing import Dict, Optional
from rabbitop.types.base import BaseModel


class ResourceRequirements(BaseModel):
    """Compute resources requested for the rabbitmq container."""

    requests: Optional[Dict[str, str]]
    limits: Optional[Dict[str, str]]
