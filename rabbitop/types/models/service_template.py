from typing import Dict, Optional
from rabbitop.types.base import BaseModel


class RabbitmqClusterService(BaseModel):
    """Client service settings"""

    type: str
    annotations: Optional[Dict[str, str]]
