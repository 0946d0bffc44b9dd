from typing import Optional
from rabbitop.types.base import BaseModel


class RabbitmqClusterPersistence(BaseModel):
    """Persistent storage requested for each replica."""

    storage_class_name: Optional[str]
    storage: Optional[str]
