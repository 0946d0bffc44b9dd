from marshmallow import fields
from rabbitop.types.base import BaseSchema
from rabbitop.types.models.persistence import RabbitmqClusterPersistence


class RabbitmqClusterPersistenceSchema(BaseSchema):
    """Persistent storage requested for each replica."""

    __model__ = RabbitmqClusterPersistence

    storage_class_name = fields.Str(
        data_key="storageClassName", allow_none=True, load_default=None
    )
    storage = fields.Str(data_key="storage", allow_none=True, load_default=None)
