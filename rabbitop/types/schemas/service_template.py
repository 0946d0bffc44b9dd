from marshmallow import fields, validate
from rabbitop.types.base import BaseSchema
from rabbitop.types.models.service_template import RabbitmqClusterService

SERVICE_TYPES = ("ClusterIP", "NodePort", "LoadBalancer")


class RabbitmqClusterServiceSchema(BaseSchema):
    __model__ = RabbitmqClusterService

    type = fields.Str(
        data_key="type",
        load_default="ClusterIP",
        validate=validate.OneOf(SERVICE_TYPES),
    )
    annotations = fields.Dict(
        keys=fields.Str(),
        values=fields.Str(),
        data_key="annotations",
        allow_none=True,
        load_default=dict,
    )
