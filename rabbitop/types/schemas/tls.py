from marshmallow import fields
from rabbitop.types.base import BaseSchema
from rabbitop.types.models.tls import RabbitmqClusterTls


class RabbitmqClusterTlsSchema(BaseSchema):
    __model__ = RabbitmqClusterTls

    secret_name = fields.Str(data_key="secretName", required=True)
