from marshmallow import fields, validate
from rabbitop.types.base import BaseSchema
from rabbitop.types.models.rabbitmqcluster_spec import RabbitmqClusterSpec
from rabbitop.types.schemas.resource_requirements import (
    ResourceRequirementsSchema,
    default_resources,
)
from rabbitop.types.schemas.persistence import RabbitmqClusterPersistenceSchema
from rabbitop.types.schemas.tls import RabbitmqClusterTlsSchema
from rabbitop.types.schemas.service_template import RabbitmqClusterServiceSchema


class RabbitmqClusterSpecSchema(BaseSchema):
    __model__ = RabbitmqClusterSpec

    replicas = fields.Int(
        data_key="replicas", load_default=1, validate=validate.Range(min=0)
    )
    image = fields.Str(data_key="image", allow_none=True, load_default=None)
    image_pull_secret = fields.Str(
        data_key="imagePullSecret", allow_none=True, load_default=None
    )
    resources = fields.Nested(
        ResourceRequirementsSchema(),
        data_key="resources",
        load_default=lambda: ResourceRequirementsSchema().load(default_resources()),
    )
    persistence = fields.Nested(
        RabbitmqClusterPersistenceSchema(),
        data_key="persistence",
        load_default=lambda: RabbitmqClusterPersistenceSchema().load({}),
    )
    tls = fields.Nested(
        RabbitmqClusterTlsSchema(), data_key="tls", allow_none=True, load_default=None
    )
    affinity = fields.Dict(data_key="affinity", allow_none=True, load_default=None)
    tolerations = fields.List(
        fields.Dict(), data_key="tolerations", allow_none=True, load_default=None
    )
    service = fields.Nested(
        RabbitmqClusterServiceSchema(),
        data_key="service",
        load_default=lambda: RabbitmqClusterServiceSchema().load({}),
    )
