from marshmallow import ValidationError, fields
from rabbitop.types.base import BaseSchema
from rabbitop.types.models.resource_requirements import ResourceRequirements

DEFAULT_CPU = "1"
DEFAULT_MEMORY = "2Gi"


def default_resources():
    """Requests and limits used when the resources section is left out."""
    return {
        "requests": {"cpu": DEFAULT_CPU, "memory": DEFAULT_MEMORY},
        "limits": {"cpu": DEFAULT_CPU, "memory": DEFAULT_MEMORY},
    }


class Quantity(fields.Field):
    """Int-or-string resource quantity, loaded in its string form.

    Malformed strings are let through; builders reject them when parsing.
    """

    def _deserialize(self, value, attr, data, **kwargs):
        if isinstance(value, bool) or not isinstance(value, (str, int, float)):
            raise ValidationError("Not a valid quantity.")
        return str(value)


class ResourceRequirementsSchema(BaseSchema):
    __model__ = ResourceRequirements
    requests = fields.Dict(
        keys=fields.Str(),
        values=Quantity(),
        data_key="requests",
        allow_none=True,
        load_default=None,
    )
    limits = fields.Dict(
        keys=fields.Str(),
        values=Quantity(),
        data_key="limits",
        allow_none=True,
        load_default=None,
    )
