from types import SimpleNamespace
from typing import Any, Dict
from marshmallow import INCLUDE, Schema, post_load

JSON = Dict[str, Any]


class BaseModel(SimpleNamespace):
    """Attribute bag built from a loaded spec section."""

    def as_dict(self) -> JSON:
        return {
            key: value.as_dict() if isinstance(value, BaseModel) else value
            for key, value in vars(self).items()
        }


class BaseSchema(Schema):
    """Loads a camelCase spec section into ``__model__``.

    Unknown keys are kept so fields added to the CRD later do not break
    older operators.
    """

    __model__: Any = BaseModel

    class Meta:
        unknown = INCLUDE
        ordered = True

    @post_load
    def make_object(self, data: JSON, **kwargs: Any) -> BaseModel:
        return self.__model__(**data)
