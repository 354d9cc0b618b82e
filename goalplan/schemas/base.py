from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, SerializationInfo, SerializerFunctionWrapHandler, model_serializer
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base for records that cross the persistence/UI boundary.

    Attributes are snake_case in Python and camelCase on the wire. Unknown
    fields are kept so a load/save cycle never drops data; declared optional
    fields that are unset (``None``) are left out, unknown ones never are.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    @model_serializer(mode="wrap")
    def omit_unset_fields(self, handler: SerializerFunctionWrapHandler, info: SerializationInfo) -> Dict[str, Any]:
        data = handler(self)
        for name, field in type(self).model_fields.items():
            key = (field.serialization_alias or field.alias or name) if info.by_alias else name
            if key in data and data[key] is None:
                del data[key]
        return data

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
