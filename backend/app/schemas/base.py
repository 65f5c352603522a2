"""Shared pydantic base classes for wire models"""
from pydantic import BaseModel, ConfigDict, computed_field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Serialises snake_case attributes as camelCase JSON keys"""

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class DocumentModel(CamelModel):
    """Wire model for a stored row: ``id`` is also sent as ``_id``"""

    id: str

    @computed_field(alias="_id")
    @property
    def object_id(self) -> str:
        return self.id
