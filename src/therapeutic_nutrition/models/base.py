"""Shared model base for data exchanged with the JSON (camelCase) application."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts snake_case or camelCase keys; dumps camelCase with by_alias=True."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_json_dict(self) -> dict:
        """JSON-safe dict in the application's camelCase shape, empty fields omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
