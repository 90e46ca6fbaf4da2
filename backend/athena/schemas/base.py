"""Base schema configuration."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BaseSchema(BaseModel):
    """
    Base schema with common configuration.

    Fields are snake_case in Python and camelCase on the wire; input in
    either spelling is accepted.
    """

    model_config = ConfigDict(
        from_attributes=True,  # Enable ORM mode
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )
