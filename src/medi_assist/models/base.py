"""Base model for wire-facing schemas: snake_case in Python, camelCase on the wire."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Schemas exchanged with the model and callers; validated by field name or alias."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
