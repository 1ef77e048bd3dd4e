"""Shared pydantic base for models serialized with camelCase JSON names."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Immutable model that dumps camelCase keys with ``by_alias=True``.

    Python code uses snake_case field names; JSON produced for the
    dashboard layers uses the camelCase names (``stopLoss``, ``winRate``).
    Both spellings are accepted on input.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_json(self, **kwargs) -> str:
        """Serialize with camelCase field names."""
        return self.model_dump_json(by_alias=True, **kwargs)
