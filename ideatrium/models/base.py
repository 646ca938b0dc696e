"""
Base model for HTTP request and AI response payloads
"""

from pydantic import BaseModel as PydanticBaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BaseModel(PydanticBaseModel):
    """camelCase on the wire, snake_case in python; unknown keys are rejected"""

    model_config = ConfigDict(
        # ideaId / idea_id are both accepted on input
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    def model_dump(self, **kwargs):
        """Dump with camelCase keys unless by_alias=False is passed"""
        kwargs.setdefault("by_alias", True)
        return super().model_dump(**kwargs)
