"""Shared pydantic base for API schemas.

Learn: The frontend speaks camelCase JSON (dueDate, avatarUrl, createdAt),
Python code speaks snake_case. alias_generator=to_camel gives every field a
camelCase alias; FastAPI serializes responses by alias, and populate_by_name
lets tests and the CLI send either spelling.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(CamelModel):
    message: str
