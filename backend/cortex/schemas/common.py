"""Shared schema building blocks."""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

# Byte counts can exceed the 2^53 range JSON numbers hold exactly
BigIntStr = Annotated[int, PlainSerializer(str, return_type=str, when_used="json")]


class CamelModel(BaseModel):
    """Base model rendering camelCase field names on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ErrorResponse(BaseModel):
    """Error envelope returned for every failed request."""

    status: str
    message: str
