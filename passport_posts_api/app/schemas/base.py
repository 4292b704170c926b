"""
Shared Pydantic base classes and response envelopes.

The public API speaks camelCase JSON (``passportNumber``,
``issuedCountry``, ``_id``) while the Python code uses snake_case.
``ApiModel`` bridges the two with an alias generator; responses are
always serialized by alias.  Every successful response is wrapped in an
envelope carrying ``success: true``.
"""

from typing import Generic, List, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


T = TypeVar("T")


class ApiModel(BaseModel):
    """Base model accepting both camelCase aliases and field names."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class DataResponse(ApiModel, Generic[T]):
    success: bool = True
    data: T


class ListResponse(ApiModel, Generic[T]):
    success: bool = True
    count: int
    data: List[T]


class MessageResponse(ApiModel):
    success: bool = True
    message: str


class MessageDataResponse(ApiModel, Generic[T]):
    success: bool = True
    message: str
    data: T
