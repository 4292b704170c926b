"""
Pydantic models for passport posts and their embedded entries.

``PassportEntryIn`` carries the validation rules applied to every
entry a client submits.  ``PassportEntry`` is the stored shape, with
the server‑assigned ``_id`` and ``postDate``.  Stored entries are kept
in the database as the alias‑keyed JSON produced by
``PassportEntry.model_dump(by_alias=True, mode="json")``.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, ConfigDict, Field, field_validator

from .base import ApiModel


LINK_PATTERN = r'^(http|https)://[^ "]+$'


class PassportEntryIn(ApiModel):
    """A passport entry as submitted by a client.

    ``id`` refers to an existing entry when updating a post; it is
    ignored on creation.  ``post_date`` is accepted for compatibility
    but never stored: the server owns that timestamp.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    id: Optional[str] = Field(None, validation_alias=AliasChoices("_id", "id"), serialization_alias="_id")
    passport_number: str = Field(..., min_length=5, max_length=20, examples=["P1234567"])
    link: str = Field(..., pattern=LINK_PATTERN, examples=["https://example.com/p/1"])
    issued_country: str = Field(..., min_length=2, max_length=50, examples=["India"])
    city: Optional[str] = Field(None, examples=["Delhi"])
    slip_no: Optional[str] = None
    other_details: Optional[str] = None
    post_date: Optional[datetime] = None


class PassportEntry(ApiModel):
    """A stored passport entry."""

    id: str = Field(..., alias="_id")
    passport_number: str
    link: str
    issued_country: str
    city: Optional[str] = None
    slip_no: Optional[str] = None
    other_details: Optional[str] = None
    post_date: datetime


class PassportPostWrite(ApiModel):
    """Body of ``POST /passport-posts`` and ``PUT /passport-posts/{id}``."""

    passports: List[PassportEntryIn]

    @field_validator("passports")
    @classmethod
    def _not_empty(cls, value: List[PassportEntryIn]) -> List[PassportEntryIn]:
        if not value:
            raise ValueError("At least one passport entry is required")
        return value


class UserRef(ApiModel):
    """Populated owner/editor reference."""

    id: int = Field(..., alias="_id")
    full_name: str
    email: str


class PassportPostRead(ApiModel):
    id: str = Field(..., alias="_id")
    passports: List[PassportEntry]
    created_by: Optional[UserRef] = None
    updated_by: Optional[UserRef] = None
    created_at: datetime
    updated_at: datetime


class PassportLookup(ApiModel):
    """Result of locating a single entry."""

    passport: PassportEntry
    created_by: Optional[UserRef] = None
    post_id: str


class PassportUpdateResult(ApiModel):
    post: PassportPostRead
    updated_passport: PassportEntry


class PassportDeleteResult(ApiModel):
    deleted_passport: str
    post_id: str


class PassportIdList(ApiModel):
    """Body of ``DELETE /passport-posts/passports``."""

    passport_ids: List[str]

    @field_validator("passport_ids")
    @classmethod
    def _not_empty(cls, value: List[str]) -> List[str]:
        if not value:
            raise ValueError("Please provide an array of passport IDs to delete")
        return value


class BatchDeleteError(ApiModel):
    id: str
    message: str


class BatchDeleteResponse(ApiModel):
    success: bool = True
    message: str
    count: int
    deleted: List[str]
    errors: List[BatchDeleteError] = Field(default_factory=list)
