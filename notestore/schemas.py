from datetime import datetime, timezone
from typing import Annotated, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator

from notestore.models import AUTHOR_MAX_LENGTH, CONTENT_MAX_LENGTH, IV_LENGTH


def as_utc(value: datetime) -> datetime:
    """Return ``value`` in UTC; naive datetimes are taken to already be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _strip(value):
    return value.strip() if isinstance(value, str) else value


Author = Annotated[
    str,
    BeforeValidator(_strip),
    Field(min_length=1, max_length=AUTHOR_MAX_LENGTH, description=f"Author identifier (1-{AUTHOR_MAX_LENGTH} chars)."),
]


class NoteCreate(BaseModel):
    """Schema for appending a note."""
    author: Author
    iv: str = Field(
        ...,
        min_length=IV_LENGTH,
        max_length=IV_LENGTH,
        description=f"Initialization vector, exactly {IV_LENGTH} chars.",
    )
    content: str = Field(
        ...,
        min_length=1,
        max_length=CONTENT_MAX_LENGTH,
        description=f"Encrypted note content (1-{CONTENT_MAX_LENGTH} chars).",
    )
    date: Optional[datetime] = Field(None, description="Note timestamp; defaults to insertion time.")

    @field_validator("date")
    @classmethod
    def _date_in_utc(cls, value):
        return as_utc(value) if value is not None else None


class NoteQuery(BaseModel):
    """Parameters for listing an author's notes."""
    author: Author
    since: Optional[datetime] = Field(None, description="Only notes strictly after this instant.")

    @field_validator("since")
    @classmethod
    def _since_in_utc(cls, value):
        return as_utc(value) if value is not None else None


class FilteredNote(BaseModel):
    """A note without its author, as listed under :class:`AuthorNotes`."""
    model_config = ConfigDict(from_attributes=True)

    date: datetime
    iv: str
    content: str

    @field_validator("date")
    @classmethod
    def _date_in_utc(cls, value):
        return as_utc(value)


class NoteOut(FilteredNote):
    """Schema returned for a stored note."""
    author: str


class AuthorNotes(BaseModel):
    author: str
    notes: List[FilteredNote] = Field(default_factory=list)
