"""Base models shared by every UI record and list request."""

from datetime import date, datetime
from typing import Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

SortDirection = Literal["asc", "desc"]

# Dates on records: strings pass through, date/datetime are rendered as ISO-8601
DateLike = str | datetime | date


class CamelModel(BaseModel):
    """snake_case attributes in Python, camelCase on the wire to the UI."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class RecordModel(CamelModel):
    """
    Flat, UI-friendly representation of a FHIR resource.

    Every field has a default so a partially filled form is a valid record.
    ``id`` stays None until the server has created the resource.
    """

    id: str | None = None


class ListRequest(BaseModel):
    """Paging, sorting and free-text search shared by every list endpoint."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    search: str | None = Field(default=None, description="Free-text search")
    page: int = Field(default=0, ge=0, description="Zero-based page number")
    page_size: int | None = Field(
        default=None, ge=1, description="Page size, defaults to the service setting"
    )
    sort_fields: list[str] = Field(default_factory=list)
    sort_directions: list[SortDirection] = Field(default_factory=list)


RecordT = TypeVar("RecordT", bound=RecordModel)


class SearchResult(CamelModel, Generic[RecordT]):
    """Uniform result of a search, independent of resource kind."""

    entry: list[RecordT] = Field(default_factory=list)
    total: int = 0
    has_next_page: bool = False
