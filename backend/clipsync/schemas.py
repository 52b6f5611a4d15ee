"""Shared Pydantic base for API bodies: camelCase on the wire, snake_case in Python."""

from typing import Generic, List, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class ApiModel(BaseModel):
    """Base for request and response schemas."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Page(ApiModel, Generic[T]):
    """Paginated listing."""

    data: List[T]
    total: int
    page: int
    page_size: int
    total_pages: int


class DeletedCount(ApiModel):
    """Response for bulk deletes."""

    deleted: int


def total_pages(total: int, page_size: int) -> int:
    """Number of pages needed for total items (ceil division)."""
    return (total + page_size - 1) // page_size
