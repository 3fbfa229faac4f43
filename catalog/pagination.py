"""
Pagination request and paged result models.
"""

import math
from typing import Generic, List, TypeVar

from pydantic import BaseModel, Field, computed_field, field_validator

T = TypeVar("T")

MAX_RECORDS_PER_PAGE = 50
DEFAULT_RECORDS_PER_PAGE = 10


class Pagination(BaseModel):
    """
    Page request. Out-of-range values are clamped instead of rejected:
    ``page`` below 1 becomes 1 and ``records_per_page`` is forced into [1, 50].
    """
    page: int = Field(1, description="Page number (starts from 1)")
    records_per_page: int = Field(DEFAULT_RECORDS_PER_PAGE, description="Items per page (1-50)")

    @field_validator("page", mode="before")
    @classmethod
    def clamp_page(cls, v):
        if v is None:
            return 1
        return max(1, int(v))

    @field_validator("records_per_page", mode="before")
    @classmethod
    def clamp_records_per_page(cls, v):
        if v is None:
            return DEFAULT_RECORDS_PER_PAGE
        return min(max(1, int(v)), MAX_RECORDS_PER_PAGE)

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.records_per_page

    @property
    def take(self) -> int:
        return self.records_per_page


class PagedResult(BaseModel, Generic[T]):
    """One page of records plus total-count metadata."""
    data: List[T] = Field(default_factory=list, description="Records on this page")
    total_records: int = Field(..., ge=0, description="Matching records before paging")
    page: int = Field(..., description="Effective page number")
    records_per_page: int = Field(..., description="Effective page size")

    @computed_field
    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_records / self.records_per_page)

    @computed_field
    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @computed_field
    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @classmethod
    def create(cls, data: List[T], total_records: int, pagination: Pagination) -> "PagedResult[T]":
        return cls(
            data=data,
            total_records=total_records,
            page=pagination.page,
            records_per_page=pagination.records_per_page,
        )
