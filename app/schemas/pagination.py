from typing import Generic, TypeVar
from pydantic import BaseModel

T = TypeVar("T")


class PaginationMeta(BaseModel):
    total: int
    limit: int
    offset: int
    has_more: bool


class PaginatedResponse(BaseModel, Generic[T]):
    """List endpoints return this when called with include_pagination=true"""
    items: list[T]
    pagination: PaginationMeta

    @classmethod
    def build(cls, items: list[T], *, total: int, limit: int, offset: int) -> "PaginatedResponse[T]":
        return cls(
            items=items,
            pagination=PaginationMeta(
                total=total,
                limit=limit,
                offset=offset,
                has_more=(offset + len(items) < total),
            ),
        )
