"""Shared response envelopes for the content API."""

from __future__ import annotations

import math
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")

MAX_PAGE_SIZE = 50


class CamelModel(BaseModel):
    """Base model that reads snake_case or camelCase and writes camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Pagination(CamelModel):
    total: int
    page: int
    pages: int
    limit: int

    @classmethod
    def build(cls, *, total: int, page: int, limit: int) -> "Pagination":
        return cls(
            total=total,
            page=page,
            pages=math.ceil(total / limit) if limit else 0,
            limit=limit,
        )


class DataResponse(CamelModel, Generic[T]):
    """Single resource envelope."""

    data: T
    message: Optional[str] = None


class ListResponse(CamelModel, Generic[T]):
    """Collection envelope, paginated for admin and portfolio listings."""

    data: list[T] = Field(default_factory=list)
    pagination: Optional[Pagination] = None


class MessageResponse(CamelModel):
    message: str


def page_window(page: int, limit: int, *, max_limit: int = MAX_PAGE_SIZE) -> tuple[int, int, int]:
    """Clamp paging input and return ``(page, limit, offset)``."""

    page = max(1, page)
    limit = max(1, min(limit, max_limit))
    return page, limit, (page - 1) * limit


__all__ = [
    "CamelModel",
    "DataResponse",
    "ListResponse",
    "MAX_PAGE_SIZE",
    "MessageResponse",
    "Pagination",
    "page_window",
]
