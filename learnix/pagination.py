"""Offset pagination envelope shared by list endpoints."""

from __future__ import annotations

import math
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field


class PageParams(BaseModel):
    page: int = Field(default=1, ge=1, description="1-based page number.")
    limit: int = Field(default=10, ge=1, le=100, description="Items per page.")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class PageMeta(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> PageMeta:
        return cls(
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit) if limit else 0,
        )


T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """``{data, meta}`` envelope used by the course catalog."""

    model_config = ConfigDict(from_attributes=True)

    data: list[T]
    meta: PageMeta
