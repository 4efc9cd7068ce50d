"""Pagination envelope shared by listing endpoints."""

from __future__ import annotations

import math

from pydantic import BaseModel, Field


class Pagination(BaseModel):
    page: int = Field(ge=1)
    limit: int = Field(ge=1)
    total: int = Field(ge=0)
    pages: int = Field(ge=0)

    @classmethod
    def build(cls, *, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, pages=math.ceil(total / limit))


__all__ = ["Pagination"]
