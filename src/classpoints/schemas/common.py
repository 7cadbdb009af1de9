"""Shared response envelopes."""

from typing import Generic, List, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """One page of a filtered listing."""

    items: List[T]
    total: int = Field(..., ge=0, description="Rows matching the filters across all pages.")
    limit: int
    offset: int
