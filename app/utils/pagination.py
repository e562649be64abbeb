"""Offset/limit pagination with server-side clamping."""

from dataclasses import dataclass
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel

MAX_LIMIT = 100

T = TypeVar("T")


@dataclass(frozen=True)
class PageParams:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def clamp_page(page: Optional[int], limit: Optional[int], default_limit: int = 20) -> PageParams:
    """Page floors at 1; limit falls back to the default below 1 and caps at 100."""
    page = max(1, page or 1)
    if not limit or limit < 1:
        limit = default_limit
    return PageParams(page=page, limit=min(limit, MAX_LIMIT))


class Page(BaseModel, Generic[T]):
    """One page of a listing."""
    items: List[T]
    page: int
    limit: int
    total: int
