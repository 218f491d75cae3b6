"""
===============================================================================
MODULE: Page-number pagination
===============================================================================

Goal
----
Simple, consistent pagination for ledger listings:
- page/page_size validated against settings
- generic Page[T] response with totals

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Component:
  PageRequest + Page + paginate

Responsibilities:
  - Validate page bounds (ValidationError, never silent clamping)
  - Translate page/page_size into offset/limit for repositories
  - Build page metadata (total_pages, has_next, has_prev)
===============================================================================
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Generic, List, TypeVar

from pydantic import BaseModel, Field

from .config import get_settings
from .exceptions import ValidationError

T = TypeVar("T")


class PageInfo(BaseModel):
    page: int = Field(description="1-based page number")
    page_size: int = Field(description="Items per page")
    total: int = Field(description="Total items matching the filter")
    total_pages: int = Field(description="Number of pages")
    has_next: bool = Field(description="There are items after this page")
    has_prev: bool = Field(description="There are items before this page")


class Page(BaseModel, Generic[T]):
    items: List[T] = Field(description="Items of the current page")
    page_info: PageInfo = Field(description="Pagination metadata")


@dataclass(frozen=True, slots=True)
class PageRequest:
    """Validated page request (offset/limit ready for repositories)."""

    page: int
    page_size: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        return self.page_size


def page_request(page: int | None = None, page_size: int | None = None) -> PageRequest:
    """
    Build a PageRequest from raw caller input.

    - page defaults to 1; must be >= 1
    - page_size defaults to settings.default_page_size; must be in [1, max_page_size]
    """
    settings = get_settings()
    page = 1 if page is None else page
    page_size = settings.default_page_size if page_size is None else page_size

    if not isinstance(page, int) or page < 1:
        raise ValidationError("page must be an integer >= 1")
    if not isinstance(page_size, int) or not 1 <= page_size <= settings.max_page_size:
        raise ValidationError(
            f"page_size must be an integer between 1 and {settings.max_page_size}"
        )
    return PageRequest(page=page, page_size=page_size)


def paginate(items: List[T], request: PageRequest, total: int) -> Page[T]:
    """Wrap one page of items (already sliced by the repository)."""
    total_pages = math.ceil(total / request.page_size) if total else 0
    return Page(
        items=list(items),
        page_info=PageInfo(
            page=request.page,
            page_size=request.page_size,
            total=total,
            total_pages=total_pages,
            has_next=request.page < total_pages,
            has_prev=request.page > 1,
        ),
    )
