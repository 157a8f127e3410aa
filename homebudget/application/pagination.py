"""
Offset pagination shared by the list services
"""
import math
from dataclasses import dataclass
from typing import Any

from homebudget.application.errors import InvalidPayload


@dataclass
class PaginationMeta:
    page: int
    page_size: int
    total_items: int
    total_pages: int

    @classmethod
    def build(cls, page: int, page_size: int, total_items: int) -> "PaginationMeta":
        total_pages = math.ceil(total_items / page_size) if total_items > 0 else 0
        return cls(page=page, page_size=page_size, total_items=total_items, total_pages=total_pages)


@dataclass
class Page:
    data: list[Any]
    meta: PaginationMeta


def check_page_args(page: int, page_size: int, max_page_size: int = 100) -> int:
    """Validate page / page_size and return the row offset."""
    if page < 1:
        raise InvalidPayload("Page must be at least 1")
    if page_size < 1 or page_size > max_page_size:
        raise InvalidPayload(f"Page size must be between 1 and {max_page_size}")
    return (page - 1) * page_size
