"""
Page/offset arithmetic shared by the feeds.
"""

import math
from dataclasses import dataclass
from typing import Any

from app.services.errors import ValidationError

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class Pagination:
    page: int
    limit: int
    total: int
    offset: int
    total_pages: int
    has_next: bool
    has_prev: bool

    def to_dict(self) -> dict:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "totalPages": self.total_pages,
            "hasNext": self.has_next,
            "hasPrev": self.has_prev,
        }


def paginate(page: int, limit: int, total_count: int) -> Pagination:
    """Compute offset and page flags for a 1-based page."""
    if page < 1:
        raise ValidationError("Page must be a positive integer", field="page")
    if limit < 1:
        raise ValidationError("Limit must be a positive integer", field="limit")

    total_pages = 0 if total_count == 0 else math.ceil(total_count / limit)

    return Pagination(
        page=page,
        limit=limit,
        total=total_count,
        offset=(page - 1) * limit,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_prev=page > 1,
    )


def _coerce_positive_int(value: Any, name: str, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool):
        raise ValidationError(f"{name.capitalize()} must be a positive integer", field=name)
    if isinstance(value, str):
        value = value.strip()
        if not value.isdecimal():
            raise ValidationError(f"{name.capitalize()} must be a positive integer", field=name)
        value = int(value)
    if not isinstance(value, int) or value < 1:
        raise ValidationError(f"{name.capitalize()} must be a positive integer", field=name)
    return value


def coerce_page_params(page: Any = None, limit: Any = None) -> tuple[int, int]:
    """Validate raw page/limit values (ints or query strings).

    Missing values fall back to page 1 and a page size of 20.
    """
    return (
        _coerce_positive_int(page, "page", DEFAULT_PAGE),
        _coerce_positive_int(limit, "limit", DEFAULT_PAGE_SIZE),
    )
