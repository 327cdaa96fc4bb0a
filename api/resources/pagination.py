"""
Page/limit query parameter handling, independent of entity type.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from core.errors import BadRequest

from .validation import parse_positive_int

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


@dataclass(frozen=True)
class Pagination:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def total_pages(self, total: int) -> int:
        return math.ceil(total / self.limit)


def _present(raw: str | None) -> bool:
    return raw is not None and raw != ""


def is_requested(page_param: str | None, limit_param: str | None) -> bool:
    """
    False when neither parameter was supplied: the caller wants the full list.
    """
    return _present(page_param) or _present(limit_param)


def resolve(page_param: str | None, limit_param: str | None) -> Pagination:
    """
    Turn raw query values into a concrete page/limit pair.

    Missing values take the defaults. Out-of-range values are rejected with
    `BadRequest`, never clamped.
    """
    page = DEFAULT_PAGE
    if _present(page_param):
        parsed = parse_positive_int(page_param)
        if parsed is None:
            raise BadRequest("Page must be a positive integer")
        page = parsed

    limit = DEFAULT_LIMIT
    if _present(limit_param):
        parsed = parse_positive_int(limit_param)
        if parsed is None:
            raise BadRequest("Limit must be a positive integer")
        if parsed > MAX_LIMIT:
            raise BadRequest(f"Limit cannot exceed {MAX_LIMIT}")
        limit = parsed

    return Pagination(page=page, limit=limit)
