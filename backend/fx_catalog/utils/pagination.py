"""
Offset pagination helpers.
Invalid page/limit values are silently replaced by defaults; pagination
never fails a request.
"""

import math
import re
from typing import Any, NamedTuple, Optional

from fx_catalog.core.config import settings
from fx_catalog.schemas.pagination import PaginationMeta

MIN_LIMIT = 1

# OFFSET is bound as a signed 64-bit integer by the drivers.
MAX_OFFSET = 2**63 - 1

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def _parse_int(value: Any) -> Optional[int]:
    """Leading-integer parse: 12 -> 12, "7abc" -> 7, 3.9 -> 3, "abc" -> None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else None


def validate_limit(limit: Any) -> int:
    """Return a limit in [MIN_LIMIT, MAX_PAGE_LIMIT]; anything unusable becomes the default."""
    parsed = _parse_int(limit)
    if parsed is None or parsed < MIN_LIMIT:
        return settings.DEFAULT_PAGE_LIMIT
    return min(parsed, settings.MAX_PAGE_LIMIT)


def validate_page(page: Any, limit: int = MIN_LIMIT) -> int:
    """Return a page >= 1 whose offset still fits MAX_OFFSET for `limit`."""
    parsed = _parse_int(page)
    if parsed is None or parsed < 1:
        return 1
    return min(parsed, MAX_OFFSET // limit + 1)


class PageRequest(NamedTuple):
    page: int
    limit: int
    
    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def page_request(page: Any = None, limit: Any = None) -> PageRequest:
    """Normalize raw page/limit input."""
    limit = validate_limit(limit)
    return PageRequest(page=validate_page(page, limit), limit=limit)


def build_pagination(request: PageRequest, total: int) -> PaginationMeta:
    """Page metadata for `total` rows sliced by `request`."""
    total_pages = math.ceil(total / request.limit) if total > 0 else 0
    return PaginationMeta(
        page=request.page,
        limit=request.limit,
        total=total,
        total_pages=total_pages,
        has_more=request.page < total_pages,
        has_previous=request.page > 1,
    )
