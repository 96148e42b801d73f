"""
Pagination Calculator.

Pagination never blocks a request: missing, non-numeric or non-positive
page/limit values fall back to the defaults.
"""
import re
from typing import Any, Optional

from internal.domain.query import PageWindow


DEFAULT_PAGE = 1
DEFAULT_LIMIT = 25
MAX_LIMIT = 100
# Largest offset a bigint OFFSET parameter can carry.
MAX_OFFSET = 2 ** 63 - 1

_POSITIVE_INT = re.compile(r"^\+?\d+$")


def parse_positive_int(raw: Any, default: int) -> int:
    """
    Parse a positive integer, falling back to `default`.

    Args:
        raw: Raw parameter value (string, int, list of strings or None).
        default: Value used for anything that is not an integer >= 1.

    Returns:
        Parsed value or the default.
    """
    if isinstance(raw, (list, tuple)):
        raw = raw[0] if raw else None
    if isinstance(raw, bool) or raw is None:
        return default
    if isinstance(raw, int):
        return raw if raw >= 1 else default
    if not isinstance(raw, str) or not _POSITIVE_INT.match(raw.strip()):
        return default
    value = int(raw.strip())
    return value if value >= 1 else default


def build_page_window(
    page: Any = None,
    limit: Any = None,
    default_limit: int = DEFAULT_LIMIT,
    max_limit: Optional[int] = MAX_LIMIT,
) -> PageWindow:
    """
    Build a page window from raw parameters.

    Args:
        page: Raw `page` value.
        limit: Raw `limit` value.
        default_limit: Page size used when `limit` is unusable.
        max_limit: Upper bound for the page size; larger values are clamped.

    Returns:
        PageWindow with positive page and limit. A page whose offset
        would not fit in a 64-bit integer falls back to the first page.
    """
    page_number = parse_positive_int(page, DEFAULT_PAGE)
    page_size = parse_positive_int(limit, default_limit)
    if max_limit is not None and page_size > max_limit:
        page_size = max_limit
    if page_size > MAX_OFFSET:
        page_size = default_limit
    if (page_number - 1) * page_size > MAX_OFFSET:
        page_number = DEFAULT_PAGE
    return PageWindow(page=page_number, limit=page_size)


def adjacent_pages(
    window: PageWindow,
    total: int,
) -> tuple[Optional[PageWindow], Optional[PageWindow]]:
    """
    Compute next/prev descriptors.

    `next` exists iff offset + limit < total; `prev` exists iff offset > 0.

    Args:
        window: Current window.
        total: Documents matching the predicate, ignoring pagination.

    Returns:
        Tuple of (next window or None, prev window or None).
    """
    next_page = None
    prev_page = None
    if window.offset + window.limit < total:
        next_page = PageWindow(page=window.page + 1, limit=window.limit)
    if window.offset > 0:
        prev_page = PageWindow(page=window.page - 1, limit=window.limit)
    return next_page, prev_page
