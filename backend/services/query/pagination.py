"""
Pagination resolution.

Four competing inputs (skip, limit, page, pageSize) resolve to one
(skip, limit) pair:

1. skip and/or limit present -> used as-is, page inputs ignored entirely
2. page and/or pageSize present -> skip = (page - 1) * pageSize
3. nothing present -> (0, default_limit)

A resolved limit of 0 means "return zero documents", never "unlimited".
"""

import logging
from dataclasses import dataclass
from typing import Any, NamedTuple

from utils.normalize import MalformedParameter, is_blank, to_int

logger = logging.getLogger('services.query.pagination')


@dataclass(frozen=True)
class PaginationConfig:
    """Construction-time pagination settings (see Config.DEFAULT_PAGE_LIMIT)."""
    default_limit: int = 100

    def __post_init__(self):
        if self.default_limit < 0:
            raise ValueError("default_limit must be >= 0")


class Page(NamedTuple):
    skip: int
    limit: int


def resolve_pagination(
    skip: Any = None,
    limit: Any = None,
    page: Any = None,
    page_size: Any = None,
    *,
    config: PaginationConfig = PaginationConfig(),
) -> Page:
    """
    Resolve raw pagination inputs into a Page.

    Args:
        skip, limit, page, page_size: ints or integer-like strings, each optional
        config: PaginationConfig holding the store default cap

    Returns:
        Page(skip, limit) with skip >= 0 and limit >= 0

    Raises:
        MalformedParameter: non-integer input, or negative limit/pageSize
    """
    if not is_blank(skip) or not is_blank(limit):
        resolved_skip = to_int(skip, default=0, field="skip")
        resolved_limit = to_int(limit, default=config.default_limit, field="limit")
        _check_limit(resolved_limit, "limit", limit)
        if not is_blank(page) or not is_blank(page_size):
            logger.debug(
                "pagination_precedence skip=%s limit=%s ignored_page=%s ignored_page_size=%s",
                skip, limit, page, page_size,
            )
        return Page(max(resolved_skip, 0), resolved_limit)

    if not is_blank(page) or not is_blank(page_size):
        resolved_page = max(to_int(page, default=1, field="page"), 1)
        resolved_size = to_int(page_size, default=config.default_limit, field="pageSize")
        _check_limit(resolved_size, "pageSize", page_size)
        return Page((resolved_page - 1) * resolved_size, resolved_size)

    return Page(0, config.default_limit)


def _check_limit(value: int, field: str, received) -> None:
    if value < 0:
        raise MalformedParameter(
            f"{field} must be >= 0, got {value}",
            field=field,
            received_value=received,
        )
