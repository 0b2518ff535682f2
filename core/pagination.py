"""
Core — Pagination

Offset-based paginator (limit / offset query parameters) with a hard
maximum cap, matching the ledger's offset pagination.

@file core/pagination.py
"""

from rest_framework.pagination import LimitOffsetPagination

from core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE


class StandardPagination(LimitOffsetPagination):
    default_limit = DEFAULT_PAGE_SIZE
    max_limit = MAX_PAGE_SIZE


def page_meta(*, total: int, limit: int, offset: int) -> dict:
    """Pagination block for responses built outside a paginator."""
    total_pages = (total + limit - 1) // limit if limit else 0
    page = (offset // limit) + 1 if limit else 1
    return {
        'page': page,
        'limit': limit,
        'offset': offset,
        'total': total,
        'total_pages': total_pages,
    }
