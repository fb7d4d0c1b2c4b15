from __future__ import annotations

import math

from django.conf import settings


def clamp_limit(limit: int | None, *, default: int | None = None, maximum: int | None = None) -> int:
    default = default or settings.PAGINATION_DEFAULT_LIMIT
    maximum = maximum or settings.PAGINATION_MAX_LIMIT
    if not limit or limit < 1:
        return default
    return min(limit, maximum)


def paginate(qs, page: int | None, limit: int | None, *, default: int | None = None,
             maximum: int | None = None):
    """Slice ``qs`` and return ``(items, pagination)``.

    ``pagination`` carries ``total``, ``page``, ``limit`` and
    ``totalPages`` as returned to the frontend.
    """
    page = page if page and page > 0 else 1
    limit = clamp_limit(limit, default=default, maximum=maximum)
    total = qs.count()
    start = (page - 1) * limit
    items = list(qs[start:start + limit])
    return items, {
        'total': total,
        'page': page,
        'limit': limit,
        'totalPages': math.ceil(total / limit) if total else 0,
    }
