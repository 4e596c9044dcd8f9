"""Page/limit parsing shared by list endpoints."""
from django.core.paginator import EmptyPage, Paginator

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def parse_page_params(query_params, default_limit=DEFAULT_PAGE_SIZE):
    """Read ``page`` / ``limit`` from query params, clamping bad values."""
    try:
        page = max(1, int(query_params.get("page", 1)))
    except (TypeError, ValueError):
        page = 1
    try:
        limit = int(query_params.get("limit", default_limit))
    except (TypeError, ValueError):
        limit = default_limit
    limit = min(MAX_PAGE_SIZE, max(1, limit))
    return page, limit


def paginate(qs, page, limit):
    """
    Slice a queryset into one page.

    Returns ``(rows, meta)``; an out-of-range page yields no rows rather
    than falling back to page 1, so ``meta["page"]`` always echoes the
    requested page.
    """
    paginator = Paginator(qs, limit)
    try:
        rows = list(paginator.page(page).object_list)
    except EmptyPage:
        rows = []
    meta = {
        "page": page,
        "limit": limit,
        "total": paginator.count,
        "totalPages": paginator.num_pages if paginator.count else 0,
    }
    return rows, meta
