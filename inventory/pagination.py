def _as_int(value, default):
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def paginate(qs, page=None, page_size=None, default_size=50, max_size=500):
    """Slice ``qs`` and return ``(rows, pagination_meta)``."""
    total = qs.count()
    page = max(1, _as_int(page, 1))
    page_size = min(max_size, max(1, _as_int(page_size, default_size)))
    start = (page - 1) * page_size
    return qs[start:start + page_size], {'total': total, 'page': page, 'pageSize': page_size}
