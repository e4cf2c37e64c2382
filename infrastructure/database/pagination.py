"""
Database Pagination Utilities
==============================
Row limits shared by the list and range queries.

- Default limit: 100 for command listings
- Minimum limit: 1
- Range queries are capped by ``history_max_rows`` from the app config
"""

DEFAULT_LIMIT = 100
MIN_LIMIT = 1


def clamp_limit(limit: int | None, *, maximum: int, default: int | None = None) -> int:
    """
    Return a usable LIMIT value.

    Args:
        limit: Requested row count (None uses ``default`` or ``maximum``)
        maximum: Hard upper bound
        default: Value used when no limit was requested

    Raises:
        ValueError: If limit is below the minimum
    """
    if limit is None:
        return min(default if default is not None else maximum, maximum)
    if limit < MIN_LIMIT:
        raise ValueError(f"Limit must be at least {MIN_LIMIT}")
    return min(limit, maximum)
