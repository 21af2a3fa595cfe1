"""Page window calculation for collection endpoints."""

from typing import Final

from server.apps.projects.records import PaginationWindow

# Page size used when the client sends nothing usable
DEFAULT_PAGE_LIMIT: Final = 25

# Largest page size a client may request
MAX_PAGE_LIMIT: Final = 100


def _parse_int(raw_value: str | int | None) -> int | None:
    """Parse an untrusted query value as an integer.

    Returns:
        Parsed integer, or None if the value is missing or not numeric.
    """
    if raw_value is None or isinstance(raw_value, bool):
        return None
    if isinstance(raw_value, int):
        return raw_value
    try:
        return int(str(raw_value).strip())
    except ValueError:
        return None


def compute_window(
    raw_limit: str | int | None,
    raw_offset: str | int | None,
    default_limit: int = DEFAULT_PAGE_LIMIT,
    max_limit: int = MAX_PAGE_LIMIT,
) -> PaginationWindow:
    """Derive the effective page window from client query values.

    Malformed input never fails the request: a missing, non-numeric,
    zero or negative limit becomes ``default_limit``, and a missing,
    non-numeric or negative offset becomes 0. A limit above
    ``max_limit`` is clamped to it.

    Args:
        raw_limit: ``limit`` query value as sent by the client.
        raw_offset: ``offset`` query value as sent by the client.
        default_limit: Page size substituted for unusable limits.
        max_limit: Upper bound on the page size.

    Returns:
        PaginationWindow with a positive limit and non-negative offset.
    """
    limit = _parse_int(raw_limit)
    if limit is None or limit <= 0:
        limit = default_limit
    limit = min(limit, max_limit)

    offset = _parse_int(raw_offset)
    if offset is None or offset < 0:
        offset = 0

    return PaginationWindow(limit=limit, offset=offset)
