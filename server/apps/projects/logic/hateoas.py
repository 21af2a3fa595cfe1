"""HATEOAS navigation links for paginated collections.

Links are derived from the URL of the current request, so filter
parameters such as ``ProjectID`` or ``UserID`` survive into every link.
Only ``limit`` and ``offset`` are rewritten.
"""

from typing import Final
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from server.apps.projects.records import LinkSet

_LIMIT_PARAM: Final = 'limit'
_OFFSET_PARAM: Final = 'offset'


def _page_url(base_url: str, limit: int, offset: int) -> str:
    """Rewrite the window parameters of a URL.

    Args:
        base_url: Absolute URL, possibly with a query string.
        limit: Page size to put into the URL.
        offset: Page offset to put into the URL.

    Returns:
        URL with every original parameter except ``limit``/``offset``,
        followed by the given window.
    """
    parts = urlsplit(base_url)
    query = [
        (key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if key not in {_LIMIT_PARAM, _OFFSET_PARAM}
    ]
    query.extend(((_LIMIT_PARAM, str(limit)), (_OFFSET_PARAM, str(offset))))
    return urlunsplit(parts._replace(query=urlencode(query)))


def last_page_offset(total: int, limit: int) -> int:
    """Offset of the final non-empty page, 0 for an empty collection."""
    if total <= 0:
        return 0
    return max(0, (total - 1) // limit * limit)


def build_links(
    base_url: str,
    total: int,
    limit: int,
    offset: int,
) -> LinkSet:
    """Build navigation links for one page of a collection.

    Args:
        base_url: Absolute URL of the current request.
        total: Number of items in the whole collection, as reported
            by the store for the filter in effect.
        limit: Page size of the current window.
        offset: Offset of the current window.

    Returns:
        LinkSet with ``prev`` only when ``offset > 0`` and ``next`` only
        when items remain past the current page.

    Raises:
        ValueError: If ``limit`` is not positive.
    """
    if limit <= 0:
        raise ValueError(f'Page limit must be positive, got {limit}')

    total = max(total, 0)

    prev_url = None
    if offset > 0:
        prev_url = _page_url(base_url, limit, max(0, offset - limit))

    next_url = None
    if offset + limit < total:
        next_url = _page_url(base_url, limit, offset + limit)

    return LinkSet(
        current=_page_url(base_url, limit, offset),
        first=_page_url(base_url, limit, 0),
        last=_page_url(base_url, limit, last_page_offset(total, limit)),
        prev=prev_url,
        next=next_url,
    )
