"""View decorators for token authentication."""

import functools
import logging
from collections.abc import Callable
from typing import Any, Final

from django.http import HttpRequest, HttpResponse, JsonResponse

from server.apps.projects.exceptions import InvalidTokenError
from server.apps.projects.infrastructure.user_store import UserStoreClient

logger = logging.getLogger(__name__)

_TOKEN_HEADER: Final = 'TokenID'

_View = Callable[..., HttpResponse]


def token_required(view: _View) -> _View:
    """Reject requests without a valid ``TokenID`` header.

    On success the verified user id is stored as ``request.user_id``.

    Args:
        view: View function to protect.

    Returns:
        Wrapped view answering 401 for missing or invalid tokens.
    """

    @functools.wraps(view)
    def wrapper(  # noqa: WPS430
        request: HttpRequest,
        *args: Any,
        **kwargs: Any,
    ) -> HttpResponse:
        token_id = request.headers.get(_TOKEN_HEADER)
        if not token_id:
            return JsonResponse(
                {'status': 'error', 'message': 'TokenID header missing'},
                status=401,
            )

        try:
            user_store = UserStoreClient.from_settings(
                getattr(request, 'uid', ''),
            )
            user_id = user_store.verify_token(token_id)
        except InvalidTokenError:
            logger.warning(
                'Authentication failed for %s %s',
                request.method,
                request.path,
            )
            return JsonResponse(
                {'status': 'error', 'message': 'Invalid TokenID'},
                status=401,
            )

        request.user_id = user_id  # type: ignore[attr-defined]
        return view(request, *args, **kwargs)

    return wrapper
