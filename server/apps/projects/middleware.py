"""Request logging middleware."""

import logging
import secrets
from collections.abc import Callable
from typing import Final, final

from django.http import HttpRequest, HttpResponse

logger = logging.getLogger(__name__)

# Request id length in bytes (generates 16 hex chars)
_REQUEST_UID_BYTES: Final = 8


@final
class RequestLogMiddleware:
    """Tag each request with a random id and log its start and end.

    The id is stored as ``request.uid`` and forwarded to the remote
    stores so their logs can be correlated with the gateway's.
    """

    def __init__(
        self,
        get_response: Callable[[HttpRequest], HttpResponse],
    ) -> None:
        """Initialize the middleware.

        Args:
            get_response: Next handler in the middleware chain.
        """
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        """Log around the handling of one request."""
        request_uid = secrets.token_hex(_REQUEST_UID_BYTES)
        request.uid = request_uid  # type: ignore[attr-defined]
        logger.info(
            '%s : %s %s request being served.',
            request_uid,
            request.method,
            request.get_full_path(),
        )

        response = self.get_response(request)

        logger.info(
            '%s : %s %s request served (%d).',
            request_uid,
            request.method,
            request.get_full_path(),
            response.status_code,
        )
        return response
