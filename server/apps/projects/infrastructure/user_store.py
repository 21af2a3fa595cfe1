"""HTTP client for users and tokens kept by the remote user store."""

import json
import logging
from datetime import UTC, timedelta
from typing import Any, Final, final
from urllib.parse import quote

import requests
from django.conf import settings
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from server.apps.projects.exceptions import InvalidTokenError, StoreError

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT: Final = 10.0

# Header carrying the gateway request id to the store
_UID_HEADER: Final = 'uid'


def _decode(payload: Any) -> Any:
    """Decode a value the store sent as a JSON-encoded string."""
    if isinstance(payload, str):
        return json.loads(payload)
    return payload


@final
class UserStoreClient:
    """Client for the user and token endpoints of the user store."""

    def __init__(
        self,
        base_url: str,
        timeout: float = _DEFAULT_TIMEOUT,
        request_uid: str = '',
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Root URL of the user store.
            timeout: Seconds to wait for each response.
            request_uid: Gateway request id forwarded as ``uid`` header.
        """
        self._base_url = base_url.rstrip('/')
        self._timeout = timeout
        self._request_uid = request_uid

    @classmethod
    def from_settings(cls, request_uid: str = '') -> 'UserStoreClient':
        """Create a client configured from Django settings.

        Args:
            request_uid: Gateway request id forwarded to the store.

        Returns:
            UserStoreClient instance.
        """
        return cls(
            base_url=settings.USER_SERVICE_URL,
            timeout=getattr(
                settings,
                'STORE_REQUEST_TIMEOUT',
                _DEFAULT_TIMEOUT,
            ),
            request_uid=request_uid,
        )

    def verify_token(self, token_id: str) -> int:
        """Resolve a TokenID to the user it was issued to.

        Expired tokens are removed from the store before being rejected.

        Args:
            token_id: Token sent by the client.

        Returns:
            ID of the token's user.

        Raises:
            InvalidTokenError: If the token is unknown, expired or the
                store cannot be reached.
        """
        try:
            response = self._send('GET', self._token_path(token_id))
        except requests.exceptions.RequestException as error:
            logger.exception('User store unreachable during token check')
            raise InvalidTokenError('Invalid TokenID') from error

        if response.status_code != 200:
            logger.warning(
                'Token rejected by user store: status %d',
                response.status_code,
            )
            raise InvalidTokenError('Invalid TokenID')

        token = self._decode_token(response)

        if self._is_expired(token):
            logger.info('Token expired for user %s', token.get('UserID'))
            self._delete_token(token_id)
            raise InvalidTokenError('Invalid TokenID')

        try:
            return int(token['UserID'])
        except (KeyError, TypeError, ValueError) as error:
            raise InvalidTokenError('Invalid TokenID') from error

    def find_user_by_name(self, user_name: str) -> dict[str, Any] | None:
        """Look up a user by user name.

        Args:
            user_name: Name the user logs in with.

        Returns:
            User dict, or None if the store knows no such user.

        Raises:
            StoreError: If the store is unreachable or answers with
                an unexpected status or body.
        """
        operation = 'find user'
        try:
            response = self._send(
                'GET',
                '/users',
                params={'UserName': user_name},
            )
        except requests.exceptions.RequestException as error:
            logger.exception('User store unreachable: %s', operation)
            raise StoreError(operation, detail=str(error)) from error

        if response.status_code == 404:
            return None
        if response.status_code != 200:
            logger.error(
                'User store rejected %s: status %d',
                operation,
                response.status_code,
            )
            raise StoreError(operation, status_code=response.status_code)

        try:
            body = _decode(response.json())
            users = body.get('data') or []
            user = _decode(users[0]) if users else None
        except (AttributeError, ValueError) as error:
            raise StoreError(operation, detail='malformed response') from error

        if user is not None and not isinstance(user, dict):
            raise StoreError(operation, detail='malformed record')
        return user

    def create_token(self, user_id: Any) -> dict[str, Any]:
        """Issue a new token for a user.

        Args:
            user_id: ID of the user the token is issued to.

        Returns:
            Token dict as stored, including its ``TokenID``.

        Raises:
            StoreError: If the store is unreachable or does not answer 201.
        """
        operation = 'create token'
        try:
            response = self._send(
                'POST',
                '/user_tokens/',
                body={'UserID': user_id},
            )
        except requests.exceptions.RequestException as error:
            logger.exception('User store unreachable: %s', operation)
            raise StoreError(operation, detail=str(error)) from error

        if response.status_code != 201:
            logger.error(
                'User store rejected %s: status %d',
                operation,
                response.status_code,
            )
            raise StoreError(operation, status_code=response.status_code)

        try:
            token = _decode(response.json())
        except ValueError as error:
            raise StoreError(operation, detail='malformed response') from error

        if not isinstance(token, dict):
            raise StoreError(operation, detail='malformed response')

        logger.info('Token issued for user %s', user_id)
        return token

    def _send(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        body: Any = None,
    ) -> requests.Response:
        """Send one request tagged with the gateway request id."""
        return requests.request(
            method,
            f'{self._base_url}{path}',
            params=params,
            json=body,
            headers={_UID_HEADER: self._request_uid},
            timeout=self._timeout,
        )

    def _token_path(self, token_id: str) -> str:
        """Store path of one token, with the id escaped as one segment."""
        return f'/user_tokens/{quote(token_id, safe="")}'

    def _decode_token(self, response: requests.Response) -> dict[str, Any]:
        """Decode the token body, which may be a JSON-encoded string."""
        try:
            token = _decode(response.json())
        except ValueError as error:
            raise InvalidTokenError('Invalid TokenID') from error

        if not isinstance(token, dict):
            raise InvalidTokenError('Invalid TokenID')
        return token

    def _is_expired(self, token: dict[str, Any]) -> bool:
        """Check whether ``CreationDate + TTL`` seconds has passed."""
        try:
            created_at = parse_datetime(str(token.get('CreationDate', '')))
        except ValueError:
            return True
        if created_at is None:
            return True
        if timezone.is_naive(created_at):
            created_at = timezone.make_aware(created_at, UTC)

        try:
            ttl = timedelta(seconds=float(token.get('TTL', 0)))
        except (TypeError, ValueError):
            return True

        return timezone.now() > created_at + ttl

    def _delete_token(self, token_id: str) -> None:
        """Remove an expired token from the store (best effort)."""
        try:
            self._send('DELETE', self._token_path(token_id))
        except requests.exceptions.RequestException:
            logger.exception('Failed to delete expired token')
