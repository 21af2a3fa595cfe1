"""HTTP client for the remote project store.

The project store persists projects and project files. It answers with
JSON, sometimes wrapping each record as a JSON-encoded string; the client
decodes both forms into plain dicts.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Final, final

import requests
from django.conf import settings

from server.apps.projects.exceptions import StoreError

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT: Final = 10.0

# Header carrying the gateway request id to the store
_UID_HEADER: Final = 'uid'


@final
@dataclass(frozen=True, slots=True)
class StorePage:
    """One page of a store collection plus the collection size."""

    total: int
    items: list[dict[str, Any]] = field(default_factory=list)


def _decode(payload: Any) -> Any:
    """Decode a value the store sent as a JSON-encoded string."""
    if isinstance(payload, str):
        return json.loads(payload)
    return payload


@final
class ProjectStoreClient:
    """Client for the project and project file endpoints of the store."""

    def __init__(
        self,
        base_url: str,
        timeout: float = _DEFAULT_TIMEOUT,
        request_uid: str = '',
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Root URL of the project store.
            timeout: Seconds to wait for each response.
            request_uid: Gateway request id forwarded as ``uid`` header.
        """
        self._base_url = base_url.rstrip('/')
        self._timeout = timeout
        self._request_uid = request_uid

    @classmethod
    def from_settings(cls, request_uid: str = '') -> 'ProjectStoreClient':
        """Create a client configured from Django settings.

        Args:
            request_uid: Gateway request id forwarded to the store.

        Returns:
            ProjectStoreClient instance.
        """
        return cls(
            base_url=settings.PROJECT_SERVICE_URL,
            timeout=getattr(
                settings,
                'STORE_REQUEST_TIMEOUT',
                _DEFAULT_TIMEOUT,
            ),
            request_uid=request_uid,
        )

    def list_projects(
        self,
        owner_id: int,
        limit: int,
        offset: int,
    ) -> StorePage:
        """List projects owned by a user.

        Args:
            owner_id: ID of the owning user.
            limit: Page size.
            offset: Page offset.

        Returns:
            StorePage of project dicts.
        """
        response = self._send(
            'GET',
            '/projects',
            'list projects',
            expected_status=200,
            params={'OwningUserID': owner_id, 'limit': limit, 'offset': offset},
        )
        return self._page(response, 'list projects')

    def add_project(self, owner_id: int, project_name: str) -> dict[str, Any]:
        """Create a project and return it as stored."""
        response = self._send(
            'POST',
            '/projects',
            'create project',
            expected_status=201,
            body={'OwningUserID': owner_id, 'ProjectName': project_name},
        )
        return self._body(response, 'create project')

    def update_project_name(self, project_id: int, project_name: str) -> None:
        """Rename a project."""
        self._send(
            'PUT',
            f'/projects/{project_id}',
            'update project name',
            expected_status=200,
            body={'ProjectName': project_name},
        )

    def delete_project(self, project_id: int) -> None:
        """Delete a project."""
        self._send(
            'DELETE',
            f'/projects/{project_id}',
            'delete project',
            expected_status=204,
        )

    def list_files(
        self,
        project_id: int,
        limit: int,
        offset: int,
    ) -> StorePage:
        """List one page of the flat file records of a project.

        The caller's ``limit`` is forwarded as is, so the page matches
        the window its navigation links are computed for.

        Args:
            project_id: ID of the project.
            limit: Page size.
            offset: Page offset.

        Returns:
            StorePage of file record dicts.
        """
        response = self._send(
            'GET',
            '/project_files',
            'list files',
            expected_status=200,
            params={'ProjectID': project_id, 'limit': limit, 'offset': offset},
        )
        return self._page(response, 'list files')

    def get_file(self, file_id: int) -> dict[str, Any]:
        """Fetch a single file record."""
        response = self._send(
            'GET',
            f'/project_files/{file_id}',
            'get file',
            expected_status=200,
        )
        return self._body(response, 'get file')

    def add_file(
        self,
        project_id: int,
        file_name: str,
        parent_id: int | None,
        is_directory: bool = False,
    ) -> None:
        """Create a file or directory record.

        Args:
            project_id: ID of the owning project.
            file_name: Name of the new entry.
            parent_id: ID of the parent directory, None for a root entry.
            is_directory: Whether the entry is a directory.
        """
        self._send(
            'POST',
            '/project_files',
            'add file',
            expected_status=201,
            body={
                'ProjectID': project_id,
                'ParentDirectory': parent_id,
                'FileName': file_name,
                'IsDirectory': is_directory,
            },
        )

    def update_file(self, file_id: int, updated_file: dict[str, Any]) -> None:
        """Apply a partial update to a file record."""
        self._send(
            'PUT',
            f'/project_files/{file_id}',
            'update file',
            expected_status=200,
            body=updated_file,
        )

    def delete_file(self, file_id: int) -> None:
        """Delete a file record."""
        self._send(
            'DELETE',
            f'/project_files/{file_id}',
            'delete file',
            expected_status=204,
        )

    def _send(  # noqa: WPS211
        self,
        method: str,
        path: str,
        operation: str,
        expected_status: int,
        params: dict[str, Any] | None = None,
        body: Any = None,
    ) -> requests.Response:
        """Send one request and check its status.

        Args:
            method: HTTP method.
            path: Path below the store root.
            operation: Human-readable operation name for errors and logs.
            expected_status: The only status accepted as success.
            params: Query parameters.
            body: JSON body.

        Returns:
            Store response with the expected status.

        Raises:
            StoreError: If the store is unreachable or answers with
                another status.
        """
        url = f'{self._base_url}{path}'
        logger.debug('%s %s (%s)', method, url, operation)

        try:
            response = requests.request(
                method,
                url,
                params=params,
                json=body,
                headers={_UID_HEADER: self._request_uid},
                timeout=self._timeout,
            )
        except requests.exceptions.RequestException as error:
            logger.exception('Project store unreachable: %s', operation)
            raise StoreError(operation, detail=str(error)) from error

        if response.status_code != expected_status:
            logger.error(
                'Project store rejected %s: status %d',
                operation,
                response.status_code,
            )
            raise StoreError(operation, status_code=response.status_code)

        return response

    def _body(self, response: requests.Response, operation: str) -> Any:
        """Decode a response body, unwrapping JSON-encoded strings."""
        try:
            return _decode(response.json())
        except ValueError as error:
            raise StoreError(operation, detail='malformed response') from error

    def _page(self, response: requests.Response, operation: str) -> StorePage:
        """Decode a paginated collection response."""
        body = self._body(response, operation)
        if not isinstance(body, dict):
            raise StoreError(operation, detail='malformed response')

        try:
            items = [_decode(item) for item in body.get('data') or []]
        except ValueError as error:
            raise StoreError(operation, detail='malformed record') from error

        total = body.get('total')
        if total is None:
            logger.warning(
                'Project store sent no total for %s, using page length',
                operation,
            )
            total = len(items)

        try:
            return StorePage(total=int(total), items=items)
        except (TypeError, ValueError) as error:
            raise StoreError(operation, detail='malformed total') from error
