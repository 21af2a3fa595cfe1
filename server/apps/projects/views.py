"""JSON views for login, projects and project files.

Every route except login requires a valid ``TokenID`` header. Responses
use the envelope ``{"status": "success" | "error", "message"?, "data"?}``.
"""

import functools
import json
import logging
from collections.abc import Callable
from typing import Any, Final

from django.conf import settings
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.views.decorators.http import require_http_methods

from server.apps.projects.decorators import token_required
from server.apps.projects.exceptions import RecordNotFoundError, StoreError
from server.apps.projects.infrastructure.project_store import ProjectStoreClient
from server.apps.projects.infrastructure.user_store import UserStoreClient
from server.apps.projects.logic.hateoas import build_links
from server.apps.projects.logic.pagination import (
    DEFAULT_PAGE_LIMIT,
    MAX_PAGE_LIMIT,
    compute_window,
)
from server.apps.projects.logic.project_operations import (
    get_project_file,
    list_owned_projects,
    list_project_files,
)
from server.apps.projects.records import PaginationWindow

logger = logging.getLogger(__name__)

_PROJECT_ID: Final = 'ProjectID'

_View = Callable[..., HttpResponse]


def _error(message: str, status: int) -> JsonResponse:
    """Build an error envelope."""
    return JsonResponse({'status': 'error', 'message': message}, status=status)


def _success(status: int = 200, **payload: Any) -> JsonResponse:
    """Build a success envelope."""
    return JsonResponse({'status': 'success', **payload}, status=status)


class _BadRequest(Exception):  # noqa: N818
    """Raised inside views for client errors answered with 400."""


def _gateway_errors(view: _View) -> _View:
    """Translate client, store and lookup failures into responses."""

    @functools.wraps(view)
    def wrapper(  # noqa: WPS430
        request: HttpRequest,
        *args: Any,
        **kwargs: Any,
    ) -> HttpResponse:
        try:
            return view(request, *args, **kwargs)
        except _BadRequest as error:
            return _error(str(error), status=400)
        except RecordNotFoundError as error:
            return _error(str(error), status=404)
        except StoreError:
            logger.exception(
                'Store failure while serving %s %s',
                request.method,
                request.path,
            )
            return _error('Upstream store error', status=502)

    return wrapper


def _read_json(request: HttpRequest) -> dict[str, Any]:
    """Decode a JSON object body, an empty body counts as ``{}``."""
    if not request.body:
        return {}
    try:
        body = json.loads(request.body)
    except ValueError as error:
        raise _BadRequest('Invalid JSON body') from error
    if not isinstance(body, dict):
        raise _BadRequest('Invalid JSON body')
    return body


def _parse_id(raw_value: Any, field_name: str) -> int:
    """Parse a required integer identifier from a request."""
    if raw_value is None or raw_value == '' or isinstance(raw_value, bool):
        raise _BadRequest(f'{field_name} is required')
    try:
        return int(raw_value)
    except (TypeError, ValueError) as error:
        raise _BadRequest(f'{field_name} must be an integer') from error


def _window(request: HttpRequest) -> PaginationWindow:
    """Page window from the ``limit``/``offset`` query parameters."""
    return compute_window(
        request.GET.get('limit'),
        request.GET.get('offset'),
        default_limit=getattr(
            settings,
            'PAGINATION_DEFAULT_LIMIT',
            DEFAULT_PAGE_LIMIT,
        ),
        max_limit=getattr(settings, 'PAGINATION_MAX_LIMIT', MAX_PAGE_LIMIT),
    )


def _store(request: HttpRequest) -> ProjectStoreClient:
    """Project store client tagged with the request id."""
    return ProjectStoreClient.from_settings(getattr(request, 'uid', ''))


def _paginated(
    request: HttpRequest,
    total: int,
    window: PaginationWindow,
    data: list[Any],
) -> JsonResponse:
    """Success envelope for one page of a collection."""
    links = build_links(
        request.build_absolute_uri(),
        total,
        window.limit,
        window.offset,
    )
    return _success(
        total=total,
        limit=window.limit,
        offset=window.offset,
        data=data,
        links=links.to_payload(),
    )


@require_http_methods(['GET', 'POST'])
@token_required
@_gateway_errors
def projects(request: HttpRequest) -> HttpResponse:
    """List the caller's projects or create a new one."""
    if request.method == 'GET':
        window = _window(request)
        page = list_owned_projects(_store(request), request.user_id, window)
        return _paginated(request, page.total, window, page.items)

    body = _read_json(request)
    project_name = body.get('ProjectName')
    if not project_name:
        raise _BadRequest('ProjectName is required')

    project = _store(request).add_project(request.user_id, project_name)
    return _success(status=201, message='Project created', data=project)


@require_http_methods(['PUT', 'DELETE'])
@token_required
@_gateway_errors
def project_detail(request: HttpRequest, project_id: int) -> HttpResponse:
    """Rename or delete a project."""
    if request.method == 'DELETE':
        _store(request).delete_project(project_id)
        return _success(message='Project deleted')

    body = _read_json(request)
    project_name = body.get('ProjectName')
    if not project_name:
        raise _BadRequest('ProjectName is required')

    _store(request).update_project_name(project_id, project_name)
    return _success(message='Project updated')


@require_http_methods(['GET', 'POST'])
@token_required
@_gateway_errors
def project_files(request: HttpRequest) -> HttpResponse:
    """List a project's files as a tree, or add a file."""
    if request.method == 'GET':
        project_id = _parse_id(request.GET.get(_PROJECT_ID), _PROJECT_ID)
        listing = list_project_files(
            _store(request),
            project_id,
            _window(request),
        )
        return _paginated(
            request,
            listing.total,
            listing.window,
            [node.to_payload() for node in listing.forest],
        )

    body = _read_json(request)
    if not body.get(_PROJECT_ID) or not body.get('Filename'):
        raise _BadRequest('ProjectID and Filename are required')

    is_directory = body.get('IsDirectory', False)
    if not isinstance(is_directory, bool):
        raise _BadRequest('IsDirectory must be a boolean')

    parent_id = body.get('ParentDirectory_FileID')
    _store(request).add_file(
        _parse_id(body[_PROJECT_ID], _PROJECT_ID),
        str(body['Filename']),
        None if parent_id is None else _parse_id(
            parent_id,
            'ParentDirectory_FileID',
        ),
        is_directory=is_directory,
    )
    return _success(status=201, message='File added')


@require_http_methods(['GET', 'PUT', 'DELETE'])
@token_required
@_gateway_errors
def project_file_detail(request: HttpRequest, file_id: int) -> HttpResponse:
    """Get, update or delete one file of a project."""
    if request.method == 'GET':
        project_id = _parse_id(request.GET.get(_PROJECT_ID), _PROJECT_ID)
        record = get_project_file(_store(request), project_id, file_id)
        return _success(data=record.to_payload())

    body = _read_json(request)

    if request.method == 'DELETE':
        _parse_id(body.get(_PROJECT_ID), _PROJECT_ID)
        _store(request).delete_file(file_id)
        return _success(message='File deleted')

    updated_file = body.get('UpdatedFile')
    if not body.get(_PROJECT_ID) or not isinstance(updated_file, dict):
        raise _BadRequest('ProjectID and UpdatedFile are required')

    _parse_id(body[_PROJECT_ID], _PROJECT_ID)
    _store(request).update_file(file_id, updated_file)
    return _success(message='File updated')


@require_http_methods(['POST'])
@_gateway_errors
def login(request: HttpRequest) -> HttpResponse:
    """Issue a TokenID for an existing user.

    The body carries ``username``; no password is checked, the user store
    is the only authority on who exists.
    """
    username = _read_json(request).get('username')
    if not username:
        raise _BadRequest('Username is required')

    user_store = UserStoreClient.from_settings(getattr(request, 'uid', ''))
    user = user_store.find_user_by_name(str(username))
    if user is None or not user.get('UserID'):
        logger.info('Login refused for unknown user %s', username)
        raise RecordNotFoundError('User not found')

    token = user_store.create_token(user['UserID'])
    return _success(
        message='Login successful',
        data={'userId': user['UserID'], 'token': token},
    )
