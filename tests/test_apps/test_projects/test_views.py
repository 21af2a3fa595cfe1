"""Tests for project and project file views."""

import json
from unittest.mock import patch
from urllib.parse import parse_qsl, urlsplit

import pytest

from server.apps.projects.exceptions import InvalidTokenError, StoreError
from server.apps.projects.infrastructure.project_store import (
    ProjectStoreClient,
    StorePage,
)
from server.apps.projects.infrastructure.user_store import UserStoreClient

_HEADERS = {'TokenID': 'tok'}


def _offset(url):
    """Extract the offset of a link."""
    return int(dict(parse_qsl(urlsplit(url).query))['offset'])


class TestAuthentication:
    """Tests for the TokenID check."""

    def test_missing_token(self, client):
        """Test that requests without TokenID are rejected."""
        response = client.get('/projects/')

        assert response.status_code == 401
        assert response.json() == {
            'status': 'error',
            'message': 'TokenID header missing',
        }

    def test_invalid_token(self, client):
        """Test that unverifiable tokens are rejected."""
        with patch.object(
            UserStoreClient,
            'verify_token',
            side_effect=InvalidTokenError('Invalid TokenID'),
        ):
            response = client.get('/projects/', headers=_HEADERS)

        assert response.status_code == 401
        assert response.json()['message'] == 'Invalid TokenID'

    def test_method_not_allowed(self, client):
        """Test that unsupported methods are refused before auth."""
        response = client.patch('/projects/')

        assert response.status_code == 405


class TestListProjectFiles:
    """Tests for GET /project_files/."""

    def test_tree_and_links(self, client, authorized):
        """Test the paginated tree response."""
        page = StorePage(
            total=30,
            items=[
                {'FileID': 1, 'ProjectID': 3, 'FileName': 'src'},
                {
                    'FileID': 2,
                    'ProjectID': 3,
                    'ParentDirectory': 1,
                    'FileName': 'a.txt',
                },
                {
                    'FileID': 3,
                    'ProjectID': 3,
                    'ParentDirectory': 99,
                    'FileName': 'b.txt',
                },
            ],
        )

        with patch.object(
            ProjectStoreClient,
            'list_files',
            return_value=page,
        ) as list_files:
            response = client.get(
                '/project_files/?ProjectID=3&UserID=7',
                headers=_HEADERS,
            )

        assert response.status_code == 200
        body = response.json()
        list_files.assert_called_once_with(3, 25, 0)
        assert body['status'] == 'success'
        assert (body['total'], body['limit'], body['offset']) == (30, 25, 0)
        assert [node['file']['name'] for node in body['data']] == [
            'src',
            'b.txt',
        ]
        assert body['data'][0]['children']['a.txt']['id'] == 2
        assert body['data'][1]['children'] == {}

        links = body['links']
        assert set(links) == {'self', 'first', 'last', 'next'}
        assert _offset(links['next']) == 25
        assert _offset(links['last']) == 25
        assert 'ProjectID=3' in links['self']
        assert 'UserID=7' in links['self']

    def test_client_window_is_forwarded(self, client, authorized):
        """Test that the requested window reaches the store, clamped."""
        with patch.object(
            ProjectStoreClient,
            'list_files',
            return_value=StorePage(total=0),
        ) as list_files:
            response = client.get(
                '/project_files/?ProjectID=3&limit=1000&offset=-4',
                headers=_HEADERS,
            )

        assert response.status_code == 200
        list_files.assert_called_once_with(3, 100, 0)

    def test_configured_default_limit(self, client, authorized, settings):
        """Test that the default page size comes from settings."""
        settings.PAGINATION_DEFAULT_LIMIT = 10

        with patch.object(
            ProjectStoreClient,
            'list_files',
            return_value=StorePage(total=0),
        ) as list_files:
            client.get('/project_files/?ProjectID=3', headers=_HEADERS)

        list_files.assert_called_once_with(3, 10, 0)

    @pytest.mark.parametrize(
        ('query', 'message'),
        [
            ('', 'ProjectID is required'),
            ('?ProjectID=abc', 'ProjectID must be an integer'),
        ],
    )
    def test_project_id_required(self, client, authorized, query, message):
        """Test validation of the ProjectID query parameter."""
        response = client.get(f'/project_files/{query}', headers=_HEADERS)

        assert response.status_code == 400
        assert response.json()['message'] == message

    def test_store_failure(self, client, authorized):
        """Test that store failures answer 502."""
        with patch.object(
            ProjectStoreClient,
            'list_files',
            side_effect=StoreError('list files', status_code=500),
        ):
            response = client.get(
                '/project_files/?ProjectID=3',
                headers=_HEADERS,
            )

        assert response.status_code == 502
        assert response.json() == {
            'status': 'error',
            'message': 'Upstream store error',
        }


class TestProjectFileWrites:
    """Tests for adding, updating and deleting project files."""

    def test_add_file(self, client, authorized):
        """Test adding a file under a parent directory."""
        with patch.object(ProjectStoreClient, 'add_file') as add_file:
            response = client.post(
                '/project_files/',
                data=json.dumps({
                    'ProjectID': 3,
                    'Filename': 'a.txt',
                    'ParentDirectory_FileID': '1',
                }),
                content_type='application/json',
                headers=_HEADERS,
            )

        assert response.status_code == 201
        assert response.json()['message'] == 'File added'
        add_file.assert_called_once_with(3, 'a.txt', 1, is_directory=False)

    def test_add_file_missing_fields(self, client, authorized):
        """Test that ProjectID and Filename are required."""
        response = client.post(
            '/project_files/',
            data=json.dumps({'ProjectID': 3}),
            content_type='application/json',
            headers=_HEADERS,
        )

        assert response.status_code == 400
        assert response.json()['message'] == (
            'ProjectID and Filename are required'
        )

    def test_invalid_json(self, client, authorized):
        """Test that a malformed body answers 400."""
        response = client.post(
            '/project_files/',
            data='{broken',
            content_type='application/json',
            headers=_HEADERS,
        )

        assert response.status_code == 400
        assert response.json()['message'] == 'Invalid JSON body'

    def test_update_file(self, client, authorized):
        """Test updating a file."""
        with patch.object(ProjectStoreClient, 'update_file') as update_file:
            response = client.put(
                '/project_files/4',
                data=json.dumps({
                    'ProjectID': 3,
                    'UpdatedFile': {'FileName': 'b.txt'},
                }),
                content_type='application/json',
                headers=_HEADERS,
            )

        assert response.status_code == 200
        update_file.assert_called_once_with(4, {'FileName': 'b.txt'})

    def test_update_file_missing_fields(self, client, authorized):
        """Test that UpdatedFile is required."""
        response = client.put(
            '/project_files/4',
            data=json.dumps({'ProjectID': 3}),
            content_type='application/json',
            headers=_HEADERS,
        )

        assert response.status_code == 400

    def test_delete_file(self, client, authorized):
        """Test deleting a file."""
        with patch.object(ProjectStoreClient, 'delete_file') as delete_file:
            response = client.delete(
                '/project_files/4',
                data=json.dumps({'ProjectID': 3}),
                content_type='application/json',
                headers=_HEADERS,
            )

        assert response.status_code == 200
        assert response.json()['message'] == 'File deleted'
        delete_file.assert_called_once_with(4)

    def test_delete_file_requires_project(self, client, authorized):
        """Test that deleting needs a ProjectID."""
        response = client.delete('/project_files/4', headers=_HEADERS)

        assert response.status_code == 400
        assert response.json()['message'] == 'ProjectID is required'


class TestGetProjectFile:
    """Tests for GET /project_files/<id>."""

    def test_get_file(self, client, authorized):
        """Test fetching one file."""
        record = {'FileID': 4, 'ProjectID': 3, 'FileName': 'a.txt'}

        with patch.object(ProjectStoreClient, 'get_file', return_value=record):
            response = client.get(
                '/project_files/4?ProjectID=3',
                headers=_HEADERS,
            )

        assert response.status_code == 200
        assert response.json()['data']['name'] == 'a.txt'

    def test_file_of_other_project(self, client, authorized):
        """Test that a file outside the project answers 404."""
        record = {'FileID': 4, 'ProjectID': 8, 'FileName': 'a.txt'}

        with patch.object(ProjectStoreClient, 'get_file', return_value=record):
            response = client.get(
                '/project_files/4?ProjectID=3',
                headers=_HEADERS,
            )

        assert response.status_code == 404


class TestProjects:
    """Tests for project routes."""

    def test_list_projects(self, client, authorized):
        """Test listing the caller's projects with links."""
        page = StorePage(total=60, items=[{'ProjectID': 1}])

        with patch.object(
            ProjectStoreClient,
            'list_projects',
            return_value=page,
        ) as list_projects:
            response = client.get(
                '/projects/?limit=20&offset=20',
                headers=_HEADERS,
            )

        assert response.status_code == 200
        list_projects.assert_called_once_with(7, 20, 20)
        body = response.json()
        assert body['data'] == [{'ProjectID': 1}]
        assert _offset(body['links']['prev']) == 0
        assert _offset(body['links']['next']) == 40
        assert _offset(body['links']['last']) == 40

    def test_create_project(self, client, authorized):
        """Test creating a project for the caller."""
        project = {'ProjectID': 5, 'ProjectName': 'demo'}

        with patch.object(
            ProjectStoreClient,
            'add_project',
            return_value=project,
        ) as add_project:
            response = client.post(
                '/projects/',
                data=json.dumps({'ProjectName': 'demo'}),
                content_type='application/json',
                headers=_HEADERS,
            )

        assert response.status_code == 201
        assert response.json()['data'] == project
        add_project.assert_called_once_with(7, 'demo')

    def test_create_project_requires_name(self, client, authorized):
        """Test that ProjectName is required."""
        response = client.post(
            '/projects/',
            data=json.dumps({}),
            content_type='application/json',
            headers=_HEADERS,
        )

        assert response.status_code == 400
        assert response.json()['message'] == 'ProjectName is required'

    def test_rename_project(self, client, authorized):
        """Test renaming a project."""
        with patch.object(ProjectStoreClient, 'update_project_name') as rename:
            response = client.put(
                '/projects/5',
                data=json.dumps({'ProjectName': 'renamed'}),
                content_type='application/json',
                headers=_HEADERS,
            )

        assert response.status_code == 200
        rename.assert_called_once_with(5, 'renamed')

    def test_delete_project(self, client, authorized):
        """Test deleting a project."""
        with patch.object(ProjectStoreClient, 'delete_project') as delete:
            response = client.delete('/projects/5', headers=_HEADERS)

        assert response.status_code == 200
        assert response.json()['message'] == 'Project deleted'
        delete.assert_called_once_with(5)


def test_request_id_is_forwarded(client, authorized):
    """Test that the store client is tagged with the request id."""
    with patch.object(
        ProjectStoreClient,
        'from_settings',
        wraps=ProjectStoreClient.from_settings,
    ) as from_settings:
        with patch.object(ProjectStoreClient, 'delete_project'):
            client.delete('/projects/5', headers=_HEADERS)

    request_uid = from_settings.call_args.args[0]
    assert len(request_uid) == 16


def test_request_is_logged(client, authorized, caplog):
    """Test that start and end of a request are logged."""
    with patch.object(ProjectStoreClient, 'delete_project'):
        with caplog.at_level('INFO', logger='server.apps.projects.middleware'):
            client.delete('/projects/5', headers=_HEADERS)

    messages = [
        record.getMessage()
        for record in caplog.records
        if record.name == 'server.apps.projects.middleware'
    ]
    assert messages[0].endswith('DELETE /projects/5 request being served.')
    assert messages[1].endswith('DELETE /projects/5 request served (200).')


class TestRoutesWithoutSlash:
    """Tests for collection routes addressed without a trailing slash."""

    def test_list_projects(self, client, authorized):
        """Test that /projects answers like /projects/."""
        with patch.object(
            ProjectStoreClient,
            'list_projects',
            return_value=StorePage(total=0),
        ):
            response = client.get('/projects', headers=_HEADERS)

        assert response.status_code == 200
        assert response.json()['links']['self'].startswith(
            'http://testserver/projects?',
        )

    def test_list_project_files(self, client, authorized):
        """Test that /project_files answers like /project_files/."""
        with patch.object(
            ProjectStoreClient,
            'list_files',
            return_value=StorePage(total=0),
        ) as list_files:
            response = client.get(
                '/project_files?ProjectID=3',
                headers=_HEADERS,
            )

        assert response.status_code == 200
        list_files.assert_called_once_with(3, 25, 0)

    def test_add_file(self, client, authorized):
        """Test that files can be added through /project_files."""
        with patch.object(ProjectStoreClient, 'add_file') as add_file:
            response = client.post(
                '/project_files',
                data=json.dumps({
                    'ProjectID': 3,
                    'Filename': 'src',
                    'IsDirectory': True,
                }),
                content_type='application/json',
                headers=_HEADERS,
            )

        assert response.status_code == 201
        add_file.assert_called_once_with(3, 'src', None, is_directory=True)


@pytest.mark.parametrize('is_directory', ['false', 0, None])
def test_add_file_rejects_non_boolean_directory_flag(
    client,
    authorized,
    is_directory,
):
    """Test that IsDirectory must be a JSON boolean."""
    with patch.object(ProjectStoreClient, 'add_file') as add_file:
        response = client.post(
            '/project_files/',
            data=json.dumps({
                'ProjectID': 3,
                'Filename': 'a.txt',
                'IsDirectory': is_directory,
            }),
            content_type='application/json',
            headers=_HEADERS,
        )

    assert response.status_code == 400
    assert response.json()['message'] == 'IsDirectory must be a boolean'
    add_file.assert_not_called()


class TestLogin:
    """Tests for POST /users/login."""

    def _login(self, client, body):
        return client.post(
            '/users/login',
            data=json.dumps(body),
            content_type='application/json',
        )

    def test_login(self, client):
        """Test that a known user receives a fresh token."""
        token = {'TokenID': 'new', 'UserID': 7}

        with patch.object(
            UserStoreClient,
            'find_user_by_name',
            return_value={'UserID': 7, 'UserName': 'ada'},
        ) as find_user:
            with patch.object(
                UserStoreClient,
                'create_token',
                return_value=token,
            ) as create_token:
                response = self._login(client, {'username': 'ada'})

        assert response.status_code == 200
        assert response.json() == {
            'status': 'success',
            'message': 'Login successful',
            'data': {'userId': 7, 'token': token},
        }
        find_user.assert_called_once_with('ada')
        create_token.assert_called_once_with(7)

    def test_username_required(self, client):
        """Test that a missing username answers 400."""
        response = self._login(client, {})

        assert response.status_code == 400
        assert response.json()['message'] == 'Username is required'

    def test_unknown_user(self, client):
        """Test that an unknown user answers 404 without a token."""
        with patch.object(
            UserStoreClient,
            'find_user_by_name',
            return_value=None,
        ):
            with patch.object(UserStoreClient, 'create_token') as create_token:
                response = self._login(client, {'username': 'nobody'})

        assert response.status_code == 404
        assert response.json()['message'] == 'User not found'
        create_token.assert_not_called()

    def test_store_failure(self, client):
        """Test that user store failures answer 502."""
        with patch.object(
            UserStoreClient,
            'find_user_by_name',
            side_effect=StoreError('find user', status_code=500),
        ):
            response = self._login(client, {'username': 'ada'})

        assert response.status_code == 502

    def test_get_not_allowed(self, client):
        """Test that login only accepts POST."""
        assert client.get('/users/login').status_code == 405


class TestCors:
    """Tests for cross-origin preflight requests."""

    _preflight = {
        'Origin': 'https://app.example.com',
        'Access-Control-Request-Method': 'GET',
        'Access-Control-Request-Headers': 'tokenid',
    }

    def test_preflight_allows_token_header(self, client, settings):
        """Test that a configured origin may send TokenID."""
        settings.CORS_ALLOWED_ORIGINS = ['https://app.example.com']

        response = client.options('/project_files', headers=self._preflight)

        assert response.status_code == 200
        assert response['access-control-allow-origin'] == (
            'https://app.example.com'
        )
        assert 'tokenid' in response['access-control-allow-headers']

    def test_unknown_origin(self, client, settings):
        """Test that other origins get no CORS grant."""
        settings.CORS_ALLOWED_ORIGINS = ['https://other.example.com']

        response = client.options('/project_files', headers=self._preflight)

        assert 'access-control-allow-origin' not in response


def test_request_id_is_forwarded_to_user_store(client, authorized):
    """Test that token checks are tagged with the request id."""
    with patch.object(
        UserStoreClient,
        'from_settings',
        wraps=UserStoreClient.from_settings,
    ) as from_settings:
        with patch.object(ProjectStoreClient, 'delete_project'):
            client.delete('/projects/5', headers=_HEADERS)

    request_uid = from_settings.call_args.args[0]
    assert len(request_uid) == 16
