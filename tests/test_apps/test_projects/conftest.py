"""Shared fixtures for projects app tests."""

from unittest.mock import MagicMock, patch

import pytest

from server.apps.projects.infrastructure.user_store import UserStoreClient
from server.apps.projects.records import FileRecord


@pytest.fixture
def make_record():
    """Factory for file records of project 1.

    Returns:
        Callable building a FileRecord from id, parent id and name.
    """

    def factory(record_id, parent_id, name, is_directory=False):
        return FileRecord(
            id=record_id,
            project_id=1,
            parent_id=parent_id,
            name=name,
            is_directory=is_directory,
            created_at='2024-10-31T12:00:00Z',
        )

    return factory


@pytest.fixture
def store_response():
    """Factory for fake ``requests`` responses.

    Returns:
        Callable building a response mock with a status and JSON body.
    """

    def factory(status_code=200, body=None):
        response = MagicMock()
        response.status_code = status_code
        response.json.return_value = body
        return response

    return factory


@pytest.fixture
def authorized():
    """Accept every TokenID as belonging to user 7.

    Yields:
        Mock standing in for ``UserStoreClient.verify_token``.
    """
    with patch.object(
        UserStoreClient,
        'verify_token',
        return_value=7,
    ) as verify_token:
        yield verify_token
