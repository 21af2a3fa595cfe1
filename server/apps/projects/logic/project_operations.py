"""Business logic behind the project and project file routes.

Each operation fetches from the project store through the given client
and hands the result to the pure builders of this package.
"""

import logging
from dataclasses import dataclass
from typing import Any, final

from server.apps.projects.exceptions import RecordNotFoundError, StoreError
from server.apps.projects.infrastructure.project_store import (
    ProjectStoreClient,
    StorePage,
)
from server.apps.projects.logic.file_tree import build_file_tree
from server.apps.projects.records import FileRecord, PaginationWindow, TreeNode

logger = logging.getLogger(__name__)


@final
@dataclass(frozen=True, slots=True)
class FileListing:
    """One page of project files arranged as a forest."""

    total: int
    window: PaginationWindow
    forest: list[TreeNode]


def _parse_records(
    items: list[dict[str, Any]],
    operation: str,
) -> list[FileRecord]:
    """Convert store dicts to records, failing on malformed ones.

    Raises:
        StoreError: If the store returned a record without id or name.
    """
    try:
        return [FileRecord.from_payload(item) for item in items]
    except ValueError as error:
        logger.exception('Malformed file record from project store')
        raise StoreError(operation, detail=str(error)) from error


def list_project_files(
    client: ProjectStoreClient,
    project_id: int,
    window: PaginationWindow,
) -> FileListing:
    """Fetch one page of project files and nest it into a tree.

    Args:
        client: Project store client.
        project_id: ID of the project.
        window: Page window requested by the client.

    Returns:
        FileListing with the store's total and the page's forest.

    Raises:
        StoreError: If the store call fails or returns malformed records.
    """
    page = client.list_files(project_id, window.limit, window.offset)
    records = _parse_records(page.items, 'list files')
    forest = build_file_tree(records)

    logger.info(
        'Listed %d of %d files for project %d (%d roots)',
        len(records),
        page.total,
        project_id,
        len(forest),
    )
    return FileListing(total=page.total, window=window, forest=forest)


def get_project_file(
    client: ProjectStoreClient,
    project_id: int,
    file_id: int,
) -> FileRecord:
    """Fetch a single file record of a project.

    Args:
        client: Project store client.
        project_id: ID of the project the file must belong to.
        file_id: ID of the file.

    Returns:
        FileRecord instance.

    Raises:
        RecordNotFoundError: If the file belongs to another project.
        StoreError: If the store call fails or returns a malformed record.
    """
    payload = client.get_file(file_id)
    if not isinstance(payload, dict):
        raise StoreError('get file', detail='malformed response')

    record = _parse_records([payload], 'get file')[0]
    if record.project_id != project_id:
        logger.warning(
            'File %d requested through project %d belongs to project %d',
            file_id,
            project_id,
            record.project_id,
        )
        raise RecordNotFoundError(f'File {file_id} not found in project')
    return record


def list_owned_projects(
    client: ProjectStoreClient,
    owner_id: int,
    window: PaginationWindow,
) -> StorePage:
    """Fetch one page of the projects owned by a user.

    Args:
        client: Project store client.
        owner_id: ID of the owning user.
        window: Page window requested by the client.

    Returns:
        StorePage of project dicts with the store's total.
    """
    page = client.list_projects(owner_id, window.limit, window.offset)
    logger.info(
        'Listed %d of %d projects for user %d',
        len(page.items),
        page.total,
        owner_id,
    )
    return page
