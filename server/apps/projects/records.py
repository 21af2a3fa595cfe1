"""Value types for project files, file trees and page windows.

Records come from the remote project store and are never persisted here.
Every type is built per request and discarded with the response.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Final, final

# Store wire keys first, then the gateway's own output keys
_ID_KEYS: Final = ('FileID', 'id')
_PROJECT_KEYS: Final = ('ProjectID', 'projectId')
_PARENT_KEYS: Final = ('ParentDirectory', 'parentId')
_NAME_KEYS: Final = ('FileName', 'name')
_DIRECTORY_KEYS: Final = ('IsDirectory', 'isDirectory')
_CREATED_KEYS: Final = ('CreationDate', 'createdAt')


def _pick(payload: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    """Return the first value present under any of the given keys."""
    for key in keys:
        if key in payload:
            return payload[key]
    return None


@final
@dataclass(frozen=True, slots=True)
class FileRecord:
    """One flat file or directory entry of a project.

    ``parent_id`` references another record's ``id``; ``None`` marks a
    root entry. ``is_directory`` is informational only.
    """

    id: int
    project_id: int
    parent_id: int | None
    name: str
    is_directory: bool = False
    created_at: str = ''

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> 'FileRecord':
        """Build a record from a store or gateway payload.

        Args:
            payload: Decoded record, keyed either the store way
                (``FileID``, ``ParentDirectory``...) or the gateway way
                (``id``, ``parentId``...).

        Returns:
            FileRecord instance.

        Raises:
            ValueError: If ``id``, project or name is missing or invalid.
        """
        record_id = _pick(payload, _ID_KEYS)
        project_id = _pick(payload, _PROJECT_KEYS)
        name = _pick(payload, _NAME_KEYS)

        if record_id is None or project_id is None:
            raise ValueError(f'File record without id or project: {payload!r}')
        if not name:
            raise ValueError(f'File record without name: {payload!r}')

        parent_id = _pick(payload, _PARENT_KEYS)
        created_at = _pick(payload, _CREATED_KEYS)

        try:
            return cls(
                id=int(record_id),
                project_id=int(project_id),
                parent_id=None if parent_id is None else int(parent_id),
                name=str(name),
                is_directory=bool(_pick(payload, _DIRECTORY_KEYS)),
                created_at='' if created_at is None else str(created_at),
            )
        except (TypeError, ValueError) as error:
            raise ValueError(
                f'File record with non-numeric identifiers: {payload!r}',
            ) from error

    def to_payload(self) -> dict[str, Any]:
        """Serialize the record for a JSON response."""
        return {
            'id': self.id,
            'projectId': self.project_id,
            'parentId': self.parent_id,
            'name': self.name,
            'isDirectory': self.is_directory,
            'createdAt': self.created_at,
        }


@final
@dataclass(frozen=True, slots=True)
class Leaf:
    """Child without materialized descendants."""

    record: FileRecord

    def to_payload(self) -> dict[str, Any]:
        """Serialize as the bare record."""
        return self.record.to_payload()


@final
@dataclass(frozen=True, slots=True)
class Branch:
    """Child carrying its own subtree."""

    node: 'TreeNode'

    def to_payload(self) -> dict[str, Any]:
        """Serialize as a nested node."""
        return self.node.to_payload()


TreeChild = Branch | Leaf


@final
@dataclass(slots=True)
class TreeNode:
    """File record plus its children keyed by name.

    ``children`` keeps insertion order; a name appears at most once.
    """

    file: FileRecord
    children: dict[str, TreeChild] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        """Serialize the node and its subtree for a JSON response."""
        return {
            'file': self.file.to_payload(),
            'children': {
                name: child.to_payload()
                for name, child in self.children.items()
            },
        }


@final
@dataclass(frozen=True, slots=True)
class PaginationWindow:
    """Slice of an ordered collection: ``limit`` items from ``offset``."""

    limit: int
    offset: int


@final
@dataclass(frozen=True, slots=True)
class LinkSet:
    """Navigation links of one collection page.

    ``current`` is the page itself (``self`` in the payload); ``prev``
    and ``next`` are ``None`` when there is no such page.
    """

    current: str
    first: str
    last: str
    prev: str | None = None
    next: str | None = None

    def to_payload(self) -> dict[str, str]:
        """Serialize the links, leaving out missing ``prev``/``next``."""
        links = {'self': self.current, 'first': self.first, 'last': self.last}
        if self.prev is not None:
            links['prev'] = self.prev
        if self.next is not None:
            links['next'] = self.next
        return links
