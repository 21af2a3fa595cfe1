"""Reconstruction of the directory tree from a flat page of file records.

The project store returns files as a flat, paginated list where each
record may point at its parent directory. A page is turned into a forest:
records whose parent is on the same page are nested under it, every other
record becomes a root of the page.

Linking works over an arena of slot indexes (one slot per record, in
input order); ``TreeNode`` objects are only built once every link is known.
"""

import logging
from collections.abc import Iterable, Iterator

from server.apps.projects.records import (
    Branch,
    FileRecord,
    Leaf,
    TreeChild,
    TreeNode,
)

logger = logging.getLogger(__name__)


def build_file_tree(records: Iterable[FileRecord]) -> list[TreeNode]:
    """Build the forest representable by one page of file records.

    A record is linked under its parent when the parent is part of the
    same batch, otherwise it is a root (its parent lives on another page).
    Siblings are keyed by name: when two siblings share a name, the later
    one in input order replaces the earlier one.

    Args:
        records: File records of one page, in store order.

    Returns:
        Root nodes in input order, children populated transitively.
    """
    batch = list(records)
    if not batch:
        return []

    # Slot of each id; a duplicated id resolves to its last record
    slots = {record.id: index for index, record in enumerate(batch)}

    children: list[dict[str, int]] = [{} for _ in batch]
    parents: list[int | None] = [None] * len(batch)
    roots: list[int] = []

    for index, record in enumerate(batch):
        parent_index = None
        if record.parent_id is not None:
            parent_index = slots.get(record.parent_id)

        if parent_index is None:
            roots.append(index)
            continue

        siblings = children[parent_index]
        if record.name in siblings:
            logger.debug(
                'File %d replaces sibling %d named %r under %d',
                record.id,
                batch[siblings[record.name]].id,
                record.name,
                record.parent_id,
            )
        siblings[record.name] = index
        parents[index] = parent_index

    _promote_cycles(batch, children, parents, roots)

    return _materialize(batch, children, roots)


def _is_linked(
    index: int,
    children: list[dict[str, int]],
    parents: list[int | None],
    batch: list[FileRecord],
) -> bool:
    """Check that a slot is still held by its parent (not replaced)."""
    parent_index = parents[index]
    if parent_index is None:
        return False
    return children[parent_index].get(batch[index].name) == index


def _reach(
    start: Iterable[int],
    children: list[dict[str, int]],
    reached: set[int],
) -> None:
    """Mark every slot reachable from ``start``."""
    stack = [index for index in start if index not in reached]
    reached.update(stack)
    while stack:
        index = stack.pop()
        for child_index in children[index].values():
            if child_index not in reached:
                reached.add(child_index)
                stack.append(child_index)


def _find_cycle(
    index: int,
    children: list[dict[str, int]],
    parents: list[int | None],
    batch: list[FileRecord],
    settled: set[int],
) -> list[int]:
    """Walk up the parent links of a slot looking for a cycle.

    Returns:
        Slots forming the cycle, or an empty list when the walk ends at
        a replaced sibling (whose subtree is dropped with it).
    """
    path: list[int] = []
    position: dict[int, int] = {}
    current: int | None = index

    while current is not None and current not in settled:
        if current in position:
            return path[position[current]:]
        position[current] = len(path)
        path.append(current)
        if not _is_linked(current, children, parents, batch):
            break
        current = parents[current]

    settled.update(path)
    return []


def _promote_cycles(
    batch: list[FileRecord],
    children: list[dict[str, int]],
    parents: list[int | None],
    roots: list[int],
) -> None:
    """Turn parent cycles into roots so that no linked record is lost.

    The earliest record of each cycle (in input order) is detached from
    its parent and appended to the roots.
    """
    reached: set[int] = set()
    _reach(roots, children, reached)
    settled: set[int] = set()

    for index in range(len(batch)):
        if index in reached or index in settled:
            continue
        if not _is_linked(index, children, parents, batch):
            continue

        cycle = _find_cycle(index, children, parents, batch, settled)
        if not cycle:
            continue

        promoted = min(cycle)
        record = batch[promoted]
        logger.warning(
            'Parent cycle through file %d (%r), promoting it to root',
            record.id,
            record.name,
        )
        parent_index = parents[promoted]
        if parent_index is not None:
            del children[parent_index][record.name]
        parents[promoted] = None
        roots.append(promoted)
        _reach([promoted], children, reached)


def _materialize(
    batch: list[FileRecord],
    children: list[dict[str, int]],
    roots: list[int],
) -> list[TreeNode]:
    """Build tree nodes from the linked arena."""
    nodes = [TreeNode(file=record) for record in batch]

    for parent_index, named_children in enumerate(children):
        if not named_children:
            continue
        parent = nodes[parent_index]
        if not parent.file.is_directory:
            logger.debug(
                'Plain file %d has %d children',
                parent.file.id,
                len(named_children),
            )
        for name, child_index in named_children.items():
            child: TreeChild
            if children[child_index]:
                child = Branch(nodes[child_index])
            else:
                child = Leaf(batch[child_index])
            parent.children[name] = child

    return [nodes[index] for index in roots]


def iter_tree_records(forest: Iterable[TreeNode]) -> Iterator[FileRecord]:
    """Yield every record of a forest, depth first.

    Args:
        forest: Root nodes as returned by ``build_file_tree``.

    Yields:
        Records of roots and their descendants, children in insertion
        order.
    """
    stack: list[TreeChild] = [Branch(node) for node in reversed(list(forest))]
    while stack:
        item = stack.pop()
        if isinstance(item, Leaf):
            yield item.record
            continue
        yield item.node.file
        stack.extend(reversed(list(item.node.children.values())))
